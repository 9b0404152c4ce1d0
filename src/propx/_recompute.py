"""Recomputation engine: keeps computed properties consistent.

A computed property is current when none of the properties it read during its
last evaluation has changed since. Checking that pulls each dependency up to
date first, so a read deep in the graph settles everything beneath it. Only a
real change upstream re-runs the function; a write elsewhere in the context
leaves the value (and any manual override) alone.

A push from a changed dependency runs the same check. A descendant reached
through several paths (a diamond) recomputes on the first notification and
finds itself current on the rest.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Callable

from propx._anchor import NO_VALUE

if TYPE_CHECKING:
    from propx.property import Property

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.VAR_POSITIONAL,
)


def _accepts_previous(fn: Callable[..., object]) -> bool:
    try:
        parameters = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return False
    return any(p.kind in _POSITIONAL for p in parameters)


def arm(prop: Property, fn: Callable[..., object], initial: object = NO_VALUE) -> None:
    """Make prop a computed property and evaluate it once.

    A function taking a positional argument is called with the property's
    current value, initial on the first run.
    """
    if not callable(fn):
        raise TypeError(f"computation must be callable, got {type(fn).__name__}")
    state = prop._state
    state.fn = fn
    state.pass_previous = _accepts_previous(fn)
    state.observed = []
    state.recompute_callback = lambda _value: ensure_updated(prop)
    if initial is not NO_VALUE:
        state.value = initial
    refresh(prop)


def ensure_updated(prop: Property) -> None:
    """Bring prop up to the current step."""
    state = prop._state
    clock = prop._context.clock
    prop._trace(lambda: f"ensuring that {prop.name} is fully updated")

    if state.fn is None or state.observed is None:
        # Roots and disposed properties only change through set().
        state.step_version = clock.current
        return

    if state.verified_at == clock.revision:
        prop._trace(lambda: f"{prop.name} is already fully updated")
        state.step_version = clock.current
        return

    if _dependency_changed(prop):
        prop._trace(lambda: f"{prop.name} needs recomputation")
        refresh(prop)
    else:
        state.verified_at = clock.revision
        state.step_version = clock.current

    prop._trace(lambda: f"{prop.name} reached step version {clock.current}")


def _dependency_changed(prop: Property) -> bool:
    state = prop._state
    for dep in list(state.observed):
        ensure_updated(dep)
        if dep._state.changed_at > state.verified_at:
            return True
    return False


def refresh(prop: Property) -> None:
    """Recompute prop and commit the result within the current step."""
    value = recompute(prop)
    prop._state.verified_at = prop._context.clock.revision
    prop._assign(value, advance=False)


def recompute(prop: Property) -> object:
    """Evaluate prop's function and rebuild its dependency set.

    The previous dependencies are dropped before evaluating, so a dependency
    that changes while being read cannot re-enter this recompute. If the
    function raises, they are restored and the error propagates.
    """
    state = prop._state
    callback = state.recompute_callback
    previous = state.observed or []
    fn = state.fn
    evaluate = (lambda: fn(state.value)) if state.pass_previous else fn

    prop._trace(lambda: f"recomputing {prop.name}")
    for dep in previous:
        dep.unsubscribe(callback)

    try:
        value, observed = prop._context.tracker.compute(prop, evaluate)
    except Exception:
        for dep in previous:
            dep.subscribe(callback)
        raise

    state.observed = observed
    for dep in observed:
        dep.subscribe(callback)

    prop._trace(lambda: f"{prop.name} now depends on {[dep.name for dep in observed]}")
    return value
