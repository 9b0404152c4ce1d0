"""Dependency tracking engine: the heart of propx.

An EvaluationContext owns the two pieces of shared state a property graph
needs: the version clock, which marks steps of the system, and the dependency
tracker, a stack of frames recording which properties a computation reads.

One context per independent graph. The active context lives in a ContextVar,
so new properties pick it up without it being passed around.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, TypeVar

if TYPE_CHECKING:
    from propx.property import Property

T = TypeVar("T")


class VersionClock:
    """Step counter plus a change sequence.

    current marks steps: it advances once per top-level write, and everything
    that write cascades into shares the step. revision ticks on every value
    change, so "did this change after that" is always answerable, even inside
    one step.
    """

    __slots__ = ("_current", "_revision")

    def __init__(self) -> None:
        self._current = 0
        self._revision = 0

    @property
    def current(self) -> int:
        return self._current

    @property
    def revision(self) -> int:
        return self._revision

    def advance(self) -> int:
        self._current += 1
        return self._current

    def record_change(self) -> int:
        self._revision += 1
        return self._revision

    def __repr__(self) -> str:
        return f"VersionClock({self._current}, revision={self._revision})"


class DependencyTracker:
    """Stack of (target, observed) frames, one per evaluation in progress.

    Nested evaluations push their own frame, so a computation reading another
    computed property that recomputes on the spot records into the right
    place. A frame whose target is None is untracked and records nothing.
    """

    __slots__ = ("_frames",)

    def __init__(self) -> None:
        self._frames: list[tuple[Property | None, dict[Property, None]]] = []

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def target(self) -> Property | None:
        """The property whose computation is innermost on the stack."""
        if not self._frames:
            return None
        return self._frames[-1][0]

    def push(self, prop: Property) -> None:
        """Record a read of prop in the innermost frame."""
        if not self._frames:
            return
        target, observed = self._frames[-1]
        # Untracked frame, or the target reading itself.
        if target is None or target is prop:
            return
        if prop not in observed:
            observed[prop] = None

    def compute(self, target: Property, fn: Callable[[], T]) -> tuple[T, list[Property]]:
        """Run fn in a fresh frame. Returns its result and the properties it read."""
        observed: dict[Property, None] = {}
        self._frames.append((target, observed))
        try:
            value = fn()
        finally:
            self._frames.pop()
        return value, list(observed)

    @contextmanager
    def untracked(self) -> Iterator[None]:
        """Suspend recording for the duration of the block."""
        self._frames.append((None, {}))
        try:
            yield
        finally:
            self._frames.pop()

    def __repr__(self) -> str:
        return f"DependencyTracker(depth={len(self._frames)})"


class EvaluationContext:
    """Clock and tracker shared by every property of one graph."""

    __slots__ = ("clock", "tracker")

    def __init__(self) -> None:
        self.clock = VersionClock()
        self.tracker = DependencyTracker()

    @property
    def cascading(self) -> bool:
        """True while a notification or an evaluation is on the stack."""
        return self.tracker.depth > 0

    def __repr__(self) -> str:
        return f"EvaluationContext(step={self.clock.current}, depth={self.tracker.depth})"


_default_context = EvaluationContext()

# Context handed to properties created without an explicit one.
current_context: contextvars.ContextVar[EvaluationContext] = contextvars.ContextVar(
    "current_context", default=_default_context
)


def get_context() -> EvaluationContext:
    """The context new properties are bound to."""
    return current_context.get()


@contextmanager
def use_context(context: EvaluationContext | None = None) -> Iterator[EvaluationContext]:
    """Make context (or a brand new one) active inside the block.

    Usage:
        with use_context() as ctx:
            a = prop().set(1)       # bound to ctx
            b = prop().computed(lambda: a.get() * 2)
    """
    if context is None:
        context = EvaluationContext()
    token = current_context.set(context)
    try:
        yield context
    finally:
        current_context.reset(token)
