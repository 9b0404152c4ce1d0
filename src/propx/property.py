"""Properties: observable values, plain or computed.

A root property changes only through set(). A computed property derives its
value from a function of other properties; whatever the function reads through
get() becomes a dependency, and a change to any dependency recomputes it.

Configuration is fluent and non-destructive: with_value, with_name and
computed each return a new Property, leaving the receiver untouched.

Usage:
    width = prop().with_name("width").set(3)
    height = prop().with_name("height").set(4)
    area = prop().with_name("area").computed(lambda: width.get() * height.get())

    area.subscribe(print)
    width.set(5)        # prints 20
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, TypeVar

from propx import _recompute as _engine
from propx._anchor import NO_VALUE, PropertyState
from propx._tracking import EvaluationContext, get_context
from propx.trace import logging_sink, null_sink

if TYPE_CHECKING:
    from propx.trace import TraceSink

T = TypeVar("T")

Subscriber = Callable[[object], None]

UNNAMED = "<unnamed>"


class Property:
    """A named, versioned, observable value."""

    __slots__ = ("_state", "_context")

    def __init__(self, context: EvaluationContext | None = None) -> None:
        self._context = context if context is not None else get_context()
        self._state = PropertyState(null_sink)

    @classmethod
    def _from_state(cls, state: PropertyState, context: EvaluationContext) -> Property:
        instance = cls.__new__(cls)
        instance._state = state
        instance._context = context
        return instance

    # --- Configuration (each returns a new instance) ---

    def with_value(self, value: object = NO_VALUE) -> Property:
        """Copy of this property holding value (unset when omitted)."""
        return self._clone().set(value)

    def with_name(self, name: str) -> Property:
        """Copy of this property labelled name."""
        return self._clone(name=name)

    def computed(self, *args) -> Property:
        """Copy of this property computed by a function.

        computed(fn) or computed(initial, fn). The function reads its inputs
        through get(). If it takes a positional argument, it is called with
        the property's previous value. It is evaluated once right away, so
        initial is the previous value on that first run.

        Usage:
            step = prop().set(1)
            total = prop().computed(100, lambda prev: prev + step.get())
            total.get()     # 101
        """
        if len(args) == 1:
            initial, fn = NO_VALUE, args[0]
        elif len(args) == 2:
            initial, fn = args
        else:
            raise TypeError(f"computed() takes 1 or 2 arguments ({len(args)} given)")
        clone = self._clone(fn=None)
        _engine.arm(clone, fn, initial)
        return clone

    def _clone(self, **changes) -> Property:
        state = self._state.copy()
        for attr, value in changes.items():
            setattr(state, attr, value)
        clone = type(self)._from_state(state, self._context)
        if state.fn is not None:
            _engine.arm(clone, state.fn)
        return clone

    # --- Reading and writing ---

    @property
    def name(self) -> str:
        return self._state.name or UNNAMED

    def get(self) -> object:
        """Current value, brought up to date first.

        Inside another property's computation, registers this property as one
        of its dependencies. A computation reading its own property gets the
        stored value as is.
        """
        self._trace(lambda: f"getting value of {self.name}")
        tracker = self._context.tracker
        tracker.push(self)
        if tracker.target is not self:
            _engine.ensure_updated(self)
        return self._state.value

    def set(self, value: object) -> Property:
        """Assign value directly and notify subscribers if it changed."""
        return self._assign(value, advance=True)

    def _assign(self, value: object, *, advance: bool) -> Property:
        """Store value and stamp the step.

        A top-level write opens a new step. Writes made while a notification
        or an evaluation is running join the step already open, as do commits
        from the recomputation engine.
        """
        state = self._state
        context = self._context
        clock = context.clock
        previous = state.value
        state.value = value

        if advance and not context.cascading:
            clock.advance()
            self._trace(lambda: f"{self.name} is raising step version to {clock.current}")
        state.step_version = clock.current

        if previous is not value and previous != value:
            state.changed_at = clock.record_change()
            self._trace(lambda: f"changed {self.name}: {previous!r} -> {value!r}")
            self.touch()
        return self

    def dispose(self) -> Property:
        """Detach from all dependencies. Keeps the last value."""
        state = self._state
        self._trace(lambda: f"disposing {self.name}")
        for dep in state.observed or []:
            dep.unsubscribe(state.recompute_callback)
        state.observed = None
        self._trace(lambda: f"disposed {self.name}")
        return self

    # --- Subscriptions ---

    def subscribe(self, fn: Subscriber) -> Property:
        """Call fn(value) whenever the value changes. Added at most once."""
        subscribers = self._state.subscribers
        if fn not in subscribers:
            subscribers.append(fn)
        return self

    def unsubscribe(self, fn: Subscriber) -> Property:
        subscribers = self._state.subscribers
        if fn in subscribers:
            subscribers.remove(fn)
        return self

    def touch(self) -> Property:
        """Call every subscriber with the current value, changed or not."""
        state = self._state
        with self._context.tracker.untracked():
            for fn in list(state.subscribers):
                fn(state.value)
        return self

    # --- Debugging ---

    def debug(self, sink: TraceSink = logging_sink) -> Property:
        """Send trace messages for this property to sink."""
        self._state.trace = sink
        return self

    def _trace(self, message: Callable[[], str]) -> None:
        self._state.trace(message, self)

    def __repr__(self) -> str:
        state = self._state
        kind = "computed" if state.fn is not None else "root"
        return f"Property({self.name}, {kind}, value={state.value!r}, step={state.step_version})"


def prop(context: EvaluationContext | None = None) -> Property:
    """A fresh property with no name, no value and no computation."""
    return Property(context)


def computed(fn: Callable[[], T]) -> Property:
    """Decorator/factory to create a computed Property named after fn.

    Usage:
        counter = prop().set(0)

        @computed
        def doubled():
            return counter.get() * 2

        doubled.get()  # 0
        counter.set(5)
        doubled.get()  # 10
    """
    return prop().with_name(fn.__name__).computed(fn)
