"""Data anchor: the plain state record behind every Property.

A Property is a thin handle; everything it knows lives in a PropertyState.
Configuration calls copy the record into a new handle, so behavior is shared
while state stays per-instance.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from propx.property import Property
    from propx.trace import TraceSink


class _NoValue:
    """Marker returned by get() on a property that was never given a value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False


NO_VALUE = _NoValue()

# itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


class PropertyState:
    """Mutable state of one property instance."""

    __slots__ = (
        "id",
        "value",
        "name",
        "step_version",
        "changed_at",
        "verified_at",
        "fn",
        "pass_previous",
        "observed",
        "subscribers",
        "recompute_callback",
        "trace",
    )

    def __init__(self, trace: TraceSink) -> None:
        self.id = new_id()
        self.value: object = NO_VALUE
        self.name: str | None = None
        self.step_version = 0
        # Clock revisions: when the value last changed, and when a computed
        # value was last known to match its dependencies.
        self.changed_at = 0
        self.verified_at = -1
        self.fn: Callable[..., object] | None = None
        self.pass_previous = False
        # None for roots and disposed computeds; a list once armed.
        self.observed: list[Property] | None = None
        # Compared with ==, so unhashable callables and bound methods work.
        self.subscribers: list[Callable[[object], None]] = []
        self.recompute_callback: Callable[[object], None] | None = None
        self.trace = trace

    def copy(self) -> PropertyState:
        """Copy value, name, versions, computation and sink.

        Subscribers and the dependency wiring belong to the instance they were
        registered on and are not carried over.
        """
        clone = PropertyState(self.trace)
        clone.value = self.value
        clone.name = self.name
        clone.step_version = self.step_version
        clone.changed_at = self.changed_at
        clone.fn = self.fn
        return clone
