"""propx: reactive properties with implicit dependency tracking."""

from importlib.metadata import version as _version

__version__ = _version("propx")

from propx._anchor import NO_VALUE
from propx._tracking import (
    DependencyTracker,
    EvaluationContext,
    VersionClock,
    get_context,
    use_context,
)
from propx.property import Property, computed, prop
from propx.trace import logging_sink, null_sink
# textual NOT auto-imported, opt-in only

__all__ = [
    "NO_VALUE",
    "Property",
    "prop",
    "computed",
    "EvaluationContext",
    "VersionClock",
    "DependencyTracker",
    "get_context",
    "use_context",
    "logging_sink",
    "null_sink",
]
