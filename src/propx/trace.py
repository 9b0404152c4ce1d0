"""Debug tracing for properties.

A sink receives a zero-argument message function and the property it concerns.
Messages are built lazily: null_sink never calls the function, logging_sink
only when DEBUG is enabled on the "propx.trace" logger.

Usage:
    import logging
    logging.basicConfig(level=logging.DEBUG)

    total = prop().with_name("total").computed(lambda: a.get() + b.get()).debug()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from propx.property import Property

    TraceSink = Callable[[Callable[[], str], Property], None]

logger = logging.getLogger("propx.trace")


def null_sink(message: Callable[[], str], prop: Property) -> None:
    """Default sink. Discards everything."""


def logging_sink(message: Callable[[], str], prop: Property) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("%s", message(), extra={"prop_name": prop.name})
