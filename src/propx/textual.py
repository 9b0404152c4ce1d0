"""Textual integration for propx. Opt-in, requires textual.

Bridges property subscriptions to widgets: effects are skipped while the app
is not running or while widgets are being swapped out (pause), and NoMatches
from widget queries is swallowed. writer() routes writes from worker threads
onto the app thread, since properties must only be touched from one thread.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("propx.textual")

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def subscribe(app, prop, effect, *, fire_immediately=False):
    """prop.subscribe() that safely bridges to Textual widgets.

    Returns a function that removes the subscription.
    """

    def _guarded(value):
        if not is_safe(app):
            return
        try:
            effect(value)
        except NoMatches:
            logger.debug("no widget matched for %s", prop.name)

    prop.subscribe(_guarded)
    if fire_immediately:
        _guarded(prop.get())

    def _unsubscribe():
        prop.unsubscribe(_guarded)

    return _unsubscribe


def writer(app, prop):
    """Return a setter for prop that is safe to call from any thread.

    Create it on the app thread. Calls from that thread set directly; calls
    from other threads are marshaled via call_from_thread.

    Usage:
        set_status = writer(app, status)

        def poll():
            set_status("connected")

        threading.Thread(target=poll, daemon=True).start()
    """
    _main = threading.get_ident()

    def _write(value):
        if threading.get_ident() != _main:
            app.call_from_thread(prop.set, value)
        else:
            prop.set(value)

    return _write
