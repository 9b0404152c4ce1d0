"""Tests for propx.textual: Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from propx import prop
from propx import textual as ptx


class _MockApp:
    """Minimal mock matching the Textual App interface ptx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class TestSubscribe:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        p = prop().set(1)
        effects = []
        ptx.subscribe(app, p, effects.append)
        p.set(2)
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        p = prop().set(1)
        effects = []
        ptx.subscribe(app, p, effects.append)
        with ptx.pause(app):
            p.set(2)
        assert effects == []

    def test_fires_when_safe(self):
        app = _MockApp()
        p = prop().set(1)
        effects = []
        ptx.subscribe(app, p, effects.append)
        p.set(2)
        assert effects == [2]

    def test_fire_immediately(self):
        app = _MockApp()
        p = prop().set(1)
        effects = []
        ptx.subscribe(app, p, effects.append, fire_immediately=True)
        assert effects == [1]

    def test_follows_computed(self):
        app = _MockApp()
        root = prop().set(1)
        label = prop().computed(lambda: f"count: {root.get()}")
        effects = []
        ptx.subscribe(app, label, effects.append)
        root.set(2)
        assert effects == ["count: 2"]

    def test_catches_nomatch(self):
        """NoMatches from widget queries is swallowed."""
        app = _MockApp()
        p = prop().set(1)

        def _raise_nomatch(v):
            raise NoMatches("StatusFooter")

        # Should not raise
        unsubscribe = ptx.subscribe(app, p, _raise_nomatch)
        p.set(2)
        unsubscribe()

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        p = prop().set(1)

        def _raise_value_error(v):
            raise ValueError("boom")

        ptx.subscribe(app, p, _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            p.set(2)

    def test_unsubscribe_stops_effect(self):
        app = _MockApp()
        p = prop().set(1)
        effects = []
        unsubscribe = ptx.subscribe(app, p, effects.append)
        p.set(2)
        assert effects == [2]
        unsubscribe()
        p.set(3)
        assert effects == [2]


class TestWriter:
    def test_direct_on_app_thread(self):
        app = _MockApp()
        p = prop().set(1)
        write = ptx.writer(app, p)
        write(2)
        assert p.get() == 2
        assert app._call_from_thread_log == []

    def test_marshals_from_other_thread(self):
        app = _MockApp()
        p = prop().set(1)
        write = ptx.writer(app, p)

        t = threading.Thread(target=write, args=(5,))
        t.start()
        t.join()

        assert p.get() == 5
        assert len(app._call_from_thread_log) == 1


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert ptx.is_safe(app)

        with pytest.raises(RuntimeError):
            with ptx.pause(app):
                assert not ptx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert ptx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with ptx.pause(app):
            attrs_during = set(vars(app))
        attrs_after = set(vars(app))
        assert attrs_before == attrs_during, (
            f"pause() added attributes to app: {attrs_during - attrs_before}"
        )
        assert attrs_before == attrs_after

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with ptx.pause(app_a):
            assert not ptx.is_safe(app_a)
            assert ptx.is_safe(app_b)
