"""Tests for watchrun_core.listeners module."""

import logging
from unittest.mock import Mock

from watchrun_core.listeners import ListenerSet, LoggingListener, NoOpListener, WatchListener
from watchrun_core.models import ChangeEvent, ChangeKind


class TestListenerSet:
    """Tests for the multicast listener set."""

    def test_publishes_in_registration_order(self):
        calls = []
        first, second = Mock(spec=WatchListener), Mock(spec=WatchListener)
        first.on_change.side_effect = lambda e: calls.append(("first", e))
        second.on_change.side_effect = lambda e: calls.append(("second", e))

        listeners = ListenerSet()
        listeners.add(first)
        listeners.add(second)
        event = ChangeEvent(ChangeKind.ADDED, "a.txt")
        listeners.change(event)

        assert calls == [("first", event), ("second", event)]

    def test_add_is_idempotent(self):
        listener = NoOpListener()
        listeners = ListenerSet()
        listeners.add(listener)
        listeners.add(listener)
        assert len(listeners) == 1

    def test_remove_unknown_listener_is_noop(self):
        listeners = ListenerSet()
        listeners.remove(NoOpListener())
        assert len(listeners) == 0

    def test_ready_and_error_reach_every_listener(self):
        a, b = Mock(spec=WatchListener), Mock(spec=WatchListener)
        listeners = ListenerSet()
        listeners.add(a)
        listeners.add(b)
        error = OSError("boom")

        listeners.ready()
        listeners.error(error)

        for listener in (a, b):
            listener.on_ready.assert_called_once_with()
            listener.on_error.assert_called_once_with(error)

    def test_unobserved_error_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="watchrun_core.listeners"):
            ListenerSet().error(OSError("nobody home"))
        assert "Unobserved watcher error: nobody home" in caplog.text


class TestLoggingListener:
    """Tests for the logging listener."""

    def test_logs_each_notification(self, caplog):
        listener = LoggingListener()
        with caplog.at_level(logging.INFO, logger="watchrun_core.listeners"):
            listener.on_ready()
            listener.on_change(ChangeEvent(ChangeKind.REMOVED, "old.txt"))
            listener.on_error(RuntimeError("spawn failed"))

        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["Watcher ready", "unlink: old.txt", "Watcher error: spawn failed"]
        assert caplog.records[-1].levelno == logging.ERROR
