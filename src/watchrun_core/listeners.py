"""Pluggable listener protocol for watch sessions.

A watcher publishes three notifications: ready, change and error. Hosts
implement ``WatchListener`` and register as many listeners as they like.
"""

import logging
from typing import Protocol

from watchrun_core.models import ChangeEvent

logger = logging.getLogger(__name__)


class WatchListener(Protocol):
    """Protocol for watch notifications - host can provide custom implementation."""

    def on_ready(self) -> None:
        """Initial scan finished; changes from now on are reported."""
        ...

    def on_change(self, event: ChangeEvent) -> None:
        """A watched file was added, changed or removed."""
        ...

    def on_error(self, error: BaseException) -> None:
        """The file watcher or the command failed."""
        ...


class NoOpListener:
    """Silent listener - base class for hosts interested in a subset of events."""

    def on_ready(self) -> None:
        pass

    def on_change(self, event: ChangeEvent) -> None:
        pass

    def on_error(self, error: BaseException) -> None:
        pass


class LoggingListener:
    """Implementation using stdlib logging - for debugging/development."""

    def on_ready(self) -> None:
        logger.info("Watcher ready")

    def on_change(self, event: ChangeEvent) -> None:
        logger.info(str(event))

    def on_error(self, error: BaseException) -> None:
        logger.error(f"Watcher error: {error}")


class ListenerSet:
    """Multicast to every registered listener, in registration order."""

    def __init__(self) -> None:
        self._listeners: list[WatchListener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: WatchListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove(self, listener: WatchListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def ready(self) -> None:
        for listener in list(self._listeners):
            listener.on_ready()

    def change(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            listener.on_change(event)

    def error(self, error: BaseException) -> None:
        if not self._listeners:
            logger.warning(f"Unobserved watcher error: {error}")
        for listener in list(self._listeners):
            listener.on_error(error)
