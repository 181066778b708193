"""Process-wide shutdown hooks fired once on SIGINT/SIGTERM."""

import asyncio
import logging
import signal
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownHooks:
    """Idempotent set of shutdown callbacks owned by the entry point.

    ``install()`` routes the given signals to ``fire()``. Callbacks run once,
    in registration order, however many signals arrive.
    """

    def __init__(self, signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS):
        self.signals = signals
        self._callbacks: list[Callable[[], None]] = []
        self._fired = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_handlers: list[signal.Signals] = []
        self._previous: dict[signal.Signals, object] = {}

    @property
    def fired(self) -> bool:
        return self._fired

    def add(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def fire(self) -> None:
        """Run every callback, once."""
        if self._fired:
            return
        self._fired = True
        logger.debug(f"Running {len(self._callbacks)} shutdown hook(s)")
        for callback in self._callbacks:
            callback()

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Deliver the configured signals to ``fire()`` on ``loop``."""
        self._loop = loop
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self.fire)
                self._loop_handlers.append(sig)
            except (NotImplementedError, RuntimeError):
                # Windows event loops: fall back to a plain handler that hops onto the loop
                self._previous[sig] = signal.signal(sig, self._on_signal)

    def uninstall(self) -> None:
        """Restore the signal handling that was in place before ``install()``."""
        if self._loop is not None and not self._loop.is_closed():
            for sig in self._loop_handlers:
                self._loop.remove_signal_handler(sig)
        self._loop_handlers = []
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)
        self._previous = {}
        self._loop = None

    def _on_signal(self, signum, frame) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.fire)
