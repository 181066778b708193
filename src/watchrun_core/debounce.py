"""Trailing-edge debounce on an asyncio event loop."""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Collapse bursts of requests into one deferred call.

    Every ``request()`` restarts the wait; the callback runs once, ``wait_ms``
    after the last request. Must be used from the loop's thread.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        wait_ms: int,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        """Initialize debouncer.

        Args:
            callback: Called with no arguments when the quiet period ends
            wait_ms: Quiet period in milliseconds
            loop: Event loop for timers (defaults to the running loop)
        """
        self.callback = callback
        self.wait_ms = wait_ms
        self.loop = loop or asyncio.get_running_loop()
        self.last_requested_at: float | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        """True while a call is scheduled."""
        return self._handle is not None

    def request(self) -> None:
        """Schedule the callback, replacing any pending schedule."""
        if self._handle is not None:
            self._handle.cancel()
        self.last_requested_at = self.loop.time()
        self._handle = self.loop.call_later(self.wait_ms / 1000.0, self._fire)

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Pending debounced call cancelled")

    def _fire(self) -> None:
        self._handle = None
        self.callback()
