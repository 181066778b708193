"""File watcher implementation using watchdog."""

import asyncio
import logging
import os
from collections.abc import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from watchrun_core.debounce import Debouncer
from watchrun_core.listeners import ListenerSet
from watchrun_core.models import ChangeEvent, ChangeKind
from watchrun_core.patterns import PatternSet

logger = logging.getLogger(__name__)


class _ChangeEventHandler(FileSystemEventHandler):
    """Forward file events from the observer thread to the event loop."""

    def __init__(
        self,
        deliver: Callable[[ChangeKind, str], None],
        loop: asyncio.AbstractEventLoop,
        report_error: Callable[[BaseException], None] | None = None,
    ):
        """Initialize handler.

        Args:
            deliver: Called on the loop with the change kind and path
            loop: Event loop to deliver on
            report_error: Called on the loop with failures raised while handling an event
        """
        self.deliver = deliver
        self.loop = loop
        self.report_error = report_error

    def dispatch(self, event: FileSystemEvent) -> None:
        # Runs on the observer thread; an escaping exception would end it silently
        try:
            super().dispatch(event)
        except Exception as e:
            logger.debug(f"Failed to handle {event!r}: {e}")
            if self.report_error is not None:
                self._call_on_loop(self.report_error, e)

    def _call_on_loop(self, callback: Callable, *args) -> None:
        if self.loop.is_closed():
            return
        try:
            self.loop.call_soon_threadsafe(callback, *args)
        except RuntimeError as e:
            # Loop closed after the check above
            logger.debug(f"Event loop gone, dropping {callback!r}: {e}")

    def _post(self, kind: ChangeKind, path: str | bytes) -> None:
        self._call_on_loop(self.deliver, kind, os.fsdecode(path))

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        if event.is_directory:
            return
        self._post(ChangeKind.ADDED, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events."""
        if event.is_directory:
            return
        self._post(ChangeKind.CHANGED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file deletion events."""
        if event.is_directory:
            return
        self._post(ChangeKind.REMOVED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle renames as a removal followed by an addition."""
        if event.is_directory:
            return
        self._post(ChangeKind.REMOVED, event.src_path)
        self._post(ChangeKind.ADDED, event.dest_path)


class ChangeWatcher:
    """Watch a pattern set and feed matching changes to a debouncer."""

    health_interval = 1.0
    """Seconds between checks that the watchdog threads are still alive."""

    def __init__(
        self,
        patterns: PatternSet,
        listeners: ListenerSet,
        debouncer: Debouncer,
        initial: bool,
        loop: asyncio.AbstractEventLoop,
    ):
        """Initialize change watcher.

        Args:
            patterns: Patterns deciding which events count
            listeners: Receives ready, change and error notifications
            debouncer: Requested once per matching change
            initial: Request a run once the watch is ready
            loop: Event loop events are delivered on
        """
        self.patterns = patterns
        self.listeners = listeners
        self.debouncer = debouncer
        self.initial = initial
        self.loop = loop
        self.observer = Observer()
        self._active = False
        self._health_check: asyncio.TimerHandle | None = None
        self._lost: set = set()

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Start the observer and schedule one watch per root directory."""
        self._active = True
        self.observer.start()

        handler = _ChangeEventHandler(self._deliver, self.loop, report_error=self._report_error)
        for directory, recursive in self.patterns.watch_roots():
            try:
                self.observer.schedule(handler, str(directory), recursive=recursive)
            except OSError as e:
                logger.debug(f"Failed to watch {directory}: {e}")
                self.loop.call_soon(self._report_error, e)
            else:
                logger.debug(f"Watching {directory} (recursive: {recursive})")

        logger.info(f"Watching {len(self.patterns.patterns)} pattern(s) under {self.patterns.root}")
        self.loop.call_soon(self._ready)
        self._health_check = self.loop.call_later(self.health_interval, self._check_threads)

    def stop(self) -> None:
        """Stop the observer. Events already queued are dropped."""
        self._active = False
        if self._health_check is not None:
            self._health_check.cancel()
            self._health_check = None
        if self.observer.is_alive():
            self.observer.stop()
            self.observer.join(timeout=2.0)
            logger.info("Stopped file watcher")

    def _check_threads(self) -> None:
        """Report watchdog threads that died, e.g. on an inotify read error."""
        if not self._active:
            return

        threads = [(self.observer, "Observer thread stopped")]
        threads += [(e, f"Stopped receiving events for {e.watch.path}") for e in self.observer.emitters]
        for thread, message in threads:
            if thread not in self._lost and not thread.is_alive():
                self._lost.add(thread)
                logger.debug(message)
                self._report_error(OSError(message))

        self._health_check = self.loop.call_later(self.health_interval, self._check_threads)

    def _ready(self) -> None:
        if not self._active:
            return
        self.listeners.ready()
        if self.initial:
            self.debouncer.request()

    def _report_error(self, error: BaseException) -> None:
        if self._active:
            self.listeners.error(error)

    def _deliver(self, kind: ChangeKind, path: str) -> None:
        if not self._active or not self.patterns.matches(path):
            return

        event = ChangeEvent(kind, self.patterns.display_path(path))
        logger.debug(f"File change detected: {event}")
        self.listeners.change(event)
        self.debouncer.request()
