"""Watch session lifecycle. Primary embed point."""

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from watchrun_core.coordinator import RunCoordinator, Spawner
from watchrun_core.debounce import Debouncer
from watchrun_core.file_watcher import ChangeWatcher
from watchrun_core.listeners import ListenerSet, WatchListener
from watchrun_core.models import RunState, WatchSpec
from watchrun_core.patterns import PatternSet, normalize_patterns

logger = logging.getLogger(__name__)


class Watcher:
    """Watch files and run a command. Primary embed point.

    Each ``open()`` starts a fresh session (pattern normalization, file
    watcher and debouncer); ``close()`` tears it down. Listeners and the run
    coordinator survive across sessions, so a command left running by a
    closed session still counts as the one in flight.
    """

    def __init__(
        self,
        spec: WatchSpec,
        listener: WatchListener | None = None,
        spawner: Spawner | None = None,
        cwd: str | Path | None = None,
    ):
        """Initialize watcher.

        Args:
            spec: Patterns, command and options
            listener: Optional first listener
            spawner: Optional process spawner (defaults to inheriting stdio)
            cwd: Directory relative patterns are resolved against (default: current directory)
        """
        self.spec = spec
        self.spawner = spawner
        self.cwd = cwd
        self._listeners = ListenerSet()
        if listener is not None:
            self._listeners.add(listener)

        self._loop: asyncio.AbstractEventLoop | None = None
        self._change_watcher: ChangeWatcher | None = None
        self._debouncer: Debouncer | None = None
        self._coordinator: RunCoordinator | None = None

    def add_listener(self, listener: WatchListener) -> "Watcher":
        self._listeners.add(listener)
        return self

    def remove_listener(self, listener: WatchListener) -> "Watcher":
        self._listeners.remove(listener)
        return self

    @property
    def is_open(self) -> bool:
        return self._change_watcher is not None

    @property
    def run_state(self) -> RunState:
        """Run state of the command, including a run outliving its session."""
        return self._coordinator.state if self._coordinator else RunState.IDLE

    def open(self, loop: asyncio.AbstractEventLoop | None = None) -> "Watcher":
        """Start watching, closing the previous session first.

        A command still running from the previous session is not duplicated:
        the new session's first run waits for it to finish.

        Raises:
            RuntimeError: If no running event loop is available
        """
        self.close()

        loop = loop or asyncio.get_running_loop()
        if not loop.is_running():
            raise RuntimeError(
                "Event loop must be running before open(). "
                "Call open() from a coroutine or a loop callback."
            )
        self._loop = loop

        # Keep the coordinator while its command runs; replace it once idle and stale
        coordinator = self._coordinator
        reusable = coordinator is not None and (
            coordinator.running or (not coordinator.stopped and coordinator.loop is loop)
        )
        if not reusable:
            self._coordinator = RunCoordinator(
                self.spec.command,
                self.spec.args,
                on_error=self._listeners.error,
                spawner=self.spawner,
                loop=loop,
            )

        patterns = PatternSet(normalize_patterns(self.spec.patterns, self.cwd), root=self.cwd)
        self._debouncer = Debouncer(self._coordinator.request, self.spec.debounce_ms, loop=loop)
        self._change_watcher = ChangeWatcher(
            patterns, self._listeners, self._debouncer, self.spec.initial, loop
        )
        self._change_watcher.start()

        logger.info(f"Watch session opened for '{self.spec.command_line}'")
        return self

    def close(self) -> "Watcher":
        """Stop watching. A command already running is left to finish, without a rerun."""
        if self._change_watcher is None:
            return self

        self._debouncer.cancel()
        try:
            self._change_watcher.stop()
        except Exception as e:
            logger.debug(f"Error stopping file watcher: {e}")
            self._listeners.error(e)

        # Changes seen by this session are not carried into the next one
        self._coordinator.drop_pending()

        self._change_watcher = None
        self._debouncer = None
        self._loop = None
        logger.info(f"Watch session closed for '{self.spec.command_line}'")
        return self

    async def terminate(self, timeout: float = 5.0) -> None:
        """Terminate the running command, whether or not its session is still open.

        The next ``open()`` starts with a fresh coordinator.
        """
        if self._coordinator is not None:
            await self._coordinator.terminate(timeout)


def watch(
    patterns: str | Iterable[str],
    command: str,
    args: Iterable[str] = (),
    *,
    initial: bool = True,
    debounce_ms: int = 250,
    listener: WatchListener | None = None,
) -> Watcher:
    """Create a watcher from loose arguments and open it on the running loop."""
    if isinstance(patterns, str):
        patterns = [patterns]
    spec = WatchSpec(
        patterns=tuple(patterns),
        command=command,
        args=tuple(args),
        initial=initial,
        debounce_ms=debounce_ms,
    )
    return Watcher(spec, listener=listener).open()
