"""Single-flight command execution with a queued rerun."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from watchrun_core.models import RunState

logger = logging.getLogger(__name__)

Spawner = Callable[[str, Sequence[str]], Awaitable[asyncio.subprocess.Process]]


async def spawn_process(command: str, args: Sequence[str]) -> asyncio.subprocess.Process:
    """Start the command with the caller's stdin, stdout and stderr."""
    return await asyncio.create_subprocess_exec(command, *args)


class RunCoordinator:
    """Run a command, never more than one instance at a time.

    A request arriving while the command runs is remembered (RUNNING_PENDING)
    and answered with exactly one rerun once the current run completes.
    Exit codes, zero or not, are normal completions. Spawn and runtime
    exceptions are handed to ``on_error``.
    """

    def __init__(
        self,
        command: str,
        args: Sequence[str] = (),
        on_error: Callable[[BaseException], None] | None = None,
        spawner: Spawner | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        """Initialize coordinator.

        Args:
            command: Executable to run
            args: Arguments for the command
            on_error: Receives spawn/runtime exceptions
            spawner: Coroutine function starting the process (defaults to spawn_process)
            loop: Event loop to run on (defaults to the running loop)
        """
        self.command = command
        self.args = tuple(args)
        self.on_error = on_error
        self.spawner = spawner or spawn_process
        self.loop = loop or asyncio.get_running_loop()
        self._state = RunState.IDLE
        self._task: asyncio.Task | None = None
        self._process: asyncio.subprocess.Process | None = None
        self._stopped = False

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is not RunState.IDLE

    @property
    def stopped(self) -> bool:
        """True once terminate() was called; requests are ignored from then on."""
        return self._stopped

    def drop_pending(self) -> None:
        """Forget an owed rerun. The in-flight run, if any, carries on."""
        if self._state is RunState.RUNNING_PENDING:
            logger.debug(f"Dropping queued rerun of '{self.command}'")
            self._state = RunState.RUNNING

    def request(self) -> None:
        """Run the command now, or once more after the current run."""
        if self._stopped:
            logger.debug(f"Ignoring run request for '{self.command}': coordinator stopped")
            return

        if self._state is RunState.IDLE:
            self._state = RunState.RUNNING
            logger.debug(f"Running '{self.command}' with args {list(self.args)}")
            self._task = self.loop.create_task(self._execute())
            self._task.add_done_callback(self._on_done)
        else:
            self._state = RunState.RUNNING_PENDING
            logger.debug(f"'{self.command}' still running, rerun queued")

    async def _execute(self) -> int:
        process = await self.spawner(self.command, self.args)
        self._process = process
        try:
            return await process.wait()
        finally:
            self._process = None

    def _on_done(self, task: asyncio.Task) -> None:
        rerun = self._state is RunState.RUNNING_PENDING
        self._state = RunState.IDLE
        self._task = None

        # Loop shutdown: nothing to report and no one left to rerun for
        if task.cancelled():
            return

        error = task.exception()
        if rerun:
            self.request()

        if error is not None:
            logger.debug(f"Failed to run '{self.command}': {error}")
            if self.on_error:
                self.on_error(error)
        else:
            logger.debug(f"'{self.command}' exited with code {task.result()}")

    async def terminate(self, timeout: float = 5.0) -> None:
        """Stop accepting requests and end the in-flight run, if any.

        Sends SIGTERM (TerminateProcess on Windows) and escalates to kill
        when the process outlives ``timeout`` seconds.
        """
        self._stopped = True
        self.drop_pending()

        task = self._task
        if task is None:
            return

        if self._process is not None:
            logger.info(f"Terminating '{self.command}' (pid {self._process.pid})")
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass  # already exited

        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            if self._process is not None:
                logger.warning(f"'{self.command}' did not exit after {timeout}s, killing it")
                try:
                    self._process.kill()
                except ProcessLookupError:
                    pass  # already exited
            await asyncio.wait({task})
