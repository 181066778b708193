"""Pytest configuration and fixtures."""

import asyncio
import sys
import time
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from watchrun_core.listeners import NoOpListener  # noqa: E402


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process, finished by the test."""

    def __init__(self, pid: int):
        self.pid = pid
        self.returncode = None
        self.terminated = False
        self.killed = False
        self._exited = asyncio.Event()

    async def wait(self):
        await self._exited.wait()
        return self.returncode

    def finish(self, code=0):
        if self.returncode is None:
            self.returncode = code
            self._exited.set()

    def terminate(self):
        self.terminated = True
        self.finish(-15)

    def kill(self):
        self.killed = True
        self.finish(-9)


class FakeSpawner:
    """Records spawned processes and the peak number running at once."""

    def __init__(self, error=None, duration=None):
        self.error = error
        self.duration = duration
        self.calls = []
        self.processes = []
        self.max_in_flight = 0

    @property
    def in_flight(self):
        return sum(1 for p in self.processes if p.returncode is None)

    async def __call__(self, command, args):
        self.calls.append((command, tuple(args)))
        if self.error is not None:
            raise self.error

        process = FakeProcess(pid=1000 + len(self.processes))
        self.processes.append(process)
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.duration is not None:
            asyncio.get_running_loop().call_later(self.duration, process.finish, 0)
        return process


class RecordingListener(NoOpListener):
    """Listener that keeps everything it is told."""

    def __init__(self):
        self.ready = 0
        self.changes = []
        self.errors = []

    def on_ready(self):
        self.ready += 1

    def on_change(self, event):
        self.changes.append(event)

    def on_error(self, error):
        self.errors.append(error)


async def settle(delay=0.01):
    """Let pending loop callbacks and tasks run."""
    for _ in range(3):
        await asyncio.sleep(delay)


async def wait_until(predicate, timeout=5.0, interval=0.02):
    """Poll until predicate() is true; fail the test on timeout."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail(f"Timed out after {timeout}s waiting for condition")
        await asyncio.sleep(interval)


@pytest.fixture
def spawner():
    return FakeSpawner()


@pytest.fixture
def listener():
    return RecordingListener()
