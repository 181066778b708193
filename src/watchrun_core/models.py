"""Shared data models for watchrun_core."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class WatchSpec:
    """What to watch and what to run."""

    patterns: tuple[str, ...]
    """Glob patterns to watch, in the order given."""

    command: str
    """Executable to run."""

    args: tuple[str, ...] = ()
    """Arguments passed to the command."""

    initial: bool = True
    """Run the command once when the watch is ready."""

    debounce_ms: int = 250
    """Quiet period after the last change before the command runs."""

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples
        object.__setattr__(self, "patterns", tuple(str(p) for p in self.patterns))
        object.__setattr__(self, "args", tuple(str(a) for a in self.args))
        if not isinstance(self.debounce_ms, int) or self.debounce_ms <= 0:
            raise ValueError(f"debounce_ms must be a positive integer, got {self.debounce_ms!r}")

    @property
    def command_line(self) -> str:
        """Command and arguments joined for display."""
        return " ".join((self.command, *self.args))


class RunState(Enum):
    """Execution state of a RunCoordinator."""

    IDLE = "idle"
    RUNNING = "running"
    RUNNING_PENDING = "running_pending"
    """Running, and a rerun is owed once the current run completes."""


class ChangeKind(Enum):
    """Kind of file-system change."""

    ADDED = "add"
    CHANGED = "change"
    REMOVED = "unlink"


@dataclass(frozen=True)
class ChangeEvent:
    """A single file change reported to listeners."""

    kind: ChangeKind
    path: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.path}"
