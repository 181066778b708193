"""watchrun-core: change aggregation and single-flight command execution."""

__version__ = "0.1.0"

# Models
from watchrun_core.models import ChangeEvent, ChangeKind, RunState, WatchSpec

# Building blocks
from watchrun_core.coordinator import RunCoordinator, spawn_process
from watchrun_core.debounce import Debouncer
from watchrun_core.file_watcher import ChangeWatcher
from watchrun_core.listeners import ListenerSet, LoggingListener, NoOpListener, WatchListener
from watchrun_core.patterns import PatternSet, normalize_patterns

__all__ = [
    "__version__",
    # Models
    "WatchSpec",
    "RunState",
    "ChangeKind",
    "ChangeEvent",
    # Execution
    "RunCoordinator",
    "Debouncer",
    "spawn_process",
    # Watching
    "ChangeWatcher",
    "PatternSet",
    "normalize_patterns",
    # Listeners
    "WatchListener",
    "ListenerSet",
    "NoOpListener",
    "LoggingListener",
]
