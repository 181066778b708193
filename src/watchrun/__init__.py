"""watchrun: watch files and run a command when they change."""

__version__ = "0.1.0"

# Public API
from watchrun.controller import Watcher, watch
from watchrun.shutdown import ShutdownHooks
from watchrun_core.models import ChangeEvent, ChangeKind, WatchSpec

__all__ = [
    "__version__",
    # Primary components
    "Watcher",
    "watch",
    "ShutdownHooks",
    # Models
    "WatchSpec",
    "ChangeEvent",
    "ChangeKind",
]
