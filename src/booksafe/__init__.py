"""booksafe: hide reading-tablet folders during a daily time window.

Crash-safe hide/restore by directory rename, driven by a durable lock record.
"""

__version__ = "0.2.0"

from booksafe._booksafe import BookSafe
from booksafe.config import BookSafeConfig, load_config
from booksafe.exceptions import (
    BookSafeError,
    ConfigError,
    CorruptRecordError,
    DestinationExistsError,
    LockStateError,
    PathNotFoundError,
    StorageError,
)
from booksafe.lock import (
    LockRecord,
    LockRecordStore,
    LockWindow,
    NetworkBlocker,
    TransitionEngine,
    UiControl,
    desired_state,
)
from booksafe.tree import DocumentTree, PathResolver
from booksafe.types import LockState, Node, NodeKind, ReconcileResult

__all__ = [
    "BookSafe",
    "BookSafeConfig",
    "BookSafeError",
    "ConfigError",
    "CorruptRecordError",
    "DestinationExistsError",
    "DocumentTree",
    "LockRecord",
    "LockRecordStore",
    "LockState",
    "LockStateError",
    "LockWindow",
    "NetworkBlocker",
    "Node",
    "NodeKind",
    "PathNotFoundError",
    "PathResolver",
    "ReconcileResult",
    "StorageError",
    "TransitionEngine",
    "UiControl",
    "__version__",
    "desired_state",
    "load_config",
]
