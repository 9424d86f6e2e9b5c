"""Locking: schedule, crash-safe mover, lock records, transition engine."""

from booksafe.lock.engine import TransitionEngine
from booksafe.lock.mover import move
from booksafe.lock.protocols import (
    NetworkBlocker,
    NullNetworkBlocker,
    NullUiControl,
    SystemctlUiControl,
    UiControl,
)
from booksafe.lock.records import LockRecord, LockRecordStore
from booksafe.lock.schedule import LockWindow, desired_state, load_timezone, parse_time_of_day

__all__ = [
    "LockRecord",
    "LockRecordStore",
    "LockWindow",
    "NetworkBlocker",
    "NullNetworkBlocker",
    "NullUiControl",
    "SystemctlUiControl",
    "TransitionEngine",
    "UiControl",
    "desired_state",
    "load_timezone",
    "move",
    "parse_time_of_day",
]
