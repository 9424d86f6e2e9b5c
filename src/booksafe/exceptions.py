"""Custom exception hierarchy for booksafe."""

from __future__ import annotations

from pathlib import Path


class BookSafeError(Exception):
    """Base exception for all booksafe errors."""


class CorruptRecordError(BookSafeError):
    """Raised when a metadata record cannot be parsed into a node."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Corrupt metadata record {self.path.name}: {reason}")


class PathNotFoundError(BookSafeError):
    """Raised when a target path does not resolve to exactly one folder.

    ``remainder`` holds the segments that could not be resolved, joined by
    ``/``.
    """

    def __init__(self, path: str, remainder: str, reason: str = "") -> None:
        self.path = path
        self.remainder = remainder
        self.reason = reason
        message = f"Could not resolve {path!r}: unresolved {remainder!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DestinationExistsError(BookSafeError):
    """Raised when a move would overwrite an existing path."""

    def __init__(self, destination: Path | str) -> None:
        self.destination = Path(destination)
        super().__init__(
            f"Destination already exists: {self.destination} "
            "(interrupted earlier run or external change?)"
        )


class StorageError(BookSafeError):
    """Raised on filesystem failures (missing source, rename errors, etc.)."""


class LockStateError(BookSafeError):
    """Raised when the lock record store cannot be read or rewritten.

    Always fatal to a reconciliation run.
    """


class ConfigError(BookSafeError):
    """Raised for invalid or missing configuration."""
