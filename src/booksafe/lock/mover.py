"""Crash-safe mover — relocate one store entry with a single rename."""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path

from booksafe.exceptions import DestinationExistsError, StorageError
from booksafe.types import MoveResult

logger = logging.getLogger(__name__)


def fsync_directory(path: Path) -> None:
    """Flush a directory entry change to disk where the platform allows it."""
    try:
        fd = os.open(path, os.O_RDONLY)
    except OSError:
        return
    try:
        with contextlib.suppress(OSError):
            os.fsync(fd)
    finally:
        os.close(fd)


def move(src: Path | str, dest: Path | str) -> MoveResult:
    """Rename *src* to *dest*. Never copies, never deletes, never overwrites.

    Either the rename happened (only *dest* exists) or nothing changed.

    Raises:
        DestinationExistsError: *dest* already exists.
        StorageError: *src* is missing, *dest*'s parent is missing, or the
            rename itself failed (e.g. across filesystems).
    """
    src = Path(src)
    dest = Path(dest)

    if not src.exists():
        raise StorageError(f"Source not found: {src}")
    if dest.exists() or dest.is_symlink():
        raise DestinationExistsError(dest)
    if not dest.parent.is_dir():
        raise StorageError(f"Destination parent does not exist: {dest.parent}")

    try:
        os.rename(src, dest)
    except OSError as e:
        raise StorageError(f"Failed to move {src} to {dest}: {e}") from e

    fsync_directory(dest.parent)
    if src.parent != dest.parent:
        fsync_directory(src.parent)

    logger.debug("Renamed %s -> %s", src, dest)
    return MoveResult(success=True, message=f"Moved {src} to {dest}", old_path=src, new_path=dest)
