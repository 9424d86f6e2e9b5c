"""LockRecord model and the durable store of currently hidden nodes.

The store file is the single source of truth for "what is hidden and how to
undo it". It is always rewritten whole: a new file is written next to it,
fsynced, then atomically swapped in, so a crash never leaves a torn file.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from sqlmodel import Field, SQLModel

from booksafe.exceptions import LockStateError

from .mover import fsync_directory

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

STORE_VERSION = 2


class LockRecord(SQLModel):
    """One hidden node and the paths needed to restore it.

    ``original_path`` is the document store directory and ``hidden_path`` the
    node's slot in hidden storage. ``entries`` names every backing entry
    (``<id>``, ``<id>.metadata``, ``<id>.content``, ...) that was moved from
    one to the other under the same name.
    """

    node_id: str
    target: str | None = Field(default=None)
    original_path: str
    hidden_path: str
    entries: list[str] = Field(default_factory=list)
    locked_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def original(self) -> Path:
        return Path(self.original_path)

    @property
    def hidden(self) -> Path:
        return Path(self.hidden_path)

    def entry_paths(self) -> list[tuple[Path, Path]]:
        """``(original, hidden)`` path pairs, one per backing entry."""
        return [(self.original / name, self.hidden / name) for name in self.entries]

    @property
    def label(self) -> str:
        """Human-readable name for logs and failure reports."""
        return self.target or self.node_id


class LockRecordStore:
    """Durable, ordered set of :class:`LockRecord` entries.

    Every mutation is persisted before it returns. Read and write failures
    raise :class:`LockStateError`, which callers must treat as fatal.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._records: list[LockRecord] = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> list[LockRecord]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise LockStateError(f"Cannot read lock records {self.path}: {e}") from e

        try:
            data = json.loads(text)
            if not isinstance(data, dict) or not isinstance(data.get("records"), list):
                raise ValueError("expected an object with a 'records' list")
            if data.get("version") != STORE_VERSION:
                raise ValueError(f"unsupported version {data.get('version')!r}")
            records = [LockRecord.model_validate(entry) for entry in data["records"]]
        except ValueError as e:
            raise LockStateError(f"Invalid lock record file {self.path}: {e}") from e

        logger.debug("Loaded %d lock records from %s", len(records), self.path)
        return records

    def reload(self) -> None:
        """Re-read the store file, discarding in-memory state."""
        self._records = self._load()

    def save(self) -> None:
        """Atomically rewrite the store file with the current records."""
        payload = {
            "version": STORE_VERSION,
            "records": [record.model_dump(mode="json") for record in self._records],
        }
        content = json.dumps(payload, indent=2) + "\n"

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise LockStateError(f"Cannot write lock records {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            Path(tmp_path).replace(self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise LockStateError(f"Cannot write lock records {self.path}: {e}") from e

        fsync_directory(self.path.parent)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[LockRecord]:
        return iter(list(self._records))

    def is_empty(self) -> bool:
        return not self._records

    def records(self) -> list[LockRecord]:
        return list(self._records)

    def for_node(self, node_id: str) -> LockRecord | None:
        return next((r for r in self._records if r.node_id == node_id), None)

    def for_target(self, target: str) -> LockRecord | None:
        return next((r for r in self._records if r.target == target), None)

    def for_hidden_path(self, hidden: Path) -> LockRecord | None:
        return next((r for r in self._records if r.hidden == hidden), None)

    # ------------------------------------------------------------------
    # Mutation (each call persists immediately)
    # ------------------------------------------------------------------

    def add(self, record: LockRecord) -> None:
        if self.for_node(record.node_id) is not None:
            raise LockStateError(f"Node {record.node_id} already has a lock record")
        self._records.append(record)
        try:
            self.save()
        except LockStateError:
            self._records.remove(record)
            raise

    def remove(self, record: LockRecord) -> None:
        index = self._records.index(record)
        self._records.pop(index)
        try:
            self.save()
        except LockStateError:
            self._records.insert(index, record)
            raise
