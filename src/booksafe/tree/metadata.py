"""Metadata store reader — parses ``<id>.metadata`` records into nodes."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from booksafe.exceptions import CorruptRecordError, StorageError
from booksafe.types import Node, NodeKind, RecordWarning

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".metadata"
TRASH_PARENT = "trash"


def parse_record(path: Path, store_dir: Path) -> Node | None:
    """Parse one metadata record.

    Returns ``None`` for tombstones (``"deleted": true``), which the host
    application keeps around until the next sync.

    Raises:
        CorruptRecordError: the record is unreadable or malformed.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CorruptRecordError(path, f"unreadable: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CorruptRecordError(path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CorruptRecordError(path, "expected a JSON object")

    if data.get("deleted") is True:
        return None

    name = data.get("visibleName")
    if not isinstance(name, str):
        raise CorruptRecordError(path, "missing or non-string visibleName")

    raw_type = data.get("type")
    try:
        kind = NodeKind(raw_type)
    except ValueError:
        raise CorruptRecordError(path, f"unexpected document type: {raw_type!r}") from None

    parent = data.get("parent")
    if parent is not None and not isinstance(parent, str):
        raise CorruptRecordError(path, "non-string parent")

    node_id = path.name[: -len(METADATA_SUFFIX)]
    trashed = parent == TRASH_PARENT
    return Node(
        id=node_id,
        parent=parent or None,
        name=name,
        kind=kind,
        backing_path=store_dir / node_id,
        trashed=trashed,
    )


class MetadataReader:
    """Reads every metadata record in a document store directory.

    Corrupt records are skipped and collected as warnings so one bad entry
    never hides the rest of the store.
    """

    def __init__(self, store_dir: Path | str) -> None:
        self.store_dir = Path(store_dir)

    def record_paths(self) -> list[Path]:
        """Metadata record files in sorted name order."""
        try:
            return sorted(
                entry
                for entry in self.store_dir.iterdir()
                if entry.name.endswith(METADATA_SUFFIX) and entry.is_file()
            )
        except OSError as e:
            raise StorageError(f"Cannot list document store {self.store_dir}: {e}") from e

    def read(self) -> tuple[list[Node], list[RecordWarning]]:
        """Parse all records, returning ``(nodes, warnings)``."""
        nodes: list[Node] = []
        warnings: list[RecordWarning] = []

        for path in self.record_paths():
            try:
                node = parse_record(path, self.store_dir)
            except CorruptRecordError as e:
                logger.warning("Skipping %s", e)
                warnings.append(RecordWarning(path=path, reason=e.reason))
                continue
            if node is None:
                logger.debug("Skipping deleted record %s", path.name)
                continue
            nodes.append(node)

        logger.debug(
            "Read %d nodes from %s (%d skipped)", len(nodes), self.store_dir, len(warnings)
        )
        return nodes, warnings


def entry_owner(name: str) -> str:
    """Node id owning a store entry: ``"abc.metadata"`` and ``"abc"`` -> ``"abc"``."""
    return name.partition(".")[0]


def index_entries(store_dir: Path | str) -> dict[str, list[str]]:
    """Map each node id to the names of its backing entries in *store_dir*.

    A node is backed by its content directory ``<id>`` plus every
    ``<id>.*`` sidecar (metadata, content, pagedata, thumbnails, ...).
    Names are ordered so the metadata record comes last: moving entries in
    this order keeps a node listed until all of its content has moved.
    """
    store_dir = Path(store_dir)
    try:
        names = sorted(entry.name for entry in store_dir.iterdir())
    except OSError as e:
        raise StorageError(f"Cannot list document store {store_dir}: {e}") from e

    index: dict[str, list[str]] = {}
    for name in names:
        index.setdefault(entry_owner(name), []).append(name)
    return {node_id: order_entries(node_id, entries) for node_id, entries in index.items()}


def order_entries(node_id: str, names: Iterable[str]) -> list[str]:
    """Sort entry names with the node's metadata record last."""
    return sorted(names, key=lambda name: (name == node_id + METADATA_SUFFIX, name))
