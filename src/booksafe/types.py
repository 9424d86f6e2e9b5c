"""Core datatypes: Node, NodeKind, LockState, ReconcileResult, etc."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class NodeKind(Enum):
    """Kind of entry in the document store."""

    FOLDER = "CollectionType"
    DOCUMENT = "DocumentType"


class LockState(Enum):
    """Desired (or actual) visibility of the configured targets."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"


@dataclass(frozen=True, slots=True)
class Node:
    """One document or folder from the metadata store.

    Attributes:
        id: Externally assigned identifier (metadata file stem).
        parent: Parent id, ``None`` for top-level entries.
        name: Display name. Not unique among siblings.
        kind: Folder or document.
        backing_path: Per-node content directory inside the store.
        trashed: True when the host application moved the node to its trash.
    """

    id: str
    parent: str | None
    name: str
    kind: NodeKind
    backing_path: Path
    trashed: bool = False

    @property
    def is_folder(self) -> bool:
        return self.kind is NodeKind.FOLDER


@dataclass(frozen=True, slots=True)
class RecordWarning:
    """A metadata record that was skipped while reading the store."""

    path: Path
    reason: str


@dataclass
class MoveResult:
    """Result of a move operation."""

    success: bool
    message: str
    old_path: Path | None = None
    new_path: Path | None = None


@dataclass
class TargetFailure:
    """A single target (or record) that could not be transitioned."""

    target: str
    kind: str
    message: str


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation run."""

    desired: LockState
    locked: int = 0
    unlocked: int = 0
    unchanged: int = 0
    recovered: int = 0
    warnings: int = 0
    failures: list[TargetFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def success(self) -> bool:
        return not self.failures

    def add_failure(self, target: str, error: Exception) -> None:
        self.failures.append(
            TargetFailure(target=target, kind=type(error).__name__, message=str(error))
        )

    def summary(self) -> str:
        """One-line summary suitable for logging."""
        text = (
            f"{self.desired.value}: locked={self.locked} unlocked={self.unlocked} "
            f"unchanged={self.unchanged} failed={self.failed}"
        )
        if self.recovered:
            text += f" recovered={self.recovered}"
        if self.warnings:
            text += f" corrupt_records={self.warnings}"
        return text
