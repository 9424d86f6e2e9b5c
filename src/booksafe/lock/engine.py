"""TransitionEngine — bring hidden/visible state in line with the schedule.

Locking a target hides its whole subtree. Every node under the resolved
folder gets a slot ``<hidden>/<id>/`` and each of its backing entries
(``<id>``, ``<id>.metadata``, ``<id>.content``, ...) is renamed into that
slot, one rename per entry. The node's record is persisted as soon as its
last entry has moved, and dropped only after its last entry is back.

One call to :meth:`TransitionEngine.reconcile` is one run:

1. Recovery: finish transitions a previous run was interrupted in.
2. Locked: hide every not yet recorded node of each target's subtree.
3. Unlocked: move every recorded node back.

Each configured target is counted exactly once, as locked (or unlocked),
unchanged or failed. A failing target is reported and skipped. Only lock
record store failures (:class:`LockStateError`) abort the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from booksafe.exceptions import (
    BookSafeError,
    DestinationExistsError,
    LockStateError,
    PathNotFoundError,
    StorageError,
)
from booksafe.tree import DocumentTree, MetadataReader, PathResolver, sequence_similarity
from booksafe.tree.metadata import entry_owner, index_entries, order_entries
from booksafe.types import LockState, ReconcileResult

from .mover import move
from .records import LockRecord, LockRecordStore
from .schedule import desired_state

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import time

    from booksafe.tree import Scorer
    from booksafe.types import Node, RecordWarning

    from .schedule import LockWindow

logger = logging.getLogger(__name__)


@dataclass
class Conflict:
    """A node recovery could not settle; reported once, under a target if one covers it."""

    label: str
    error: BookSafeError
    reported: bool = False


class TransitionEngine:
    """Reconciles targets against a :class:`LockRecordStore`.

    The caller must guarantee exclusive access to the document store for
    the duration of a run (stop the reading application first).
    """

    def __init__(
        self,
        store_dir: Path | str,
        hidden_dir: Path | str,
        records: LockRecordStore,
        *,
        scorer: Scorer = sequence_similarity,
    ) -> None:
        self.store_dir = Path(store_dir)
        self.hidden_dir = Path(hidden_dir)
        self.records = records
        self.scorer = scorer

    def hidden_path(self, node_id: str) -> Path:
        """Slot holding *node_id*'s entries while it is hidden."""
        return self.hidden_dir / node_id

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(
        self,
        targets: Sequence[str],
        window: LockWindow,
        now: datetime | time | None = None,
    ) -> ReconcileResult:
        """Reload state, rebuild the tree and reconcile for *now*."""
        if now is None:
            now = datetime.now(UTC)
        desired = desired_state(now, window)
        self.records.reload()
        return self.reconcile(self.read_tree(), targets, desired)

    def read_tree(self) -> DocumentTree:
        """Tree of the live store plus every node sitting in hidden storage.

        Hidden nodes stay resolvable, so a target that is already hidden is
        recognised, and a recovered record gets its display path back. When
        a node is present in both places the live record wins.
        """
        nodes: list[Node] = []
        warnings: list[RecordWarning] = []

        for slot in self._hidden_slots():
            try:
                slot_nodes, slot_warnings = MetadataReader(slot).read()
            except StorageError as e:
                logger.warning("Cannot read hidden slot %s: %s", slot, e)
                continue
            nodes.extend(slot_nodes)
            warnings.extend(slot_warnings)

        try:
            live_nodes, live_warnings = MetadataReader(self.store_dir).read()
        except StorageError as e:
            logger.error("Cannot read document store, only hidden nodes will resolve: %s", e)
        else:
            nodes.extend(live_nodes)
            warnings.extend(live_warnings)

        return DocumentTree(nodes, warnings)

    def reconcile(
        self,
        tree: DocumentTree,
        targets: Sequence[str],
        desired: LockState,
    ) -> ReconcileResult:
        """Run recovery, then lock or unlock to reach *desired*."""
        result = ReconcileResult(desired=desired, warnings=len(tree.warnings))

        try:
            self.hidden_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create hidden storage %s: %s", self.hidden_dir, e)

        conflicts = self._recover(tree, result)
        resolver = PathResolver(tree, self.scorer)

        if desired is LockState.LOCKED:
            self._lock(tree, resolver, targets, result, conflicts)
        else:
            self._unlock(tree, resolver, targets, result, conflicts)

        for conflict in conflicts.values():
            if not conflict.reported:
                result.add_failure(conflict.label, conflict.error)

        log = logger.warning if result.failures else logger.info
        log("Reconciled %s", result.summary())
        for failure in result.failures:
            logger.warning("  %s: %s: %s", failure.target, failure.kind, failure.message)
        return result

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def _recover(self, tree: DocumentTree, result: ReconcileResult) -> dict[str, Conflict]:
        """Complete interrupted transitions. Returns the nodes left in conflict."""
        conflicts: dict[str, Conflict] = {}

        for record in self.records:
            located = [
                (original, original.exists(), hidden.exists())
                for original, hidden in record.entry_paths()
            ]
            if all(in_hidden and not in_store for _, in_store, in_hidden in located):
                continue

            both = [path for path, in_store, in_hidden in located if in_store and in_hidden]
            neither = [path for path, in_store, in_hidden in located if not (in_store or in_hidden)]
            if both or neither:
                error: BookSafeError = (
                    DestinationExistsError(both[0])
                    if both
                    else StorageError(f"{neither[0].name} is neither hidden nor in the store")
                )
                logger.error("Cannot recover %s, record kept: %s", record.label, error)
                conflicts[record.node_id] = Conflict(record.label, error)
                continue

            logger.info("Completing interrupted unlock of %s", record.label)
            try:
                self._reveal(record)
            except LockStateError:
                raise
            except BookSafeError as e:
                logger.error("Cannot recover %s, record kept: %s", record.label, e)
                conflicts[record.node_id] = Conflict(record.label, e)
                continue
            result.recovered += 1

        index: dict[str, list[str]] | None = None
        for slot in self._hidden_slots():
            if self.records.for_hidden_path(slot) is not None:
                continue
            node_id = slot.name
            label = tree.full_path(node_id) if node_id in tree else node_id

            try:
                hidden_names = sorted(entry.name for entry in slot.iterdir())
            except OSError as e:
                conflicts[node_id] = Conflict(label, StorageError(f"Cannot list {slot}: {e}"))
                continue
            if not hidden_names:
                self._remove_slot(slot)
                continue

            if index is None:
                index = self._store_index()
            live_names = index.get(node_id, [])
            foreign = [name for name in hidden_names if entry_owner(name) != node_id]
            clash = sorted(set(hidden_names) & set(live_names))
            if foreign or clash:
                error = (
                    StorageError(f"Unexpected entry {foreign[0]!r} in hidden slot {slot}")
                    if foreign
                    else DestinationExistsError(self.store_dir / clash[0])
                )
                logger.error("Cannot recover hidden slot %s: %s", slot, error)
                conflicts[node_id] = Conflict(label, error)
                continue

            logger.info("Completing interrupted lock of %s", label)
            try:
                for name in live_names:
                    move(self.store_dir / name, slot / name)
            except BookSafeError as e:
                logger.error("Cannot recover hidden slot %s: %s", slot, e)
                conflicts[node_id] = Conflict(label, e)
                continue

            self.records.add(
                LockRecord(
                    node_id=node_id,
                    target=label if node_id in tree else None,
                    original_path=str(self.store_dir),
                    hidden_path=str(slot),
                    entries=order_entries(node_id, [*hidden_names, *live_names]),
                )
            )
            result.recovered += 1

        return conflicts

    def _hidden_slots(self) -> list[Path]:
        try:
            return sorted(entry for entry in self.hidden_dir.iterdir() if entry.is_dir())
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning("Cannot scan hidden storage %s: %s", self.hidden_dir, e)
            return []

    def _store_index(self) -> dict[str, list[str]]:
        try:
            return index_entries(self.store_dir)
        except StorageError as e:
            logger.error("%s", e)
            return {}

    def _remove_slot(self, slot: Path) -> None:
        try:
            slot.rmdir()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Cannot remove hidden slot %s: %s", slot, e)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _lock(
        self,
        tree: DocumentTree,
        resolver: PathResolver,
        targets: Sequence[str],
        result: ReconcileResult,
        conflicts: dict[str, Conflict],
    ) -> None:
        index = self._store_index()

        for target in targets:
            try:
                root = resolver.resolve(target)
            except PathNotFoundError as e:
                logger.warning("Cannot lock %s: %s", target, e)
                result.add_failure(target, e)
                continue

            nodes = tree.subtree(root)
            blocked = [node_id for node_id in nodes if node_id in conflicts]
            if blocked:
                conflict = conflicts[blocked[0]]
                conflict.reported = True
                logger.warning("Cannot lock %s: %s", target, conflict.error)
                result.add_failure(target, conflict.error)
                continue

            # Children first, so a folder disappears only once it is empty.
            pending = [
                node_id for node_id in reversed(nodes) if self.records.for_node(node_id) is None
            ]
            if not pending:
                result.unchanged += 1
                continue

            try:
                for node_id in pending:
                    self._hide(node_id, target, index.get(node_id, []))
            except LockStateError:
                raise
            except BookSafeError as e:
                logger.warning("Cannot lock %s: %s", target, e)
                result.add_failure(target, e)
                continue

            logger.info("Locked %s (%d nodes)", target, len(pending))
            result.locked += 1

    def _unlock(
        self,
        tree: DocumentTree,
        resolver: PathResolver,
        targets: Sequence[str],
        result: ReconcileResult,
        conflicts: dict[str, Conflict],
    ) -> None:
        handled: set[str] = set()
        for target in targets:
            covered = self._records_for(tree, resolver, target)
            handled.update(record.node_id for record in covered)
            if not covered:
                result.unchanged += 1
            elif self._reveal_group(target, covered, result, conflicts):
                result.unlocked += 1

        # Nodes no configured target covers any more are revealed too.
        leftovers: dict[str, list[LockRecord]] = {}
        for record in self.records:
            if record.node_id not in handled and record.node_id not in conflicts:
                leftovers.setdefault(record.label, []).append(record)
        for label, group in leftovers.items():
            if self._reveal_group(label, group, result, conflicts):
                result.unlocked += 1

    def _records_for(
        self, tree: DocumentTree, resolver: PathResolver, target: str
    ) -> list[LockRecord]:
        """Records of the nodes *target* covers, found by node rather than by name."""
        try:
            nodes = set(tree.subtree(resolver.resolve(target)))
        except PathNotFoundError:
            return [record for record in self.records if record.target == target]
        return [record for record in self.records if record.node_id in nodes]

    def _reveal_group(
        self,
        label: str,
        records: list[LockRecord],
        result: ReconcileResult,
        conflicts: dict[str, Conflict],
    ) -> bool:
        """Reveal *records*, parents first. Reports one failure for the group."""
        error: BookSafeError | None = None
        for record in reversed(records):
            conflict = conflicts.get(record.node_id)
            if conflict is not None:
                conflict.reported = True
                error = error or conflict.error
                continue
            try:
                self._reveal(record)
            except LockStateError:
                raise
            except BookSafeError as e:
                logger.warning("Cannot unlock %s (%s): %s", label, record.node_id, e)
                error = error or e
                continue
            logger.info("Unlocked %s (%s)", label, record.node_id)

        if error is not None:
            result.add_failure(label, error)
            return False
        return True

    # ------------------------------------------------------------------
    # Single node
    # ------------------------------------------------------------------

    def _hide(self, node_id: str, target: str, names: list[str]) -> None:
        if not names:
            raise StorageError(f"No backing entries for {node_id} in {self.store_dir}")
        slot = self.hidden_path(node_id)
        if slot.exists():
            raise DestinationExistsError(slot)
        try:
            slot.mkdir()
        except OSError as e:
            raise StorageError(f"Cannot create hidden slot {slot}: {e}") from e

        moved: list[str] = []
        try:
            for name in names:
                move(self.store_dir / name, slot / name)
                moved.append(name)
        except BookSafeError:
            self._roll_back(slot, moved)
            raise

        self.records.add(
            LockRecord(
                node_id=node_id,
                target=target,
                original_path=str(self.store_dir),
                hidden_path=str(slot),
                entries=names,
            )
        )

    def _roll_back(self, slot: Path, moved: list[str]) -> None:
        for name in reversed(moved):
            try:
                move(slot / name, self.store_dir / name)
            except BookSafeError as e:
                logger.error("Cannot roll back %s, the next run will finish hiding it: %s", slot, e)
                return
        self._remove_slot(slot)

    def _reveal(self, record: LockRecord) -> None:
        """Move every still hidden entry back, then drop the record and the slot."""
        for original, hidden in record.entry_paths():
            if hidden.exists() and not original.exists():
                move(hidden, original)
        self.records.remove(record)
        self._remove_slot(record.hidden)
