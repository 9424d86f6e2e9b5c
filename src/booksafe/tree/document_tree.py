"""DocumentTree — arena of nodes plus a children index, rebuilt every run."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from booksafe.exceptions import PathNotFoundError

from .metadata import MetadataReader

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from booksafe.types import Node, RecordWarning

logger = logging.getLogger(__name__)

_VISITING = 1
_DONE = 2


class DocumentTree:
    """Read-only parent/child hierarchy of a document store.

    Nodes are held in an arena keyed by id; the hierarchy lives in a
    separate children index, so no node references another directly.
    A parent id that does not exist in the store makes the node a
    top-level orphan. Trashed nodes stay addressable by id but are not
    reachable from the top level.

    Usage::

        tree = DocumentTree.from_store("/home/root/.local/share/remarkable/xochitl")
        node_id = tree.resolve("Articles/hobby")
    """

    def __init__(
        self,
        nodes: Iterable[Node],
        warnings: Iterable[RecordWarning] = (),
    ) -> None:
        self._nodes: dict[str, Node] = {node.id: node for node in nodes}
        self._parents: dict[str, str | None] = {}
        self._children: dict[str | None, list[str]] = {None: []}
        self.warnings: list[RecordWarning] = list(warnings)
        self._build()

    @classmethod
    def from_store(cls, store_dir: Path | str) -> DocumentTree:
        """Read every metadata record under *store_dir* and build the tree."""
        nodes, warnings = MetadataReader(store_dir).read()
        return cls(nodes, warnings)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _build(self) -> None:
        for node in self._nodes.values():
            parent = node.parent
            if parent is not None and parent not in self._nodes:
                if not node.trashed:
                    logger.debug("Orphan %s (%s): parent %s missing", node.id, node.name, parent)
                parent = None
            self._parents[node.id] = parent

        self._break_cycles()

        for node_id, parent in self._parents.items():
            if parent is None and self._nodes[node_id].trashed:
                continue
            self._children.setdefault(parent, []).append(node_id)

        for siblings in self._children.values():
            siblings.sort(key=lambda nid: (self._nodes[nid].name.casefold(), nid))

    def _break_cycles(self) -> None:
        """Detach the node closing any parent loop so the arena is a tree."""
        state: dict[str, int] = {}
        for start in sorted(self._parents):
            chain: list[str] = []
            current: str | None = start
            while current is not None and current not in state:
                state[current] = _VISITING
                chain.append(current)
                parent = self._parents[current]
                if parent is not None and state.get(parent) == _VISITING:
                    logger.warning(
                        "Parent loop at %s (%s); attaching it to the top level",
                        current,
                        self._nodes[current].name,
                    )
                    self._parents[current] = None
                    parent = None
                current = parent
            for node_id in chain:
                state[node_id] = _DONE

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def node(self, node_id: str) -> Node:
        """Return the node for *node_id*; raises ``KeyError`` if unknown."""
        return self._nodes[node_id]

    def nodes(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def parent_of(self, node_id: str) -> str | None:
        """Effective parent after orphan and loop handling."""
        return self._parents[node_id]

    def children_of(self, node_id: str | None) -> list[Node]:
        """Ordered children of *node_id*; ``None`` lists the top level."""
        return [self._nodes[child] for child in self._children.get(node_id, ())]

    def subtree(self, node_id: str) -> list[str]:
        """*node_id* followed by all of its descendants, parents before children."""
        order: list[str] = []
        stack = [node_id]
        while stack:
            current = stack.pop()
            order.append(current)
            stack.extend(reversed(self._children.get(current, [])))
        return order

    def full_path(self, node_id: str) -> str:
        """Slash-joined display names from the top level down to *node_id*."""
        names: list[str] = []
        current: str | None = node_id
        while current is not None:
            names.append(self._nodes[current].name)
            current = self._parents[current]
        return "/".join(reversed(names))

    def resolve(self, path: str) -> str | None:
        """Resolve *path* to a folder id, or ``None`` if it does not resolve."""
        from .resolver import PathResolver

        try:
            return PathResolver(self).resolve(path)
        except PathNotFoundError:
            return None

    def render(self) -> str:
        """Indented outline of every node reachable from the top level."""
        lines: list[str] = []

        def walk(parent: str | None, depth: int) -> None:
            for child in self.children_of(parent):
                marker = "/" if child.is_folder else ""
                lines.append(f"{'    ' * depth}|-- {child.name}{marker}")
                walk(child.id, depth + 1)

        walk(None, 0)
        return "\n".join(lines) + ("\n" if lines else "")
