"""PathResolver — map ``"Articles/hobby"`` to one folder id.

Matching per path segment, against the children of the node matched so far:

1. Exact, case-sensitive name match (must be unique among siblings).
2. Fuzzy match: candidates ranked by a pluggable scorer. The best one is
   accepted only if it scores above ``threshold`` and no runner-up is within
   ``margin`` of it. Near-ties are rejected, never guessed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from booksafe.exceptions import PathNotFoundError

from .utils import join_segments, sequence_similarity, split_segments

if TYPE_CHECKING:
    from booksafe.types import Node

    from .document_tree import DocumentTree
    from .utils import Scorer

SIMILARITY_THRESHOLD = 0.75
"""A fuzzy candidate must score strictly above this to be accepted."""

AMBIGUITY_MARGIN = 0.05
"""Runner-ups scoring within this distance of the best make the match ambiguous."""


@dataclass(frozen=True, slots=True)
class Candidate:
    """A sibling scored against a path segment."""

    node: Node
    score: float


class PathResolver:
    """Resolves slash-separated display paths against a :class:`DocumentTree`.

    Never creates nodes. The final node must be a folder.
    """

    def __init__(
        self,
        tree: DocumentTree,
        scorer: Scorer = sequence_similarity,
        *,
        threshold: float = SIMILARITY_THRESHOLD,
        margin: float = AMBIGUITY_MARGIN,
    ) -> None:
        self.tree = tree
        self.scorer = scorer
        self.threshold = threshold
        self.margin = margin

    def resolve(self, path: str) -> str:
        """Return the id of the folder named by *path*.

        Raises:
            PathNotFoundError: some segment has no acceptable match, the
                match is ambiguous, or the final node is a document.
        """
        segments = split_segments(path)
        if not segments:
            raise PathNotFoundError(path, "", "empty path")

        node = self._match_segment(
            path, segments[0], join_segments(segments), self.tree.children_of(None)
        )
        for index in range(1, len(segments)):
            remainder = join_segments(segments[index:])
            node = self._match_segment(
                path, segments[index], remainder, self.tree.children_of(node.id)
            )

        if not node.is_folder:
            raise PathNotFoundError(
                path, segments[-1], f"{self.tree.full_path(node.id)!r} is a document, not a folder"
            )
        return node.id

    def rank(self, segment: str, candidates: list[Node]) -> list[Candidate]:
        """Score *candidates* against *segment*, best first."""
        scored = [Candidate(node, self.scorer(segment, node.name)) for node in candidates]
        scored.sort(key=lambda c: (-c.score, c.node.name, c.node.id))
        return scored

    def _match_segment(
        self, path: str, segment: str, remainder: str, children: list[Node]
    ) -> Node:
        exact = [child for child in children if child.name == segment]
        if len(exact) == 1:
            return exact[0]
        if len(exact) > 1:
            raise PathNotFoundError(
                path, remainder, f"{len(exact)} siblings are named {segment!r}"
            )

        ranked = self.rank(segment, children)
        if not ranked:
            raise PathNotFoundError(path, remainder, f"no entries to match {segment!r}")

        best = ranked[0]
        if best.score <= self.threshold:
            raise PathNotFoundError(
                path,
                remainder,
                f"no close match for {segment!r}, closest: {_describe(ranked[:3])}",
            )

        contenders = [c for c in ranked[1:] if best.score - c.score <= self.margin]
        if contenders:
            raise PathNotFoundError(
                path,
                remainder,
                f"ambiguous match for {segment!r}: {_describe([best, *contenders])}",
            )
        return best.node


def _describe(candidates: list[Candidate]) -> str:
    return ", ".join(f"{c.node.name!r} ({c.score:.2f})" for c in candidates)
