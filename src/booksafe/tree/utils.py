"""Path helpers and string-similarity scorers for target resolution."""

from __future__ import annotations

import posixpath
import unicodedata
from collections.abc import Callable
from difflib import SequenceMatcher

Scorer = Callable[[str, str], float]
"""Similarity function returning a score in ``[0, 1]`` (1 means identical)."""


# =============================================================================
# Path Utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a slash-separated target path.

    - Strips surrounding whitespace
    - Removes leading, trailing and double slashes
    - Resolves ``.`` references

    Examples:
        normalize_path("/Books/") -> "Books"
        normalize_path("Articles//hobby") -> "Articles/hobby"
        normalize_path("") -> ""
    """
    path = path.strip().strip("/")
    if not path:
        return ""
    path = posixpath.normpath(path)
    return "" if path == "." else path


def split_segments(path: str) -> list[str]:
    """Split a target path into its non-empty segments.

    Examples:
        split_segments("Articles/hobby") -> ["Articles", "hobby"]
        split_segments("/") -> []
    """
    path = normalize_path(path)
    if not path:
        return []
    return [segment for segment in path.split("/") if segment]


def join_segments(segments: list[str]) -> str:
    return "/".join(segments)


# =============================================================================
# Similarity Scoring
# =============================================================================


def fold(text: str) -> str:
    """Case-fold *text* and strip diacritics (``"Café"`` -> ``"cafe"``)."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold().strip()


def levenshtein(a: str, b: str) -> int:
    """Calculate Levenshtein distance between two strings."""
    if a == "" or b == "":
        return max(len(a), len(b))

    matrix = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]

    for i in range(len(a) + 1):
        matrix[i][0] = i
    for j in range(len(b) + 1):
        matrix[0][j] = j

    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )

    return matrix[len(a)][len(b)]


def sequence_similarity(query: str, candidate: str) -> float:
    """Default scorer: ``SequenceMatcher`` ratio over folded strings."""
    a, b = fold(query), fold(candidate)
    if not a and not b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


def levenshtein_similarity(query: str, candidate: str) -> float:
    """Edit-distance scorer: ``1 - distance / longest`` over folded strings."""
    a, b = fold(query), fold(candidate)
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - (levenshtein(a, b) / longest)
