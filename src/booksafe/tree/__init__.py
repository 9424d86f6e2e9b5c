"""Document store model: metadata reader, tree arena, path resolution."""

from booksafe.tree.document_tree import DocumentTree
from booksafe.tree.metadata import MetadataReader, index_entries, parse_record
from booksafe.tree.resolver import AMBIGUITY_MARGIN, SIMILARITY_THRESHOLD, PathResolver
from booksafe.tree.utils import (
    Scorer,
    levenshtein_similarity,
    normalize_path,
    sequence_similarity,
    split_segments,
)

__all__ = [
    "AMBIGUITY_MARGIN",
    "SIMILARITY_THRESHOLD",
    "DocumentTree",
    "MetadataReader",
    "PathResolver",
    "Scorer",
    "index_entries",
    "levenshtein_similarity",
    "normalize_path",
    "parse_record",
    "sequence_similarity",
    "split_segments",
]
