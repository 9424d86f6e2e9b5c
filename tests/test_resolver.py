"""Tests for PathResolver — exact, fuzzy and ambiguous resolution."""

from __future__ import annotations

import pytest

from booksafe.exceptions import PathNotFoundError
from booksafe.tree import DocumentTree, PathResolver, levenshtein_similarity


@pytest.fixture
def tree(library, store_dir) -> DocumentTree:
    return DocumentTree.from_store(store_dir)


@pytest.fixture
def resolver(tree) -> PathResolver:
    return PathResolver(tree)


# ---------------------------------------------------------------------------
# Exact matches
# ---------------------------------------------------------------------------


class TestExact:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            pytest.param("Books", "books", id="top-level"),
            pytest.param("Articles/hobby", "hobby", id="nested"),
            pytest.param("/Articles/hobby/", "hobby", id="surrounding-slashes"),
            pytest.param("Articles//work", "work", id="double-slash"),
        ],
    )
    def test_resolves(self, resolver, path: str, expected: str):
        assert resolver.resolve(path) == expected

    def test_case_sensitive_exact_wins_over_fuzzy_twin(self, resolver):
        assert resolver.resolve("notes") == "notes-lower"
        assert resolver.resolve("Notes") == "notes-upper"

    def test_duplicate_exact_names_are_ambiguous(self, library, store_dir):
        library.folder("books-2", "Books")
        tree = DocumentTree.from_store(store_dir)
        with pytest.raises(PathNotFoundError) as exc_info:
            PathResolver(tree).resolve("Books")
        assert "2 siblings" in exc_info.value.reason


# ---------------------------------------------------------------------------
# Fuzzy matches
# ---------------------------------------------------------------------------


class TestFuzzy:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            pytest.param("Artcles/hobby", "hobby", id="typo"),
            pytest.param("articles/HOBBY", "hobby", id="case-drift"),
            pytest.param("Articles/hóbby", "hobby", id="diacritics"),
            pytest.param("Boks", "books", id="missing-letter"),
        ],
    )
    def test_tolerates_drift(self, resolver, path: str, expected: str):
        assert resolver.resolve(path) == expected

    def test_near_tie_rejected(self, resolver):
        with pytest.raises(PathNotFoundError) as exc_info:
            resolver.resolve("Note")
        error = exc_info.value
        assert error.remainder == "Note"
        assert "ambiguous" in error.reason
        assert "'Notes'" in error.reason
        assert "'notes'" in error.reason

    def test_below_threshold(self, resolver):
        with pytest.raises(PathNotFoundError) as exc_info:
            resolver.resolve("Magazines")
        assert "no close match" in exc_info.value.reason

    def test_pluggable_scorer(self, tree):
        resolver = PathResolver(tree, levenshtein_similarity)
        assert resolver.resolve("Artcles/hobby") == "hobby"

    def test_custom_scorer_and_threshold(self, tree):
        def first_letter(query: str, candidate: str) -> float:
            return 1.0 if query[:1].lower() == candidate[:1].lower() else 0.0

        resolver = PathResolver(tree, first_letter, threshold=0.5)
        assert resolver.resolve("Bxx") == "books"
        with pytest.raises(PathNotFoundError):
            resolver.resolve("Nxx")

    def test_rank_orders_best_first(self, resolver, tree):
        ranked = resolver.rank("Bookz", tree.children_of(None))
        assert ranked[0].node.id == "books"
        assert [c.score for c in ranked] == sorted((c.score for c in ranked), reverse=True)


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestNotFound:
    @pytest.mark.parametrize(
        ("path", "remainder"),
        [
            pytest.param("Articles/missing", "missing", id="leaf"),
            pytest.param("Nope/hobby", "Nope/hobby", id="first-segment"),
            pytest.param("Articles/hobby/deeper", "deeper", id="below-leaf"),
        ],
    )
    def test_remainder(self, resolver, path: str, remainder: str):
        with pytest.raises(PathNotFoundError) as exc_info:
            resolver.resolve(path)
        assert exc_info.value.remainder == remainder
        assert exc_info.value.path == path

    @pytest.mark.parametrize("path", ["Readme", "Books/Dune"])
    def test_document_is_not_a_target(self, resolver, path: str):
        with pytest.raises(PathNotFoundError) as exc_info:
            resolver.resolve(path)
        assert "document" in exc_info.value.reason

    @pytest.mark.parametrize("path", ["", "/", "  "])
    def test_empty_path(self, resolver, path: str):
        with pytest.raises(PathNotFoundError):
            resolver.resolve(path)

    def test_never_creates_nodes(self, resolver, tree):
        before = len(tree)
        with pytest.raises(PathNotFoundError):
            resolver.resolve("Brand/New/Folder")
        assert len(tree) == before
