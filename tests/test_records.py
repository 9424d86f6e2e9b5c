"""Tests for lock/records.py — LockRecord model and the durable store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from booksafe.exceptions import LockStateError
from booksafe.lock.records import LockRecord, LockRecordStore


def _record(node_id: str = "books", target: str | None = "Books") -> LockRecord:
    return LockRecord(
        node_id=node_id,
        target=target,
        original_path="/store",
        hidden_path=f"/hidden/{node_id}",
        entries=[node_id, f"{node_id}.metadata"],
    )


class TestLockRecord:
    def test_paths_and_label(self):
        record = _record()
        assert record.original == Path("/store")
        assert record.hidden == Path("/hidden/books")
        assert record.entry_paths() == [
            (Path("/store/books"), Path("/hidden/books/books")),
            (Path("/store/books.metadata"), Path("/hidden/books/books.metadata")),
        ]
        assert record.label == "Books"
        assert _record(target=None).label == "books"

    def test_locked_at_is_utc(self):
        assert _record().locked_at.utcoffset().total_seconds() == 0


class TestLoad:
    def test_missing_file_is_empty(self, records, state_file):
        assert records.is_empty()
        assert len(records) == 0
        assert not state_file.exists()

    @pytest.mark.parametrize(
        "text",
        [
            pytest.param("{", id="bad-json"),
            pytest.param("[]", id="not-object"),
            pytest.param('{"version": 2}', id="no-records"),
            pytest.param('{"version": 2, "records": [{"node_id": "x"}]}', id="missing-fields"),
            pytest.param('{"version": 1, "records": []}', id="old-version"),
        ],
    )
    def test_invalid_file_is_fatal(self, state_file, text: str):
        state_file.parent.mkdir(parents=True)
        state_file.write_text(text)
        with pytest.raises(LockStateError):
            LockRecordStore(state_file)


class TestPersistence:
    def test_add_persists_immediately(self, records, state_file):
        records.add(_record())
        reopened = LockRecordStore(state_file)
        assert [r.node_id for r in reopened] == ["books"]
        loaded, original = reopened.records()[0], records.records()[0]
        assert loaded.locked_at == original.locked_at
        assert loaded.hidden_path == original.hidden_path

    def test_file_format(self, records, state_file):
        records.add(_record())
        data = json.loads(state_file.read_text())
        assert data["version"] == 2
        entry = data["records"][0]
        assert entry["node_id"] == "books"
        assert entry["target"] == "Books"
        assert entry["original_path"] == "/store"
        assert entry["hidden_path"] == "/hidden/books"
        assert entry["entries"] == ["books", "books.metadata"]
        assert isinstance(entry["locked_at"], str)

    def test_remove_persists_immediately(self, records, state_file):
        first, second = _record("a", "A"), _record("b", "B")
        records.add(first)
        records.add(second)
        records.remove(first)
        assert [r.node_id for r in LockRecordStore(state_file)] == ["b"]

    def test_reload(self, records, state_file):
        other = LockRecordStore(state_file)
        other.add(_record())
        assert records.is_empty()
        records.reload()
        assert len(records) == 1

    def test_duplicate_node_rejected(self, records):
        records.add(_record())
        with pytest.raises(LockStateError):
            records.add(_record(target="books-again"))
        assert len(records) == 1

    def test_lookups(self, records):
        records.add(_record("a", "A"))
        records.add(_record("b", None))
        assert records.for_node("a").target == "A"
        assert records.for_target("A").node_id == "a"
        assert records.for_target("B") is None
        assert records.for_hidden_path(Path("/hidden/b")).node_id == "b"
        assert records.for_node("c") is None

    def test_no_temp_files_left(self, records, state_file):
        records.add(_record())
        records.remove(records.records()[0])
        assert [p.name for p in state_file.parent.iterdir()] == ["locked.json"]


class TestAtomicWrite:
    def test_failed_replace_keeps_previous_file(self, records, state_file, monkeypatch):
        records.add(_record("a", "A"))
        before = state_file.read_text()

        def broken_replace(self, target):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "replace", broken_replace)
        with pytest.raises(LockStateError, match="disk full"):
            records.add(_record("b", "B"))

        assert state_file.read_text() == before
        assert [r.node_id for r in records] == ["a"]
        assert [p.name for p in state_file.parent.iterdir()] == ["locked.json"]

    def test_failed_remove_rolls_back_memory(self, records, monkeypatch):
        record = _record()
        records.add(record)

        def broken_replace(self, target):
            raise OSError("read-only filesystem")

        monkeypatch.setattr(Path, "replace", broken_replace)
        with pytest.raises(LockStateError):
            records.remove(record)
        assert records.for_node("books") is not None
