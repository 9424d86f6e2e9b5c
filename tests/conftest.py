"""Shared fixtures for booksafe tests."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import pytest

from booksafe.lock.records import LockRecordStore

FOLDER = "CollectionType"
DOCUMENT = "DocumentType"


@dataclass
class StoreBuilder:
    """Writes host-application style ``<id>.metadata`` records plus content dirs."""

    root: Path

    def add(
        self,
        node_id: str,
        name: str,
        *,
        kind: str = FOLDER,
        parent: str = "",
        with_dir: bool = True,
        **extra: object,
    ) -> Path:
        record = {
            "deleted": False,
            "lastModified": "1633603894527",
            "parent": parent,
            "pinned": False,
            "type": kind,
            "version": 1,
            "visibleName": name,
            **extra,
        }
        (self.root / f"{node_id}.metadata").write_text(json.dumps(record, indent=4))
        backing = self.root / node_id
        if with_dir:
            backing.mkdir()
            (backing / "content.txt").write_text(f"content of {name}\n")
        return backing

    def folder(self, node_id: str, name: str, parent: str = "", **kwargs: object) -> Path:
        return self.add(node_id, name, kind=FOLDER, parent=parent, **kwargs)

    def document(self, node_id: str, name: str, parent: str = "", **kwargs: object) -> Path:
        return self.add(node_id, name, kind=DOCUMENT, parent=parent, **kwargs)

    def sidecar(self, node_id: str, suffix: str, text: str = "{}") -> Path:
        """Extra ``<id><suffix>`` file such as ``.content`` or ``.pagedata``."""
        path = self.root / f"{node_id}{suffix}"
        path.write_text(text)
        return path

    def raw(self, node_id: str, text: str) -> Path:
        path = self.root / f"{node_id}.metadata"
        path.write_text(text)
        return path


@pytest.fixture
def store_dir(tmp_path) -> Path:
    path = tmp_path / "xochitl"
    path.mkdir()
    return path


@pytest.fixture
def hidden_dir(tmp_path) -> Path:
    return tmp_path / "hidden"


@pytest.fixture
def state_file(tmp_path) -> Path:
    return tmp_path / "state" / "locked.json"


@pytest.fixture
def store(store_dir) -> StoreBuilder:
    """Empty document store."""
    return StoreBuilder(store_dir)


@pytest.fixture
def library(store) -> StoreBuilder:
    """A small store::

        Articles/
            hobby/
            work/
        Books/
            Dune
        Notes/
        notes/
        Readme
    """
    store.folder("books", "Books")
    store.document("dune", "Dune", parent="books")
    store.folder("articles", "Articles")
    store.folder("hobby", "hobby", parent="articles")
    store.folder("work", "work", parent="articles")
    store.folder("notes-upper", "Notes")
    store.folder("notes-lower", "notes")
    store.document("readme", "Readme")
    return store


@pytest.fixture
def records(state_file) -> LockRecordStore:
    return LockRecordStore(state_file)
