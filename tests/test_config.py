"""Tests for config.py — TOML loading and validation."""

from __future__ import annotations

from datetime import time
from pathlib import Path

import pytest

from booksafe.config import (
    DEFAULT_DOCUMENTS_DIR,
    DEFAULT_HIDDEN_DIR,
    DEFAULT_STATE_FILE,
    load_config,
    parse_config,
)
from booksafe.exceptions import ConfigError

FULL = """
[store]
documents = "/data/xochitl"
hidden = "/data/hidden"
state = "/data/locked.json"

[lock]
start = "23:00"
end = "08:00"
timezone = "Europe/Amsterdam"
targets = ["Books", "Articles/hobby"]
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "booksafe.toml"
    path.write_text(text)
    return path


class TestLoadConfig:
    def test_full_file(self, tmp_path):
        config = load_config(_write(tmp_path, FULL))
        assert config.store.documents == Path("/data/xochitl")
        assert config.store.hidden == Path("/data/hidden")
        assert config.store.state == Path("/data/locked.json")
        assert config.lock.timezone == "Europe/Amsterdam"
        assert config.targets == ["Books", "Articles/hobby"]

    def test_defaults(self, tmp_path):
        config = load_config(
            _write(tmp_path, '[lock]\nstart = "21:30"\nend = "07:00"\ntargets = ["Books"]\n')
        )
        assert config.store.documents == DEFAULT_DOCUMENTS_DIR
        assert config.store.hidden == DEFAULT_HIDDEN_DIR
        assert config.store.state == DEFAULT_STATE_FILE
        assert config.lock.timezone == "UTC"

    def test_window(self, tmp_path):
        window = load_config(_write(tmp_path, FULL)).window()
        assert window.start == time(23, 0)
        assert window.end == time(8, 0)
        assert window.wraps
        assert str(window.timezone) == "Europe/Amsterdam"

    def test_targets_copy(self, tmp_path):
        config = load_config(_write(tmp_path, FULL))
        config.targets.append("Other")
        assert config.targets == ["Books", "Articles/hobby"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "absent.toml")

    def test_invalid_toml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(_write(tmp_path, "[lock\nstart = "))


class TestParseConfig:
    @pytest.mark.parametrize(
        ("lock", "message"),
        [
            pytest.param({"start": "23:00", "end": "08:00"}, "list of folder paths", id="no-targets"),
            pytest.param(
                {"start": "23:00", "end": "08:00", "targets": "Books"},
                "list of folder paths",
                id="targets-string",
            ),
            pytest.param(
                {"start": "23:00", "end": "08:00", "targets": [1]},
                "list of folder paths",
                id="targets-not-str",
            ),
            pytest.param(
                {"start": "23:00", "end": "08:00", "targets": []}, "empty", id="targets-empty"
            ),
            pytest.param({"end": "08:00", "targets": ["Books"]}, "start is required", id="no-start"),
            pytest.param(
                {"start": 2300, "end": "08:00", "targets": ["Books"]},
                "must be a string",
                id="start-not-str",
            ),
            pytest.param(
                {"start": "2300", "end": "08:00", "targets": ["Books"]},
                "separated by :",
                id="bad-time",
            ),
            pytest.param(
                {"start": "23:00", "end": "08:00", "timezone": "Nowhere/City", "targets": ["Books"]},
                "Unknown timezone",
                id="bad-timezone",
            ),
        ],
    )
    def test_invalid_lock_table(self, lock: dict, message: str):
        with pytest.raises(ConfigError, match=message):
            parse_config({"lock": lock})

    def test_missing_lock_table(self):
        with pytest.raises(ConfigError):
            parse_config({})

    def test_store_must_be_table(self):
        raw = {"store": "nope", "lock": {"start": "23:00", "end": "08:00", "targets": ["Books"]}}
        with pytest.raises(ConfigError, match=r"\[store\] must be a table"):
            parse_config(raw)
