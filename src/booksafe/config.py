"""BookSafeConfig: TOML configuration for a device.

Example ``booksafe.toml``::

    [store]
    documents = "/home/root/.local/share/remarkable/xochitl"
    hidden = "/home/root/.local/share/booksafe/hidden"    # must be on the same filesystem
    state = "/home/root/.local/share/booksafe/locked.json"

    [lock]
    start = "23:00"
    end = "08:00"
    timezone = "Europe/Amsterdam"
    targets = ["Books", "Articles/hobby"]
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from booksafe.exceptions import ConfigError
from booksafe.lock.schedule import LockWindow

DEFAULT_DOCUMENTS_DIR = Path("/home/root/.local/share/remarkable/xochitl")
DEFAULT_HIDDEN_DIR = Path("/home/root/.local/share/booksafe/hidden")
DEFAULT_STATE_FILE = Path("/home/root/.local/share/booksafe/locked.json")
DEFAULT_TIMEZONE = "UTC"


@dataclass
class StoreConfig:
    """The ``[store]`` table: where documents, hidden content and state live."""

    documents: Path = DEFAULT_DOCUMENTS_DIR
    hidden: Path = DEFAULT_HIDDEN_DIR
    state: Path = DEFAULT_STATE_FILE


@dataclass
class LockConfig:
    """The ``[lock]`` table: the daily window and the folders to hide."""

    start: str
    end: str
    timezone: str = DEFAULT_TIMEZONE
    targets: list[str] = field(default_factory=list)


@dataclass
class BookSafeConfig:
    """Resolved configuration."""

    lock: LockConfig
    store: StoreConfig = field(default_factory=StoreConfig)

    @property
    def targets(self) -> list[str]:
        return list(self.lock.targets)

    def window(self) -> LockWindow:
        return LockWindow.from_strings(self.lock.start, self.lock.end, self.lock.timezone)


def _table(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table")
    return section


def _string(section: dict[str, Any], key: str, table: str, default: str | None = None) -> str:
    value = section.get(key, default)
    if value is None:
        raise ConfigError(f"[{table}] {key} is required")
    if not isinstance(value, str):
        raise ConfigError(f"[{table}] {key} must be a string")
    return value


def parse_config(raw: dict[str, Any]) -> BookSafeConfig:
    """Build a :class:`BookSafeConfig` from an already-parsed TOML document."""
    store_section = _table(raw, "store")
    lock_section = _table(raw, "lock")

    targets = lock_section.get("targets")
    if not isinstance(targets, list) or not all(isinstance(t, str) for t in targets):
        raise ConfigError("[lock] targets must be a list of folder paths")
    if not targets:
        raise ConfigError("[lock] targets is empty, nothing to lock")

    config = BookSafeConfig(
        lock=LockConfig(
            start=_string(lock_section, "start", "lock"),
            end=_string(lock_section, "end", "lock"),
            timezone=_string(lock_section, "timezone", "lock", DEFAULT_TIMEZONE),
            targets=targets,
        ),
        store=StoreConfig(
            documents=Path(_string(store_section, "documents", "store", str(DEFAULT_DOCUMENTS_DIR))),
            hidden=Path(_string(store_section, "hidden", "store", str(DEFAULT_HIDDEN_DIR))),
            state=Path(_string(store_section, "state", "store", str(DEFAULT_STATE_FILE))),
        ),
    )
    # Fail early on bad times or timezones rather than on the first tick.
    config.window()
    return config


def load_config(path: Path | str) -> BookSafeConfig:
    """Load and validate a TOML configuration file."""
    config_path = Path(path)
    try:
        with config_path.open("rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {config_path}") from None
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
    return parse_config(raw)
