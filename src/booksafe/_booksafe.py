"""Main BookSafe class — one scheduler tick, end to end."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from booksafe.config import load_config
from booksafe.lock.engine import TransitionEngine
from booksafe.lock.protocols import NullNetworkBlocker, NullUiControl
from booksafe.lock.records import LockRecordStore
from booksafe.tree import sequence_similarity

if TYPE_CHECKING:
    from datetime import datetime, time
    from pathlib import Path

    from booksafe.config import BookSafeConfig
    from booksafe.lock.protocols import NetworkBlocker, UiControl
    from booksafe.lock.records import LockRecord
    from booksafe.tree import Scorer
    from booksafe.types import ReconcileResult

logger = logging.getLogger(__name__)


class BookSafe:
    """Facade wiring configuration, UI control, the engine and sync blocking.

    A tick stops the reading application, reconciles, resumes the
    application (even if reconciliation failed), then blocks or unblocks
    sync depending on whether anything is still hidden.

    Usage::

        safe = BookSafe.from_file("/home/root/.config/booksafe.toml")
        result = safe.run()
        print(result.summary())
    """

    def __init__(
        self,
        config: BookSafeConfig,
        *,
        ui: UiControl | None = None,
        blocker: NetworkBlocker | None = None,
        scorer: Scorer = sequence_similarity,
    ) -> None:
        self.config = config
        self.ui = ui if ui is not None else NullUiControl()
        self.blocker = blocker if blocker is not None else NullNetworkBlocker()
        self.records = LockRecordStore(config.store.state)
        self.engine = TransitionEngine(
            config.store.documents,
            config.store.hidden,
            self.records,
            scorer=scorer,
        )

    @classmethod
    def from_file(cls, path: Path | str, **kwargs: object) -> BookSafe:
        return cls(load_config(path), **kwargs)  # type: ignore[arg-type]

    def run(self, now: datetime | time | None = None) -> ReconcileResult:
        """Perform one reconciliation inside the stop/resume critical section."""
        self.ui.stop()
        try:
            result = self.engine.run(self.config.targets, self.config.window(), now)
        finally:
            self.ui.start()

        self.update_network_block()
        return result

    def update_network_block(self) -> None:
        """Keep sync blocked exactly while the record set is non-empty."""
        if self.records.is_empty():
            self.blocker.disable_block()
        else:
            logger.debug("%d nodes hidden, keeping sync blocked", len(self.records))
            self.blocker.enable_block()

    def locked(self) -> list[LockRecord]:
        """Currently hidden nodes, as recorded on disk."""
        self.records.reload()
        return self.records.records()
