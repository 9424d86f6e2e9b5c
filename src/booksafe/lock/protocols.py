"""Capability interfaces for the collaborators around a reconciliation run."""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Protocol, runtime_checkable

from booksafe.exceptions import BookSafeError

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Core protocols
# ------------------------------------------------------------------


@runtime_checkable
class UiControl(Protocol):
    """Stops and resumes the reading application around a run.

    The application must not hold the document store open while nodes are
    being moved.
    """

    def stop(self) -> None:
        """Stop the UI and wait until it is no longer running."""
        ...

    def start(self) -> None:
        """Resume the UI."""
        ...


@runtime_checkable
class NetworkBlocker(Protocol):
    """Blocks cloud sync while anything is hidden.

    Invoked by the caller based solely on whether the lock record store is
    non-empty, never by the reconciliation engine itself.
    """

    def enable_block(self) -> None:
        ...

    def disable_block(self) -> None:
        ...


# ------------------------------------------------------------------
# Implementations
# ------------------------------------------------------------------


class NullUiControl:
    """No-op UI control, for development machines and tests."""

    def stop(self) -> None:
        logger.debug("UI control disabled, not stopping UI")

    def start(self) -> None:
        logger.debug("UI control disabled, not starting UI")


class NullNetworkBlocker:
    """No-op network blocker."""

    def enable_block(self) -> None:
        logger.debug("network blocking disabled, not blocking sync")

    def disable_block(self) -> None:
        logger.debug("network blocking disabled, not unblocking sync")


class SystemctlUiControl:
    """Stops/starts the reading application's systemd unit.

    After issuing the command, polls ``systemctl is-active`` until the unit
    reaches the wanted state or the attempts run out.
    """

    def __init__(
        self,
        service: str = "xochitl",
        *,
        attempts: int = 20,
        interval: float = 0.05,
    ) -> None:
        self.service = service
        self.attempts = attempts
        self.interval = interval

    def stop(self) -> None:
        logger.info("stopping ui")
        self._systemctl("stop")
        self._wait_for(active=False)

    def start(self) -> None:
        logger.info("starting ui")
        self._systemctl("start")
        self._wait_for(active=True)

    def is_active(self) -> bool:
        proc = self._run(["systemctl", "is-active", self.service])
        return proc.returncode == 0

    def _systemctl(self, operation: str) -> None:
        proc = self._run(["systemctl", operation, self.service])
        if proc.returncode != 0:
            raise BookSafeError(
                f"systemctl {operation} {self.service} failed: {proc.stderr.strip()}"
            )

    def _wait_for(self, *, active: bool) -> None:
        for _ in range(self.attempts):
            if self.is_active() is active:
                return
            time.sleep(self.interval)
        wanted = "activation" if active else "deactivation"
        raise BookSafeError(f"Timed out waiting for {wanted} of {self.service}")

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise BookSafeError(f"Could not run {cmd[0]}: {e}") from e
