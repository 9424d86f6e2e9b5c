"""Lock schedule — decide whether targets should be hidden right now."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from booksafe.exceptions import ConfigError
from booksafe.tree.utils import sequence_similarity
from booksafe.types import LockState


def parse_time_of_day(text: str) -> time:
    """Parse ``"HH:MM"`` into a :class:`datetime.time`."""
    hour_text, sep, minute_text = text.strip().partition(":")
    if not sep:
        raise ConfigError(f"Hours and minutes must be separated by : (got {text!r})")
    try:
        hour = int(hour_text)
    except ValueError:
        raise ConfigError(f"Could not parse hour in {text!r}") from None
    try:
        minute = int(minute_text)
    except ValueError:
        raise ConfigError(f"Could not parse minute in {text!r}") from None
    try:
        return time(hour, minute)
    except ValueError:
        raise ConfigError(f"Hour or minute not possible: {text!r}") from None


def load_timezone(name: str) -> tzinfo:
    """Look up an IANA timezone such as ``"Europe/Amsterdam"``."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        message = f"Unknown timezone: {name!r}"
        suggestion = closest_timezone(name)
        if suggestion:
            message += f", did you mean {suggestion!r}?"
        raise ConfigError(message) from None


def closest_timezone(name: str) -> str | None:
    """Best-scoring known IANA zone for a misspelled *name*, if any."""
    zones = available_timezones()
    if not zones:
        return None
    return max(sorted(zones), key=lambda zone: sequence_similarity(name, zone))


@dataclass(frozen=True, slots=True)
class LockWindow:
    """Daily interval during which targets are hidden.

    ``start`` is inclusive and ``end`` exclusive. When ``start > end`` the
    window wraps past midnight.
    """

    start: time
    end: time
    timezone: tzinfo

    @classmethod
    def from_strings(cls, start: str, end: str, timezone: str) -> LockWindow:
        return cls(parse_time_of_day(start), parse_time_of_day(end), load_timezone(timezone))

    @property
    def wraps(self) -> bool:
        return self.start > self.end

    def local_time(self, now: datetime | time) -> time:
        """Time of day of *now* in the window's timezone."""
        if isinstance(now, datetime):
            if now.tzinfo is not None:
                now = now.astimezone(self.timezone)
            return now.time()
        return now.replace(tzinfo=None)


def desired_state(now: datetime | time, window: LockWindow) -> LockState:
    """Whether targets should be locked at *now*.

    - start <= end: locked iff ``start <= now < end``
    - start > end:  locked iff ``now >= start or now < end``
    """
    current = window.local_time(now)
    if window.start <= window.end:
        locked = window.start <= current < window.end
    else:
        locked = current >= window.start or current < window.end
    return LockState.LOCKED if locked else LockState.UNLOCKED
