"""Injectable time source.

Deletion eligibility and the sweep both depend on "now". Services take a
``Clock`` instead of calling ``datetime.now`` so tests can pin time.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import pytz


class Clock(Protocol):
    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, at: Optional[datetime] = None):
        self._now = as_utc(at) if at is not None else datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = as_utc(at)

    def advance(self, **delta) -> datetime:
        """Move forward by ``timedelta(**delta)`` and return the new time."""
        self._now = self._now + timedelta(**delta)
        return self._now


system_clock = SystemClock()


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values (SQLite drops tzinfo) or convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def localize(value: datetime, tz_name: str) -> datetime:
    """Interpret a naive wall-clock datetime in ``tz_name`` and return it in UTC.

    Aware values are only converted.
    """
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    tz = pytz.timezone(tz_name)
    return tz.localize(value).astimezone(timezone.utc)
