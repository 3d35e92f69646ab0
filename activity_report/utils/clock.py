"""Clock capability and business-day helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current timezone-aware instant."""


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a settable instant, for scripted runs and tests."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._instant = instant


def local_time(now: datetime, tz: ZoneInfo) -> datetime:
    """Express ``now`` in the reference zone."""
    return now.astimezone(tz)


def current_business_day(now: datetime, tz: ZoneInfo) -> date:
    """Return the calendar day of ``now`` in the reference zone."""
    return local_time(now, tz).date()


__all__ = ["Clock", "FixedClock", "SystemClock", "current_business_day", "local_time"]
