"""Pytest configuration and fakes shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime
from typing import Iterable
from zoneinfo import ZoneInfo

import pytest

from activity_report.clients.sqlite_store import StateStoreError
from activity_report.core.config import ScheduleSettings
from activity_report.utils.clock import FixedClock

LA = ZoneInfo("America/Los_Angeles")


class MemoryStore:
    """In-memory key/value store with optional write failures."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.fail_writes = False

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StateStoreError(f"disk full writing {key}")
        self.data[key] = value

    def clear(self, key: str) -> None:
        self.data.pop(key, None)


class RecordingNotifier:
    """Collects every message; recipients listed in ``failing`` get ``False``."""

    def __init__(self, failing: Iterable[str] = ()) -> None:
        self.sent: list[tuple[tuple[str, ...], str, str]] = []
        self.failing = set(failing)

    async def notify(self, recipients, subject: str, html: str) -> bool:
        recipients = tuple(recipients)
        self.sent.append((recipients, subject, html))
        return not any(r in self.failing for r in recipients)

    def subjects(self) -> list[str]:
        return [subject for _, subject, _ in self.sent]


def la_time(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=LA)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(la_time(2026, 1, 22, 9))


@pytest.fixture
def schedule() -> ScheduleSettings:
    return ScheduleSettings(
        timezone="America/Los_Angeles",
        window_start_hour=6,
        window_end_hour=18,
        min_gap_minutes=10,
    )
