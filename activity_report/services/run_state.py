"""
Durable run-state flags, one store key per field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Callable, Optional, Protocol, TypeVar

from activity_report.clients.sqlite_store import StateStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

LAST_PROCESSED_FILE_KEY = "last_processed_file_id"
LAST_RUN_AT_KEY = "last_run_at"
DAY_STARTED_KEY = "day_started"
DAY_ENDED_KEY = "day_ended"
SHEETS_PROCESSED_KEY = "sheets_processed_today"

STATE_KEYS = (
    LAST_PROCESSED_FILE_KEY,
    LAST_RUN_AT_KEY,
    DAY_STARTED_KEY,
    DAY_ENDED_KEY,
    SHEETS_PROCESSED_KEY,
)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


@dataclass(frozen=True)
class RunState:
    last_processed_file_id: Optional[str] = None
    last_run_at: Optional[datetime] = None
    day_started: Optional[date] = None
    day_ended: Optional[date] = None
    sheets_processed_today: int = 0


def _parse_instant(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _parse_count(raw: str) -> int:
    return max(0, int(raw))


class RunStateRepository:
    """Load and advance ``RunState`` through a key/value store.

    Every field is written separately, so a crash between two writes keeps the
    fields already written. A failed write is logged and the new value is kept
    in memory for the rest of the invocation.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._state: Optional[RunState] = None
        self.degraded = False

    @property
    def state(self) -> RunState:
        if self._state is None:
            self._state = self.load()
        return self._state

    def load(self) -> RunState:
        self._state = RunState(
            last_processed_file_id=self._read(LAST_PROCESSED_FILE_KEY, str),
            last_run_at=self._read(LAST_RUN_AT_KEY, _parse_instant),
            day_started=self._read(DAY_STARTED_KEY, date.fromisoformat),
            day_ended=self._read(DAY_ENDED_KEY, date.fromisoformat),
            sheets_processed_today=self._read(SHEETS_PROCESSED_KEY, _parse_count) or 0,
        )
        return self._state

    def _read(self, key: str, parse: Callable[[str], T]) -> Optional[T]:
        raw = self._store.get(key)
        if raw is None or not raw.strip():
            return None
        try:
            return parse(raw.strip())
        except ValueError:
            logger.warning("Ignoring unreadable state value for %s: %r", key, raw)
            return None

    def _write(self, key: str, value: str, **changes) -> None:
        try:
            self._store.set(key, value)
        except StateStoreError as exc:
            self.degraded = True
            logger.error("State write for %s failed, continuing in memory: %s", key, exc)
        self._state = replace(self.state, **changes)

    def record_run(self, instant: datetime) -> None:
        self._write(LAST_RUN_AT_KEY, instant.isoformat(), last_run_at=instant)

    def mark_started(self, day: date) -> None:
        self._write(DAY_STARTED_KEY, day.isoformat(), day_started=day)
        self._write(SHEETS_PROCESSED_KEY, "0", sheets_processed_today=0)

    def mark_ended(self, day: date) -> None:
        self._write(DAY_ENDED_KEY, day.isoformat(), day_ended=day)
        self._write(SHEETS_PROCESSED_KEY, "0", sheets_processed_today=0)

    def mark_processed(self, file_id: str) -> None:
        self._write(LAST_PROCESSED_FILE_KEY, file_id, last_processed_file_id=file_id)

    def increment_sheets(self) -> int:
        count = self.state.sheets_processed_today + 1
        self._write(SHEETS_PROCESSED_KEY, str(count), sheets_processed_today=count)
        return count


__all__ = [
    "KeyValueStore",
    "RunState",
    "RunStateRepository",
    "STATE_KEYS",
]
