"""Tests for the run-state inspection script."""

from __future__ import annotations

from pathlib import Path

from activity_report.clients.run_lock import FileRunLock
from activity_report.clients.sqlite_store import SQLiteStore
from scripts import show_state


def test_render_lists_every_key_and_free_lock(tmp_path: Path) -> None:
    store = SQLiteStore(str(tmp_path / "state.sqlite3"))
    store.set("day_started", "2026-01-22")
    lock = FileRunLock(tmp_path / "job.lock")

    lines = show_state.render(store, lock)

    assert any(line.startswith("day_started") and "2026-01-22" in line for line in lines)
    assert any(line.startswith("day_ended") and "(unset)" in line for line in lines)
    assert lines[-1].startswith("lock") and "free" in lines[-1]


def test_render_shows_lock_owner(tmp_path: Path) -> None:
    store = SQLiteStore(str(tmp_path / "state.sqlite3"))
    lock = FileRunLock(tmp_path / "job.lock")
    assert lock.acquire()

    try:
        last = show_state.render(store, lock)[-1]
    finally:
        lock.release()

    assert "held by pid" in last
