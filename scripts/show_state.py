"""Print the persisted run-state flags and lock marker for operators."""

from __future__ import annotations

import argparse
import sqlite3
import sys
import time
from datetime import datetime
from typing import Dict

from activity_report.clients.run_lock import FileRunLock
from activity_report.clients.sqlite_store import SQLiteStore
from activity_report.core.config import get_settings
from activity_report.services.run_state import STATE_KEYS


def _print_header(title: str) -> None:
    line = "=" * len(title)
    print(f"\n{title}\n{line}")


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def render(store: SQLiteStore, lock: FileRunLock) -> list[str]:
    """Return one line per state key, plus the lock marker status."""
    items: Dict[str, Dict[str, str]] = store.items()
    lines = []
    for key in STATE_KEYS:
        entry = items.get(key)
        if entry is None:
            lines.append(f"{key:<24} (unset)")
        else:
            lines.append(f"{key:<24} {entry['value']}  (updated {entry['updated_at']})")

    owner = lock.owner()
    if owner is None:
        lines.append(f"{'lock':<24} free ({lock.path})")
    else:
        lines.append(
            f"{'lock':<24} held by pid {owner['pid'] or '?'} since "
            f"{owner['acquired_at'] or '?'} ({lock.path})"
        )
    return lines


def watch(store: SQLiteStore, lock: FileRunLock, poll_interval: float) -> None:
    _print_header("Watching merge-and-mail state (Ctrl+C to exit)")
    previous: list[str] = []
    while True:
        try:
            current = render(store, lock)
        except sqlite3.Error as exc:
            print(f"[{_timestamp()}] SQLite error: {exc}")
            current = previous
        for line in current:
            if line not in previous:
                print(f"[{_timestamp()}] {line}")
        previous = current
        time.sleep(poll_interval)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--watch",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Keep polling and print changes every SECONDS.",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    store = SQLiteStore(settings.storage.state_db_path)
    lock = FileRunLock(settings.storage.lock_path)

    if args.watch:
        try:
            watch(store, lock, args.watch)
        except KeyboardInterrupt:
            print("\nStopped watching.")
        return 0

    _print_header(f"Run state ({store.db_path})")
    for line in render(store, lock):
        print(line)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
