"""SQLite-backed key/value store for durable run-state flags."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class StateStoreError(Exception):
    """Raised when a value cannot be written durably."""


class SQLiteStore:
    """Flat key/value table where every key is written in its own transaction.

    Reads never raise: a missing database, a missing key or a SQLite error all
    read as ``None``. Writes raise ``StateStoreError`` so callers can decide how
    to degrade.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=5.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        # An unusable database must not stop the job; reads then come back
        # empty and writes raise StateStoreError.
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS run_state (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            logger.warning("State database %s is unusable: %s", self._db_path, exc)

    def get(self, key: str) -> Optional[str]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM run_state WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Reading state key %s failed: %s", key, exc)
            return None
        if not row:
            return None
        return row["value"]

    def set(self, key: str, value: str) -> None:
        updated_at = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO run_state (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, str(value), updated_at),
                )
        except sqlite3.Error as exc:
            raise StateStoreError(f"Could not persist {key}: {exc}") from exc

    def clear(self, key: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM run_state WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StateStoreError(f"Could not clear {key}: {exc}") from exc

    def items(self) -> Dict[str, Dict[str, str]]:
        """Return every stored key with its value and last update time."""
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT key, value, updated_at FROM run_state ORDER BY key"
                ).fetchall()
        except sqlite3.Error as exc:
            logger.warning("Listing state keys failed: %s", exc)
            return {}
        return {
            row["key"]: {"value": row["value"], "updated_at": row["updated_at"]}
            for row in rows
        }


__all__ = ["SQLiteStore", "StateStoreError"]
