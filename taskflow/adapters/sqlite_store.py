"""
TaskFlow Assistant — SQLite key-value store.

Every persistent bucket (todos, reminders, chat history, ...) lives as one
JSON-encoded row in a single `kv` table, surviving restarts.
Implements KeyValueStore.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from taskflow.ports.storage_port import StorageError

logger = logging.getLogger(__name__)

_MEMORY = ":memory:"


class SQLiteKeyValueStore:
    """SQLite-backed storage for named JSON buckets."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from taskflow.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        self._shared: sqlite3.Connection | None = None
        if db_path == _MEMORY:
            # A private in-memory database only lives as long as its connection
            self._shared = sqlite3.connect(db_path, check_same_thread=False)
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        if self._shared is not None:
            return self._shared
        return sqlite3.connect(self._db_path)

    def _init_db(self) -> None:
        """Create the kv table if it doesn't exist."""
        try:
            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key        TEXT PRIMARY KEY,
                        value      TEXT NOT NULL,
                        updated_at TEXT NOT NULL DEFAULT ''
                    )
                """)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot initialize {self._db_path}: {exc}") from exc
        logger.debug("kv table initialized at %s", self._db_path)

    def get(self, key: str) -> str | None:
        """Fetch the raw stored string for a key, or None if absent."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Read failed for {key!r}: {exc}") from exc
        if row is None:
            return None
        return row[0]

    def set(self, key: str, value: str) -> None:
        """Insert or replace the stored string for a key."""
        now = datetime.now().isoformat()
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, now),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Write failed for {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        """Permanently delete a key. Missing keys are ignored."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Delete failed for {key!r}: {exc}") from exc

    def keys(self) -> list[str]:
        """Return all stored keys, sorted."""
        try:
            with self._connect() as conn:
                rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Key listing failed: {exc}") from exc
        return [r[0] for r in rows]
