from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from config import DEFAULT_DB_PATH

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


@dataclass(frozen=True)
class StoredValue:
    """A value that was present and parseable. ``value`` may be any JSON value."""

    value: Any


class KeyValueStore:
    """SQLite-backed durable mapping from string keys to JSON values."""

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        if db_path == MEMORY_DB:
            self.db_path: Union[Path, str] = MEMORY_DB
        else:
            self.db_path = Path(db_path or DEFAULT_DB_PATH)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._key_locks: Dict[str, threading.RLock] = {}
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                );
                """
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------ #
    # Raw access
    # ------------------------------------------------------------------ #
    def _read_text(self, key: str) -> Optional[str]:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT value FROM entries WHERE key = ?;",
                    (key,),
                ).fetchone()
        except sqlite3.DatabaseError as error:
            logger.warning("Unable to read %r from %s: %s", key, self.db_path, error)
            return None
        return row["value"] if row else None

    def save_raw(self, key: str, text: str) -> None:
        """Store ``text`` verbatim under ``key``, whether or not it is valid JSON."""
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO entries (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP;
                """,
                (key, text),
            )

    # ------------------------------------------------------------------ #
    # JSON access
    # ------------------------------------------------------------------ #
    def lookup(self, key: str) -> Optional[StoredValue]:
        """Return the stored value wrapped, or None when absent or unparseable."""
        text = self._read_text(key)
        if text is None:
            return None
        try:
            return StoredValue(json.loads(text))
        except (ValueError, RecursionError) as error:
            logger.warning("Discarding unparseable value stored under %r: %s", key, error)
            return None

    def load(self, key: str, fallback: Any = None) -> Any:
        stored = self.lookup(key)
        if stored is None:
            return fallback
        return stored.value

    def save(self, key: str, value: Any) -> None:
        self.save_raw(key, json.dumps(value, ensure_ascii=False))
        logger.debug("Saved %r", key)

    def delete(self, key: str) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM entries WHERE key = ?;", (key,))

    def keys(self) -> List[str]:
        with self._lock:
            rows = self._conn.execute("SELECT key FROM entries ORDER BY key;").fetchall()
        return [row["key"] for row in rows]

    @contextmanager
    def transaction(self, key: str) -> Iterator["KeyValueStore"]:
        """Serialize read-modify-write cycles on ``key`` within this process."""
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.RLock())
        with key_lock:
            yield self


# ------------------------------------------------------------------------------
# Convenience factory
# ------------------------------------------------------------------------------
def get_store(db_path: Optional[Union[Path, str]] = None) -> KeyValueStore:
    return KeyValueStore(db_path=db_path)
