"""Shared key-value store backed by SQLite."""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

logger = logging.getLogger(__name__)


class SqliteKeyValueStore:
    """JSON-encoded values in the ``kv`` table.

    Every write commits immediately so another process reading the same
    database file observes it.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: str) -> Any | None:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("kv: dropping undecodable value for %s", key)
            return None

    def set(self, key: str, value: Any) -> None:
        if value is None:
            self.remove(key)
            return
        self._conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
            (key, json.dumps(value, ensure_ascii=False)),
        )
        self._conn.commit()

    def remove(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self._conn.commit()

    def keys(self) -> list[str]:
        return [row[0] for row in self._conn.execute("SELECT key FROM kv ORDER BY key")]
