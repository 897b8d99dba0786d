"""Shared SQLite file for the persisted session, settings and bookmarks.

The schema version lives in ``PRAGMA user_version``; ``MIGRATIONS[n]`` moves a
file from version ``n`` to ``n + 1``.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from .paths import db_path

logger = logging.getLogger(__name__)

MIGRATIONS: list[tuple[str, ...]] = [
    (
        "CREATE TABLE kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)",
        "CREATE TABLE settings (key TEXT PRIMARY KEY, value TEXT NOT NULL)",
        """CREATE TABLE bookmarks (
            bookmark_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            latitude REAL NOT NULL,
            longitude REAL NOT NULL,
            note TEXT,
            created_at TEXT NOT NULL,
            last_used_at TEXT,
            position INTEGER NOT NULL DEFAULT 0
        )""",
    ),
]


def _get_version(conn: sqlite3.Connection) -> int:
    return int(conn.execute("PRAGMA user_version").fetchone()[0])


def _migrate(conn: sqlite3.Connection) -> None:
    found = _get_version(conn)
    wanted = len(MIGRATIONS)
    if found >= wanted:
        return
    logger.info("Upgrading schema v%d -> v%d", found, wanted)
    with conn:
        for statements in MIGRATIONS[found:]:
            for sql in statements:
                conn.execute(sql)
        # PRAGMA does not accept bound parameters.
        conn.execute(f"PRAGMA user_version = {wanted:d}")


def open_db(path: str | Path | None = None) -> sqlite3.Connection:
    """Open the database at ``path`` (default: ``db_path()``), upgrading it first."""
    target = Path(path) if path is not None else db_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    # The share hand-off and the main process open the same file.
    conn = sqlite3.connect(str(target), check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL")
    _migrate(conn)
    return conn
