"""Persistent bookmark storage (SQLite)."""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime

from geranium_locsim.core.models import Bookmark, Coordinate

from .kv_store import SqliteKeyValueStore

logger = logging.getLogger(__name__)

LAST_USED_KEY = "bookmarks.lastUsed"

_COLUMNS = "bookmark_id, name, latitude, longitude, note, created_at, last_used_at"


class BookmarkStore:
    """Bookmarks in user-defined order plus the last-used bookmark id.

    Coordinates are stored already resolved to WGS-84; see
    Bookmark.location_point.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._kv = SqliteKeyValueStore(conn)

    def add(self, name: str, coordinate: Coordinate, note: str | None = None) -> Bookmark:
        bookmark = Bookmark(name=name, coordinate=coordinate, note=note)
        position = self._conn.execute(
            "SELECT COALESCE(MAX(position), -1) + 1 FROM bookmarks"
        ).fetchone()[0]
        self._upsert(bookmark, position)
        logger.info("bookmarks: added %s at %.6f, %.6f", name, *coordinate.as_tuple())
        return bookmark

    def update(self, bookmark: Bookmark) -> bool:
        row = self._conn.execute(
            "SELECT position FROM bookmarks WHERE bookmark_id = ?", (bookmark.bookmark_id,)
        ).fetchone()
        if row is None:
            return False
        self._upsert(bookmark, row[0])
        return True

    def delete(self, bookmark_id: str) -> bool:
        cur = self._conn.execute("DELETE FROM bookmarks WHERE bookmark_id = ?", (bookmark_id,))
        self._conn.commit()
        if self.last_used_id() == bookmark_id:
            self._kv.remove(LAST_USED_KEY)
        return cur.rowcount > 0

    def move(self, bookmark_id: str, index: int) -> bool:
        """Move a bookmark to ``index`` in the list order."""
        ordered = self.get_all()
        current = next((i for i, b in enumerate(ordered) if b.bookmark_id == bookmark_id), None)
        if current is None:
            return False
        bookmark = ordered.pop(current)
        index = max(0, min(index, len(ordered)))
        ordered.insert(index, bookmark)
        self._conn.executemany(
            "UPDATE bookmarks SET position = ? WHERE bookmark_id = ?",
            [(pos, b.bookmark_id) for pos, b in enumerate(ordered)],
        )
        self._conn.commit()
        return True

    def get(self, bookmark_id: str | None) -> Bookmark | None:
        if bookmark_id is None:
            return None
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM bookmarks WHERE bookmark_id = ?", (bookmark_id,)
        ).fetchone()
        return _row_to_bookmark(row) if row else None

    def find(self, name_or_id: str) -> Bookmark | None:
        """Look up by id, then by exact name."""
        found = self.get(name_or_id)
        if found is not None:
            return found
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM bookmarks WHERE name = ? ORDER BY position LIMIT 1",
            (name_or_id,),
        ).fetchone()
        return _row_to_bookmark(row) if row else None

    def get_all(self) -> list[Bookmark]:
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM bookmarks ORDER BY position"
        ).fetchall()
        return [_row_to_bookmark(r) for r in rows]

    def last_used_id(self) -> str | None:
        value = self._kv.get(LAST_USED_KEY)
        return value if isinstance(value, str) else None

    def mark_as_last_used(self, bookmark: Bookmark | None) -> None:
        if bookmark is None:
            self._kv.remove(LAST_USED_KEY)
            return
        self._kv.set(LAST_USED_KEY, bookmark.bookmark_id)
        bookmark.last_used_at = datetime.now(UTC)
        self.update(bookmark)

    def __len__(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM bookmarks").fetchone()[0]

    def _upsert(self, bookmark: Bookmark, position: int) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO bookmarks "
            "(bookmark_id, name, latitude, longitude, note, created_at, last_used_at, position) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                bookmark.bookmark_id,
                bookmark.name,
                bookmark.coordinate.latitude,
                bookmark.coordinate.longitude,
                bookmark.note,
                bookmark.created_at.isoformat(),
                bookmark.last_used_at.isoformat() if bookmark.last_used_at else None,
                position,
            ),
        )
        self._conn.commit()


def _row_to_bookmark(row: tuple) -> Bookmark:
    created_at = row[5]
    if isinstance(created_at, str):
        created_at = datetime.fromisoformat(created_at)
    else:
        created_at = datetime.now(UTC)
    last_used = row[6]
    if isinstance(last_used, str):
        last_used = datetime.fromisoformat(last_used)
    return Bookmark(
        bookmark_id=row[0],
        name=row[1],
        coordinate=Coordinate(row[2], row[3]),
        note=row[4],
        created_at=created_at,
        last_used_at=last_used,
    )
