from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict

from .settings import MAX_RECENT_SEARCHES, LocSimSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """One JSON-encoded row per ``LocSimSettings`` field.

    Rows that fail to decode, or decode to the wrong type, keep the default.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def load(self) -> LocSimSettings:
        values = asdict(LocSimSettings())
        for key, raw in self._conn.execute("SELECT key, value FROM settings"):
            if key not in values:
                continue
            try:
                values[key] = _coerce(json.loads(raw), values[key])
            except (ValueError, TypeError):
                logger.warning("Ignoring unreadable setting %s=%r", key, raw)
        settings = LocSimSettings(**values)
        del settings.recent_searches[MAX_RECENT_SEARCHES:]
        return settings

    def save(self, settings: LocSimSettings) -> None:
        rows = [
            (key, json.dumps(value, ensure_ascii=False)) for key, value in asdict(settings).items()
        ]
        with self._conn:
            self._conn.executemany(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", rows
            )


def _coerce(value: object, default: object) -> object:
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
    elif isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif isinstance(default, list):
        if isinstance(value, list):
            return [str(item) for item in value]
    elif isinstance(value, type(default)):
        return value
    raise TypeError(f"expected {type(default).__name__}, got {type(value).__name__}")
