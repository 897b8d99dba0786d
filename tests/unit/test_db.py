"""Tests for the SQLite schema and migrations."""

from __future__ import annotations

import sqlite3

import pytest

from geranium_locsim.locsim.db import MIGRATIONS, _get_version, _migrate, open_db


@pytest.fixture()
def conn(tmp_path):
    c = open_db(str(tmp_path / "test.db"))
    yield c
    c.close()


EXPECTED_COLUMNS = {
    "kv": ["key", "value"],
    "settings": ["key", "value"],
    "bookmarks": [
        "bookmark_id",
        "name",
        "latitude",
        "longitude",
        "note",
        "created_at",
        "last_used_at",
        "position",
    ],
}


def test_all_tables_exist(conn) -> None:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    tables = {r[0] for r in rows}
    assert set(EXPECTED_COLUMNS) <= tables


@pytest.mark.parametrize("table,columns", EXPECTED_COLUMNS.items())
def test_table_columns(conn, table: str, columns: list[str]) -> None:
    info = conn.execute(f"PRAGMA table_info({table})").fetchall()
    assert [row[1] for row in info] == columns


def test_version_matches_migration_count(conn) -> None:
    assert _get_version(conn) == len(MIGRATIONS)


def test_migrate_is_idempotent(conn) -> None:
    _migrate(conn)
    _migrate(conn)
    assert _get_version(conn) == len(MIGRATIONS)


def test_fresh_connection_has_version_zero() -> None:
    c = sqlite3.connect(":memory:")
    assert _get_version(c) == 0
    c.close()


def test_open_db_uses_env_override(tmp_path, monkeypatch) -> None:
    target = tmp_path / "nested" / "custom.db"
    monkeypatch.setenv("GERANIUM_DB_PATH", str(target))
    c = open_db()
    c.close()
    assert target.exists()


def test_reopen_keeps_data(tmp_path) -> None:
    path = str(tmp_path / "test.db")
    c = open_db(path)
    c.execute("INSERT INTO kv (key, value) VALUES ('a', '1')")
    c.commit()
    c.close()

    c = open_db(path)
    assert c.execute("SELECT value FROM kv WHERE key = 'a'").fetchone()[0] == "1"
    c.close()
