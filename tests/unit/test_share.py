"""Tests for the cross-process share hand-off."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

from geranium_locsim.core.models import Coordinate, LocationPoint
from geranium_locsim.locsim.db import open_db
from geranium_locsim.locsim.kv_store import SqliteKeyValueStore
from geranium_locsim.locsim.share import (
    SHARED_URL_KEY,
    ShareInbox,
    build_spoof_link,
    print_share_qr,
    share_qr,
)
from geranium_locsim.locsim.signal import FileSignal
from geranium_locsim.mock import InMemoryKeyValueStore, MemorySignal

MAP_URL = "https://maps.apple.com/?ll=31.2304,121.4737&q=Pin"


# --- FileSignal ---


def test_file_signal_wakes_other_watcher(tmp_path) -> None:
    path = tmp_path / "state" / "shared-url.signal"
    watcher = FileSignal(path)
    poster = FileSignal(path)

    assert not watcher.poll()
    poster.post()
    assert watcher.poll()
    assert not watcher.poll()


def test_file_signal_ignores_token_present_at_startup(tmp_path) -> None:
    path = tmp_path / "shared-url.signal"
    FileSignal(path).post()
    watcher = FileSignal(path)
    assert not watcher.poll()


def test_each_post_is_a_new_wakeup(tmp_path) -> None:
    path = tmp_path / "shared-url.signal"
    watcher = FileSignal(path)
    poster = FileSignal(path)
    poster.post()
    assert watcher.poll()
    poster.post()
    assert watcher.poll()


# --- ShareInbox ---


def test_submit_writes_before_signalling() -> None:
    kv = InMemoryKeyValueStore()
    signal = MemorySignal()
    ShareInbox(kv, signal).submit(MAP_URL)
    assert kv.data[SHARED_URL_KEY] == MAP_URL
    assert signal.posted == 1


def test_take_returns_process_link_and_removes_url() -> None:
    kv = InMemoryKeyValueStore()
    inbox = ShareInbox(kv, MemorySignal())
    inbox.submit(MAP_URL)

    link = inbox.take()
    assert link is not None
    parts = urlsplit(link)
    assert parts.scheme == "geranium"
    assert parts.netloc == "process-map-url"
    assert parse_qs(parts.query)["url"] == [MAP_URL]
    assert SHARED_URL_KEY not in kv.data
    assert inbox.take() is None


def test_poll_needs_a_signal() -> None:
    kv = InMemoryKeyValueStore()
    signal = MemorySignal()
    inbox = ShareInbox(kv, signal)
    kv.data[SHARED_URL_KEY] = MAP_URL

    assert inbox.poll() is None
    signal.post()
    assert inbox.poll() is not None


def test_hand_off_between_processes(tmp_path) -> None:
    db = str(tmp_path / "shared.db")
    signal_file = tmp_path / "shared-url.signal"
    main_conn = open_db(db)
    main_inbox = ShareInbox(SqliteKeyValueStore(main_conn), FileSignal(signal_file))

    extension_conn = open_db(db)
    ShareInbox(SqliteKeyValueStore(extension_conn), FileSignal(signal_file)).submit(MAP_URL)

    link = main_inbox.poll()
    assert link is not None
    assert MAP_URL in parse_qs(urlsplit(link).query)["url"]
    main_conn.close()
    extension_conn.close()


# --- outgoing links ---


def test_spoof_link_keeps_full_precision() -> None:
    point = LocationPoint(coordinate=Coordinate(31.230416, 121.473701))
    link = build_spoof_link(point)
    query = parse_qs(urlsplit(link).query)
    assert link.startswith("geranium://spoof?")
    assert float(query["lat"][0]) == 31.230416
    assert float(query["lon"][0]) == 121.473701


def test_share_qr_writes_png(tmp_path) -> None:
    point = LocationPoint(coordinate=Coordinate(31.2304, 121.4737))
    dest = share_qr(point, tmp_path / "share.png")
    assert dest.exists()
    assert dest.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_print_share_qr(capsys) -> None:
    print_share_qr(LocationPoint(coordinate=Coordinate(31.2304, 121.4737)))
    assert capsys.readouterr().out.strip()
