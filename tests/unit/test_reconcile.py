"""Tests for checking a persisted override against the live position."""

from __future__ import annotations

from geranium_locsim.core.models import Coordinate, LocationPoint, PersistedSpoofingRecord
from geranium_locsim.locsim.persistence import SpoofingRecordStore
from geranium_locsim.locsim.reconcile import DEFAULT_THRESHOLD_M, ReconciliationPolicy
from geranium_locsim.mock import InMemoryKeyValueStore

PERSISTED = Coordinate(31.2304, 121.4737)


def _policy(threshold: float = DEFAULT_THRESHOLD_M):
    kv = InMemoryKeyValueStore()
    records = SpoofingRecordStore(kv)
    records.save(LocationPoint(coordinate=PERSISTED, label="Office"))
    return ReconciliationPolicy(records, threshold), records, kv


def test_close_live_reading_keeps_override() -> None:
    policy, records, kv = _policy()
    # Roughly 140 m north of the persisted point
    live = Coordinate(31.2317, 121.4737)
    point = policy.evaluate(records.load(), live)

    assert point is not None
    assert point.coordinate == PERSISTED
    assert point.label == "Office"
    assert point.needs_coordinate_transform is False
    assert kv.data


def test_distant_live_reading_clears_record() -> None:
    policy, records, kv = _policy()
    # Roughly 75 km away
    live = Coordinate(31.9, 121.4737)
    assert policy.evaluate(records.load(), live) is None
    assert kv.data == {}
    assert records.load() is None


def test_no_live_reading_trusts_record() -> None:
    policy, records, kv = _policy()
    point = policy.evaluate(records.load(), None)
    assert point is not None
    assert point.coordinate == PERSISTED
    assert kv.data


def test_no_record_is_inactive() -> None:
    policy, _, _ = _policy()
    assert policy.evaluate(None, Coordinate(0.0, 0.0)) is None
    assert policy.evaluate(PersistedSpoofingRecord(is_spoofing=False), None) is None


def test_threshold_is_configurable() -> None:
    policy, records, kv = _policy(threshold=50.0)
    live = Coordinate(31.2317, 121.4737)
    assert policy.evaluate(records.load(), live) is None
    assert kv.data == {}
