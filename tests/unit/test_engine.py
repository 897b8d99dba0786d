"""Tests for the spoofing session state machine."""

from __future__ import annotations

from geranium_locsim.core.coord_transform import gcj02_to_wgs84
from geranium_locsim.core.enums import SessionEvent, SpoofingError
from geranium_locsim.core.models import Coordinate, LocationPoint
from geranium_locsim.locsim.engine import SpoofingEngine
from geranium_locsim.locsim.persistence import IS_SPOOFING_KEY, SpoofingRecordStore
from geranium_locsim.locsim.reconcile import ReconciliationPolicy
from geranium_locsim.mock import (
    InMemoryKeyValueStore,
    MemorySignal,
    MockLocationSource,
    MockSimulationService,
)

SHANGHAI = Coordinate(31.2304, 121.4737)


def _engine(**sim_kwargs):
    simulation = MockSimulationService(**sim_kwargs)
    kv = InMemoryKeyValueStore()
    source = MockLocationSource()
    engine = SpoofingEngine(simulation, SpoofingRecordStore(kv), location_source=source)
    return engine, simulation, kv, source


# --- start ---


def test_start_drives_service_in_order() -> None:
    engine, simulation, _, _ = _engine()
    assert engine.start(LocationPoint(coordinate=SHANGHAI, needs_coordinate_transform=False))
    assert simulation.calls == ["stop", "clear", "append", "flush", "start"]
    assert simulation.active


def test_start_converts_gcj02_points() -> None:
    engine, simulation, _, _ = _engine()
    point = LocationPoint(coordinate=SHANGHAI, label="Map tap")
    engine.start(point)

    assert simulation.simulated is not None
    simulated, _ = simulation.simulated
    assert simulated == gcj02_to_wgs84(SHANGHAI)
    # The session keeps the point as the user picked it
    assert engine.session.active_point == point


def test_start_passes_wgs84_points_through() -> None:
    engine, simulation, _, _ = _engine()
    engine.start(LocationPoint(coordinate=SHANGHAI, altitude=12.0, needs_coordinate_transform=False))
    assert simulation.simulated == (SHANGHAI, 12.0)


def test_start_outside_china_is_unchanged_even_when_flagged() -> None:
    engine, simulation, _, _ = _engine()
    sf = Coordinate(37.7749, -122.4194)
    engine.start(LocationPoint(coordinate=sf))
    assert simulation.simulated == (sf, 0.0)


def test_start_persists_record() -> None:
    engine, _, kv, _ = _engine()
    engine.start(LocationPoint(coordinate=SHANGHAI, label="Office"))
    assert kv.data[IS_SPOOFING_KEY] is True
    record = engine.records.load()
    assert record is not None
    assert record.coordinate == SHANGHAI
    assert record.label == "Office"


def test_start_failure_records_error() -> None:
    engine, _, kv, _ = _engine(fail_on_start=True)
    assert not engine.start(LocationPoint(coordinate=SHANGHAI))
    assert not engine.session.is_active
    assert engine.session.last_error is SpoofingError.UNABLE_TO_START
    assert IS_SPOOFING_KEY not in kv.data


def test_successful_start_clears_previous_error() -> None:
    engine, _, _, _ = _engine()
    engine.record_error(SpoofingError.INVALID_COORDINATE)
    engine.start(LocationPoint(coordinate=SHANGHAI))
    assert engine.session.last_error is None


def test_restart_replaces_point() -> None:
    engine, _, _, _ = _engine()
    engine.start(LocationPoint(coordinate=SHANGHAI))
    other = LocationPoint(coordinate=Coordinate(39.9042, 116.4074))
    engine.start(other)
    assert engine.session.active_point == other


# --- stop ---


def test_start_then_stop_leaves_no_keys() -> None:
    engine, simulation, kv, source = _engine()
    engine.start(LocationPoint(coordinate=SHANGHAI, label="a", note="b"))
    engine.stop()

    assert kv.data == {}
    assert not engine.session.is_active
    assert not simulation.active
    assert source.resume_count == 1


def test_stop_is_idempotent() -> None:
    engine, simulation, kv, _ = _engine()
    engine.stop()
    engine.stop()
    assert not engine.session.is_active
    assert kv.data == {}
    assert simulation.calls == ["stop", "clear", "flush", "stop", "clear", "flush"]


def test_store_write_failures_do_not_block_session_changes() -> None:
    kv = InMemoryKeyValueStore(fail_writes=True)
    engine = SpoofingEngine(MockSimulationService(), SpoofingRecordStore(kv))

    assert engine.start(LocationPoint(coordinate=SHANGHAI, label="Office"))
    assert engine.session.is_active
    assert engine.session.active_point is not None
    assert kv.data == {}

    engine.stop()
    assert not engine.session.is_active
    assert engine.session.last_error is None


def test_stop_keeps_last_error() -> None:
    engine, _, _, _ = _engine()
    engine.record_error(SpoofingError.INVALID_COORDINATE)
    engine.stop()
    assert engine.session.last_error is SpoofingError.INVALID_COORDINATE


# --- restore / details / observers ---


def test_restore_does_not_touch_service_or_store() -> None:
    engine, simulation, kv, _ = _engine()
    point = LocationPoint(coordinate=SHANGHAI, needs_coordinate_transform=False)
    engine.restore(point)
    assert engine.session.active_point == point
    assert simulation.calls == []
    assert kv.writes == []

    engine.restore(None)
    assert not engine.session.is_active


def test_update_details_when_active() -> None:
    engine, _, _, _ = _engine()
    engine.start(LocationPoint(coordinate=SHANGHAI, note="31.230400, 121.473700"))
    assert engine.update_details("People's Square", "Huangpu")

    active = engine.session.active_point
    assert active is not None
    assert active.label == "People's Square"
    assert active.coordinate == SHANGHAI
    record = engine.records.load()
    assert record is not None
    assert record.note == "Huangpu"


def test_update_details_when_idle_is_noop() -> None:
    engine, _, kv, _ = _engine()
    assert not engine.update_details("x", "y")
    assert kv.data == {}


def test_observer_receives_events() -> None:
    engine, _, _, _ = _engine()
    seen: list[tuple[SessionEvent, bool]] = []
    engine.set_session_notify(lambda event, session: seen.append((event, session.is_active)))

    engine.start(LocationPoint(coordinate=SHANGHAI))
    engine.stop()
    assert seen == [(SessionEvent.STARTED, True), (SessionEvent.STOPPED, False)]


def test_observer_exception_does_not_break_engine() -> None:
    engine, _, _, _ = _engine()

    def boom(event, session) -> None:
        raise ValueError("observer failure")

    engine.set_session_notify(boom)
    assert engine.start(LocationPoint(coordinate=SHANGHAI))
    assert engine.session.is_active


def test_reconcile_restores_persisted_point() -> None:
    engine, _, kv, _ = _engine()
    engine.start(LocationPoint(coordinate=SHANGHAI, label="Office"))

    # A fresh process sharing the same store
    fresh = SpoofingEngine(MockSimulationService(), SpoofingRecordStore(kv))
    restored = fresh.reconcile(ReconciliationPolicy(fresh.records), None)
    assert restored is not None
    assert fresh.session.active_point == restored
    assert restored.label == "Office"
    assert restored.needs_coordinate_transform is False


# --- timezone update ---


def test_timezone_update_posted_on_start_and_stop() -> None:
    signal = MemorySignal()
    engine = SpoofingEngine(
        MockSimulationService(),
        SpoofingRecordStore(InMemoryKeyValueStore()),
        timezone_signal=signal,
    )
    engine.start(LocationPoint(coordinate=SHANGHAI))
    assert signal.posted == 1
    engine.stop()
    assert signal.posted == 2


def test_timezone_update_not_posted_when_start_fails() -> None:
    signal = MemorySignal()
    engine = SpoofingEngine(
        MockSimulationService(fail_on_start=True),
        SpoofingRecordStore(InMemoryKeyValueStore()),
        timezone_signal=signal,
    )
    assert not engine.start(LocationPoint(coordinate=SHANGHAI))
    assert signal.posted == 0


def test_timezone_signal_failure_is_soft() -> None:
    class BrokenSignal(MemorySignal):
        def post(self) -> None:
            raise OSError("read-only state dir")

    engine = SpoofingEngine(
        MockSimulationService(),
        SpoofingRecordStore(InMemoryKeyValueStore()),
        timezone_signal=BrokenSignal(),
    )
    assert engine.start(LocationPoint(coordinate=SHANGHAI))
    assert engine.session.is_active
    engine.stop()
    assert not engine.session.is_active
