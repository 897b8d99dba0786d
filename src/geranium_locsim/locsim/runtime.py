"""Wire stores, services, and the controller for one process."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from geranium_locsim.core.services import LocationSource, SimulationService

from .bookmarks import BookmarkStore
from .config import RuntimeConfig
from .controller import LocSimController
from .db import open_db
from .engine import SpoofingEngine
from .geocode import (
    AddressLookup,
    NominatimPlaceSearcher,
    NominatimReverseGeocoder,
    PlaceSearch,
    PlaceSearcher,
    ReverseGeocoder,
)
from .kv_store import SqliteKeyValueStore
from .paths import timezone_signal_path
from .persistence import SpoofingRecordStore
from .reconcile import ReconciliationPolicy
from .settings_store import SettingsStore
from .share import ShareInbox
from .signal import FileSignal

logger = logging.getLogger(__name__)


def create_simulation_service(config: RuntimeConfig) -> SimulationService:
    if config.mock:
        from geranium_locsim.mock import MockSimulationService

        return MockSimulationService()

    from geranium_locsim.platform.simulation import DeviceSimulationService

    return DeviceSimulationService(udid=config.device_udid)


def create_geocoder(config: RuntimeConfig) -> ReverseGeocoder:
    if config.mock:
        from geranium_locsim.mock import MockGeocoder

        return MockGeocoder()
    return NominatimReverseGeocoder()


def create_place_searcher(config: RuntimeConfig) -> PlaceSearcher:
    if config.mock:
        from geranium_locsim.mock import MockPlaceSearcher

        return MockPlaceSearcher()
    return NominatimPlaceSearcher()


@dataclass(slots=True)
class LocSimRuntime:
    config: RuntimeConfig
    conn: sqlite3.Connection
    controller: LocSimController
    bookmarks: BookmarkStore
    inbox: ShareInbox
    location_source: LocationSource

    def read_live_reading(self, timeout: float = 5.0) -> None:
        """Give a real receiver a chance to produce a fix before reconciling."""
        read_fix = getattr(self.location_source, "read_fix", None)
        if read_fix is not None:
            read_fix(timeout=timeout)

    def close(self) -> None:
        stop = getattr(self.location_source, "stop", None)
        if stop is not None:
            stop()
        self.conn.close()


def build_runtime(
    config: RuntimeConfig,
    *,
    db_path: Path | None = None,
    simulation: SimulationService | None = None,
    location_source: LocationSource | None = None,
    geocoder: ReverseGeocoder | None = None,
    place_searcher: PlaceSearcher | None = None,
    signal_path: Path | None = None,
    timezone_path: Path | None = None,
) -> LocSimRuntime:
    from geranium_locsim.platform.gps import create_location_source

    logger.info("runtime: %s", config.to_log_string())
    conn = open_db(db_path)
    kv = SqliteKeyValueStore(conn)
    records = SpoofingRecordStore(kv)
    source = location_source if location_source is not None else create_location_source(config)
    engine = SpoofingEngine(
        simulation if simulation is not None else create_simulation_service(config),
        records,
        location_source=source,
        timezone_signal=FileSignal(timezone_path or timezone_signal_path()),
    )
    bookmarks = BookmarkStore(conn)
    lookup = AddressLookup(geocoder if geocoder is not None else create_geocoder(config))
    search = PlaceSearch(
        place_searcher if place_searcher is not None else create_place_searcher(config),
        debounce_s=config.search_debounce_s,
    )
    controller = LocSimController(
        engine,
        ReconciliationPolicy(records, config.reconcile_threshold_m),
        bookmarks,
        SettingsStore(conn),
        source,
        address_lookup=lookup,
        place_search=search,
        resume_delay_s=config.resume_delay_s,
    )
    inbox = ShareInbox(kv, FileSignal(signal_path))
    return LocSimRuntime(
        config=config,
        conn=conn,
        controller=controller,
        bookmarks=bookmarks,
        inbox=inbox,
        location_source=source,
    )
