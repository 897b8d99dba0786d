"""Spoofing session state machine."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING, Callable

from geranium_locsim.core.coord_transform import gcj02_to_wgs84
from geranium_locsim.core.enums import SessionEvent, SpoofingError
from geranium_locsim.core.models import (
    IDLE,
    Coordinate,
    LocationPoint,
    Running,
    SpoofingSession,
)
from geranium_locsim.core.services import CrossProcessSignal, LocationSource, SimulationService

from .persistence import SpoofingRecordStore

if TYPE_CHECKING:
    from .reconcile import ReconciliationPolicy

logger = logging.getLogger(__name__)

SessionNotify = Callable[[SessionEvent, SpoofingSession], None]


class SpoofingEngine:
    """Owns the SpoofingSession and drives the simulation service.

    Public operations are serialized with a re-entrant lock because each one
    reads and then writes both the in-memory session and the persisted record.
    """

    def __init__(
        self,
        simulation: SimulationService,
        records: SpoofingRecordStore,
        *,
        location_source: LocationSource | None = None,
        timezone_signal: CrossProcessSignal | None = None,
    ) -> None:
        self._simulation = simulation
        self._records = records
        self._location_source = location_source
        self._timezone_signal = timezone_signal
        self._session = SpoofingSession()
        self._lock = threading.RLock()
        self._notify: SessionNotify | None = None

    @property
    def session(self) -> SpoofingSession:
        return self._session

    @property
    def records(self) -> SpoofingRecordStore:
        return self._records

    def set_session_notify(self, notify_fn: SessionNotify | None) -> None:
        self._notify = notify_fn

    def start(self, point: LocationPoint) -> bool:
        """Start simulating ``point``. Returns False if the service refused."""
        with self._lock:
            target = self._simulation_coordinate(point)
            logger.info(
                "engine: start %.6f, %.6f (transform=%s) label=%s",
                point.latitude,
                point.longitude,
                point.needs_coordinate_transform,
                point.label,
            )
            try:
                self._simulation.stop_simulating()
                self._simulation.clear()
                self._simulation.append(target, point.altitude)
                self._simulation.flush()
                self._simulation.start_simulating()
            except Exception as exc:  # noqa: BLE001
                logger.warning("engine: simulation service failed to start: %s", exc)
                self._session = replace(self._session, last_error=SpoofingError.UNABLE_TO_START)
                self._emit(SessionEvent.ERROR_RECORDED)
                return False

            self._post_timezone_update()
            # The session keeps the point as chosen, not the simulation-frame copy
            self._session = SpoofingSession(state=Running(point), last_error=None)
            self._records.save(point)
            self._emit(SessionEvent.STARTED)
            return True

    def stop(self) -> None:
        with self._lock:
            logger.info("engine: stop (active=%s)", self._session.is_active)
            try:
                self._simulation.stop_simulating()
                self._simulation.clear()
                self._simulation.flush()
            except Exception as exc:  # noqa: BLE001
                logger.warning("engine: simulation service failed to stop cleanly: %s", exc)
            self._post_timezone_update()
            self._session = replace(self._session, state=IDLE)
            self._records.clear()
            if self._location_source is not None:
                self._location_source.resume_updates()
            self._emit(SessionEvent.STOPPED)

    def restore(self, point: LocationPoint | None) -> None:
        """Sync session state without touching the simulation service."""
        with self._lock:
            state = Running(point) if point is not None else IDLE
            self._session = replace(self._session, state=state)
            logger.debug("engine: restored state=%s", type(state).__name__)
            self._emit(SessionEvent.RESTORED)

    def record_error(self, kind: SpoofingError) -> None:
        with self._lock:
            self._session = replace(self._session, last_error=kind)
            self._emit(SessionEvent.ERROR_RECORDED)

    def update_details(self, label: str | None, note: str | None) -> bool:
        """Replace label/note on the active point (after an address lookup)."""
        with self._lock:
            active = self._session.active_point
            if active is None:
                return False
            updated = replace(active, label=label, note=note)
            self._session = replace(self._session, state=Running(updated))
            self._records.update_details(label, note)
            self._emit(SessionEvent.DETAILS_UPDATED)
            return True

    def reconcile(
        self, policy: ReconciliationPolicy, live_reading: Coordinate | None
    ) -> LocationPoint | None:
        """Validate the persisted record against ``live_reading`` and restore."""
        with self._lock:
            point = policy.evaluate(self._records.load(), live_reading)
            self.restore(point)
            return point

    def _simulation_coordinate(self, point: LocationPoint) -> Coordinate:
        if point.needs_coordinate_transform:
            return gcj02_to_wgs84(point.coordinate)
        return point.coordinate

    def _post_timezone_update(self) -> None:
        """Tell the system the apparent position moved so it re-derives the time zone."""
        if self._timezone_signal is None:
            return
        try:
            self._timezone_signal.post()
        except OSError as exc:
            logger.warning("engine: timezone update signal failed: %s", exc)

    def _emit(self, event: SessionEvent) -> None:
        if self._notify is None:
            return
        try:
            self._notify(event, self._session)
        except Exception:  # noqa: BLE001
            logger.exception("engine: session observer raised")
