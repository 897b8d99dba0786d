"""Application-level coordination of selection, spoofing, and recovery.

This is the non-visual half of the map screen: it owns the selected point,
routes deep links and bookmarks into the engine, and runs reconciliation at
startup and after every foreground resume.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from geranium_locsim.core.enums import DeepLinkHost, SessionEvent, SpoofingError
from geranium_locsim.core.models import (
    Bookmark,
    Coordinate,
    LocationPoint,
    MapStatus,
    SpoofingSession,
)
from geranium_locsim.core.services import LocationSource

from .bookmarks import BookmarkStore
from .deeplink import (
    SHARED_LOCATION_LABEL,
    DeepLinkRequest,
    parse_deep_link,
    point_from_notification,
)
from .engine import SpoofingEngine
from .extractor import parse_coordinate_text
from .geocode import AddressLookup, PlaceSearch, SearchResult
from .reconcile import ReconciliationPolicy
from .settings import LocSimSettings, add_recent_search
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)

TYPED_COORDINATE_LABEL = "Coordinate"
DEFAULT_RESUME_DELAY_S = 0.5


class LocSimController:
    def __init__(
        self,
        engine: SpoofingEngine,
        policy: ReconciliationPolicy,
        bookmarks: BookmarkStore,
        settings_store: SettingsStore,
        location_source: LocationSource,
        *,
        address_lookup: AddressLookup | None = None,
        place_search: PlaceSearch | None = None,
        resume_delay_s: float = DEFAULT_RESUME_DELAY_S,
    ) -> None:
        self._engine = engine
        self._policy = policy
        self._bookmarks = bookmarks
        self._settings_store = settings_store
        self._settings = settings_store.load()
        self._location_source = location_source
        self._address_lookup = address_lookup
        self._place_search = place_search
        self._resume_delay_s = resume_delay_s

        self.selected_location: LocationPoint | None = None
        self.error_message: str | None = None
        self.search_results: list[SearchResult] = []
        # Where a map surface should re-center after a cancelled override
        self.recenter_target: Coordinate | None = None

        engine.set_session_notify(self._on_session_changed)

    @property
    def engine(self) -> SpoofingEngine:
        return self._engine

    @property
    def session(self) -> SpoofingSession:
        return self._engine.session

    @property
    def settings_store(self) -> SettingsStore:
        return self._settings_store

    @property
    def settings(self) -> LocSimSettings:
        return self._settings

    def live_reading(self) -> Coordinate | None:
        location = self._location_source.get_location()
        if location is None:
            return None
        return Coordinate(*location)

    # -- recovery ---------------------------------------------------------

    def startup(self) -> LocationPoint | None:
        """Restore a persisted override if the live reading does not disprove it."""
        restored = self._engine.reconcile(self._policy, self.live_reading())
        if restored is not None:
            logger.info("controller: restored override at %s", restored.coordinate_description)
            self.selected_location = restored
        return restored

    async def reconcile_after_resume(self, delay: float | None = None) -> LocationPoint | None:
        """Re-check the override after the app returns to the foreground.

        Waits ``delay`` seconds first so the location source can deliver a
        reading taken after the resume.
        """
        checked = self._engine.session.active_point
        if checked is None:
            logger.debug("controller: resume with no active override")
            return None
        await asyncio.sleep(self._resume_delay_s if delay is None else delay)

        current = self._engine.session.active_point
        if current is None or current.coordinate != checked.coordinate:
            # Stopped or moved while waiting
            logger.debug("controller: session changed during resume delay")
            return current

        live = self.live_reading()
        restored = self._engine.reconcile(self._policy, live)
        if restored is not None:
            self.selected_location = restored
            return restored

        logger.info("controller: override no longer in effect")
        self.selected_location = None
        self.recenter_target = live
        return None

    # -- spoofing ---------------------------------------------------------

    def select(self, point: LocationPoint | None) -> None:
        self.selected_location = point

    def start_selected(self) -> bool:
        if self.selected_location is None:
            self._engine.record_error(SpoofingError.INVALID_COORDINATE)
            self.error_message = SpoofingError.INVALID_COORDINATE.message
            return False
        return self._start(self.selected_location, None)

    def stop(self) -> None:
        self._engine.stop()
        # The selection survives so the user can restart at the same point

    def toggle(self) -> bool:
        if self._engine.session.is_active:
            self.stop()
            return False
        return self.start_selected()

    def _start(self, point: LocationPoint, bookmark: Bookmark | None) -> bool:
        self.error_message = None
        started = self._engine.start(point)
        if not started:
            self.error_message = SpoofingError.UNABLE_TO_START.message
            return False
        self._bookmarks.mark_as_last_used(bookmark)
        return True

    # -- bookmarks --------------------------------------------------------

    def focus_bookmark(self, bookmark: Bookmark, auto_start: bool | None = None) -> bool:
        point = bookmark.location_point
        self.selected_location = point
        should_start = self._settings.auto_start_from_bookmarks if auto_start is None else auto_start
        if should_start:
            return self._start(point, bookmark)
        return False

    def select_bookmark(self, bookmark: Bookmark) -> bool:
        """Tapping the bookmark in use stops spoofing; any other one focuses it."""
        if bookmark.bookmark_id == self._bookmarks.last_used_id() and self.session.is_active:
            self.stop()
            return False
        return self.focus_bookmark(bookmark)

    # -- search -----------------------------------------------------------

    def search_text(self, query: str) -> LocationPoint | None:
        """Select a typed coordinate. Returns None for free-text place queries.

        The query is recorded in the recent searches either way.
        """
        query = query.strip()
        if not query:
            return None
        self._settings = add_recent_search(self._settings, query)
        self._settings_store.save(self._settings)

        coordinate = parse_coordinate_text(query)
        if coordinate is None:
            return None
        point = LocationPoint(
            coordinate=coordinate,
            label=TYPED_COORDINATE_LABEL,
            note=f"{coordinate.latitude}, {coordinate.longitude}",
        )
        self.selected_location = point
        return point

    async def search(self, query: str) -> list[SearchResult] | None:
        """Typed coordinates select directly; anything else runs a place search.

        Returns the results now held in ``search_results`` (empty after a
        coordinate hit), or None when a newer query superseded this one.
        """
        if self.search_text(query) is not None or self._place_search is None:
            self.search_results = []
            return []
        results = await self._place_search.search(query)
        if results is None:
            return None
        logger.debug("controller: %d place result(s) for %r", len(results), query.strip())
        self.search_results = results
        return results

    def select_search_result(self, result: SearchResult, *, start: bool = False) -> bool:
        point = result.location_point
        self.selected_location = point
        self.search_results = []
        self._settings = add_recent_search(self._settings, result.title)
        self._settings_store.save(self._settings)
        if start:
            return self._start(point, None)
        return False

    @property
    def recent_searches(self) -> list[str]:
        return list(self._settings.recent_searches)

    # -- inbound links ----------------------------------------------------

    def handle_url(self, url: str) -> DeepLinkRequest | None:
        """Act on a ``geranium://`` link. Unusable links change nothing."""
        request = parse_deep_link(url)
        if request is None:
            return None
        if request.host is DeepLinkHost.BOOKMARKS:
            logger.info("controller: bookmarks reload requested")
            return request

        assert request.point is not None
        self.selected_location = request.point
        started = self._start(request.point, None)
        if started and request.host is DeepLinkHost.SPOOF_AND_BOOKMARK:
            self._bookmarks.add(
                request.point.label or SHARED_LOCATION_LABEL, request.point.coordinate
            )
        return request

    def handle_notification(self, payload: dict[str, Any]) -> bool:
        point = point_from_notification(payload)
        if point is None:
            return False
        self.selected_location = point
        return self.start_selected()

    async def finish_shared_location(self, point: LocationPoint) -> Bookmark:
        """Resolve an address for a shared point, bookmark it, refresh the session."""
        label = SHARED_LOCATION_LABEL
        note = point.note
        if self._address_lookup is not None:
            address = await self._address_lookup.lookup(point.coordinate)
            if address is not None:
                label = address.label
                note = address.detail or note

        bookmark = self._bookmarks.add(label, point.coordinate, note)
        if self.selected_location is not None and self.selected_location.coordinate == point.coordinate:
            self.selected_location = LocationPoint(
                coordinate=point.coordinate,
                label=label,
                note=note,
                needs_coordinate_transform=point.needs_coordinate_transform,
            )
        active = self._engine.session.active_point
        if active is not None and active.coordinate == point.coordinate:
            self._engine.update_details(label, note)
        return bookmark

    async def refresh_address(self) -> LocationPoint | None:
        """Look up a label for the active point when it has no address yet."""
        active = self._engine.session.active_point
        if active is None or self._address_lookup is None or active.note:
            return active
        address = await self._address_lookup.lookup(active.coordinate)
        if address is None:
            return active
        current = self._engine.session.active_point
        if current is None or current.coordinate != active.coordinate:
            return current
        self._engine.update_details(address.label, address.detail)
        return self._engine.session.active_point

    # -- presentation -----------------------------------------------------

    def status(self) -> MapStatus:
        active = self._engine.session.active_point
        if active is not None:
            detail = active.note or active.label or active.coordinate_description
            return MapStatus(title="Location simulation on", detail=detail, is_active=True)
        return MapStatus(
            title="Location simulation off",
            detail="Tap the map to place a location",
            is_active=False,
        )

    def _on_session_changed(self, event: SessionEvent, session: SpoofingSession) -> None:
        logger.debug("controller: session %s active=%s", event, session.is_active)
        if event is not SessionEvent.ERROR_RECORDED and not session.is_active:
            self._bookmarks.mark_as_last_used(None)
