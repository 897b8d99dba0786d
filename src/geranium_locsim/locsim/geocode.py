"""Reverse geocoding (coordinate -> human label) and place search (text -> places).

The network lookup uses only the standard library. Public Nominatim is
rate-limited, so requests are spaced by ``min_interval_seconds`` and carry a
descriptive User-Agent.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar

from geranium_locsim.core.models import Coordinate, LocationPoint

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEARCH_DEBOUNCE_S = 0.5

# Most significant first, matching how the address is read aloud
_ADDRESS_PARTS = (
    "country",
    "state",
    ("city", "town", "village"),
    "suburb",
    "road",
    "house_number",
)


@dataclass(frozen=True, slots=True)
class Address:
    label: str
    detail: str | None = None


class ReverseGeocoder(Protocol):
    def reverse(self, coordinate: Coordinate) -> Address | None: ...


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One place returned by a text search. Coordinates are WGS-84."""

    title: str
    subtitle: str
    coordinate: Coordinate

    @property
    def location_point(self) -> LocationPoint:
        return LocationPoint(
            coordinate=self.coordinate,
            label=self.title,
            note=self.subtitle or None,
            needs_coordinate_transform=False,
        )


class PlaceSearcher(Protocol):
    def search(self, query: str) -> list[SearchResult]: ...


@dataclass(frozen=True, slots=True)
class NominatimConfig:
    base_url: str = "https://nominatim.openstreetmap.org/reverse"
    search_url: str = "https://nominatim.openstreetmap.org/search"
    search_limit: int = 8
    accept_language: str = "zh-CN"
    zoom: int = 18
    timeout_seconds: float = 10.0
    min_interval_seconds: float = 1.0
    user_agent: str = "geranium-locsim/0.3 (geocode)"


def _nominatim_get(url: str, params: dict[str, str], cfg: NominatimConfig) -> Any | None:
    req = urllib.request.Request(
        f"{url}?{urllib.parse.urlencode(params)}",
        headers={"User-Agent": cfg.user_agent, "Accept": "application/json"},
        method="GET",
    )
    try:
        with urllib.request.urlopen(req, timeout=cfg.timeout_seconds) as resp:  # noqa: S310
            body = resp.read().decode("utf-8", errors="replace")
        return json.loads(body)
    except (OSError, ValueError) as exc:
        logger.warning("geocode: request failed: %s", exc)
        return None


def nominatim_reverse_raw(coordinate: Coordinate, cfg: NominatimConfig) -> dict[str, Any] | None:
    """Call the Nominatim reverse API and return the raw JSON dict, or None on failure."""
    raw = _nominatim_get(
        cfg.base_url,
        {
            "format": "jsonv2",
            "lat": f"{coordinate.latitude:.8f}",
            "lon": f"{coordinate.longitude:.8f}",
            "zoom": str(cfg.zoom),
            "addressdetails": "1",
            "accept-language": cfg.accept_language,
        },
        cfg,
    )
    return raw if isinstance(raw, dict) else None


def nominatim_search_raw(query: str, cfg: NominatimConfig) -> list[dict[str, Any]] | None:
    """Call the Nominatim search API; None on failure, [] when nothing matched."""
    raw = _nominatim_get(
        cfg.search_url,
        {
            "format": "jsonv2",
            "q": query,
            "limit": str(cfg.search_limit),
            "accept-language": cfg.accept_language,
        },
        cfg,
    )
    return raw if isinstance(raw, list) else None


def address_from_nominatim(raw: dict[str, Any]) -> Address | None:
    """Build a label and a detailed address from a Nominatim jsonv2 result."""
    if "error" in raw:
        return None
    details = raw.get("address") or {}
    parts: list[str] = []
    for key in _ADDRESS_PARTS:
        names = key if isinstance(key, tuple) else (key,)
        for name in names:
            value = details.get(name)
            if value:
                parts.append(str(value))
                break
    label = raw.get("name") or details.get("road") or raw.get("display_name")
    if not label:
        return None
    detail = " ".join(parts) or None
    return Address(label=str(label), detail=detail)


def search_results_from_nominatim(raw: list[dict[str, Any]]) -> list[SearchResult]:
    results: list[SearchResult] = []
    for item in raw:
        try:
            coordinate = Coordinate(float(item["lat"]), float(item["lon"]))
        except (KeyError, TypeError, ValueError):
            continue
        if not coordinate.is_valid:
            continue
        display = str(item.get("display_name") or "")
        title = str(item.get("name") or display.split(",")[0].strip())
        if not title:
            continue
        results.append(SearchResult(title=title, subtitle=display, coordinate=coordinate))
    return results


class _Throttled:
    def __init__(self, config: NominatimConfig | None = None) -> None:
        self._cfg = config or NominatimConfig()
        self._last_request_at = 0.0

    def _sleep_if_needed(self) -> None:
        now = time.time()
        wait = self._cfg.min_interval_seconds - (now - self._last_request_at)
        if wait > 0:
            time.sleep(wait)
        self._last_request_at = time.time()


class NominatimReverseGeocoder(_Throttled):
    def reverse(self, coordinate: Coordinate) -> Address | None:
        self._sleep_if_needed()
        raw = nominatim_reverse_raw(coordinate, self._cfg)
        if raw is None:
            return None
        return address_from_nominatim(raw)


class NominatimPlaceSearcher(_Throttled):
    def search(self, query: str) -> list[SearchResult]:
        self._sleep_if_needed()
        raw = nominatim_search_raw(query, self._cfg)
        if raw is None:
            return []
        return search_results_from_nominatim(raw)


class _LatestOnly(Generic[T]):
    """At most one request in flight.

    Starting a new request cancels the previous one, and a superseded request
    resolves to None so a slow stale answer never overwrites a fresh one.
    """

    def __init__(self, debounce_s: float = 0.0) -> None:
        self._debounce_s = debounce_s
        self._task: asyncio.Task[T] | None = None
        self._generation = 0

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _call(self, fn: Callable[[Any], T], arg: Any) -> T:
        if self._debounce_s > 0:
            await asyncio.sleep(self._debounce_s)
        return await asyncio.to_thread(fn, arg)

    async def _latest(self, fn: Callable[[Any], T], arg: Any) -> T | None:
        self.cancel()
        generation = self._generation
        call: Awaitable[T] = self._call(fn, arg)
        task = asyncio.ensure_future(call)
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("geocode: request for %r superseded", arg)
                return None
            raise
        if generation != self._generation:
            return None
        self._task = None
        return result


class AddressLookup(_LatestOnly[Address | None]):
    def __init__(self, geocoder: ReverseGeocoder) -> None:
        super().__init__()
        self._geocoder = geocoder

    async def lookup(self, coordinate: Coordinate) -> Address | None:
        return await self._latest(self._geocoder.reverse, coordinate)


class PlaceSearch(_LatestOnly[list[SearchResult]]):
    """Debounced place search; a superseded query returns None, no match returns []."""

    def __init__(self, searcher: PlaceSearcher, debounce_s: float = SEARCH_DEBOUNCE_S) -> None:
        super().__init__(debounce_s)
        self._searcher = searcher

    async def search(self, query: str) -> list[SearchResult] | None:
        query = query.strip()
        if not query:
            self.cancel()
            return []
        return await self._latest(self._searcher.search, query)
