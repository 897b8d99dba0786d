"""Parse inbound ``geranium://`` links into actionable requests."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

from geranium_locsim.core.enums import DeepLinkHost
from geranium_locsim.core.models import Coordinate, LocationPoint

from .extractor import extract_coordinate
from .share import SCHEME

logger = logging.getLogger(__name__)

SHARED_LOCATION_LABEL = "Shared location"


@dataclass(frozen=True, slots=True)
class DeepLinkRequest:
    host: DeepLinkHost
    point: LocationPoint | None = None
    bookmark: bool = False
    # Present for process-map-url: the decoded nested map link
    map_url: str | None = None


def parse_deep_link(url: str) -> DeepLinkRequest | None:
    """Return the request encoded in ``url`` or None if it is not actionable."""
    parts = urlsplit(url.strip())
    if parts.scheme != SCHEME:
        logger.debug("deeplink: ignoring scheme %r", parts.scheme)
        return None
    try:
        host = DeepLinkHost(parts.netloc)
    except ValueError:
        logger.info("deeplink: unknown host %r", parts.netloc)
        return None
    query = parse_qs(parts.query)

    if host is DeepLinkHost.BOOKMARKS:
        return DeepLinkRequest(host=host)

    if host in (DeepLinkHost.SPOOF, DeepLinkHost.SPOOF_AND_BOOKMARK):
        lat = _first_float(query, "lat")
        lon = _first_float(query, "lon")
        if lat is None or lon is None:
            logger.info("deeplink: spoof link without usable lat/lon: %s", url)
            return None
        coordinate = Coordinate(lat, lon)
        if not coordinate.is_valid:
            return None
        point = LocationPoint(
            coordinate=coordinate,
            label=SHARED_LOCATION_LABEL,
            needs_coordinate_transform=False,
        )
        return DeepLinkRequest(
            host=host, point=point, bookmark=host is DeepLinkHost.SPOOF_AND_BOOKMARK
        )

    # process-map-url: the nested link may arrive encoded twice
    values = query.get("url")
    if not values:
        logger.info("deeplink: process-map-url without url parameter")
        return None
    map_url = unquote(values[0])
    extracted = extract_coordinate(map_url)
    if extracted is None:
        return None
    coordinate = extracted.coordinate
    point = LocationPoint(
        coordinate=coordinate,
        label=SHARED_LOCATION_LABEL,
        note=f"{coordinate.latitude:.6f}, {coordinate.longitude:.6f}",
        needs_coordinate_transform=extracted.needs_coordinate_transform,
    )
    return DeepLinkRequest(host=host, point=point, bookmark=True, map_url=map_url)


def point_from_notification(payload: dict[str, Any]) -> LocationPoint | None:
    """Build a WGS-84 point from a ``{lat, lon, name}`` notification payload."""
    try:
        lat = float(payload["lat"])
        lon = float(payload["lon"])
    except (KeyError, TypeError, ValueError):
        return None
    name = payload.get("name")
    coordinate = Coordinate(lat, lon)
    if not (math.isfinite(lat) and math.isfinite(lon)) or not coordinate.is_valid:
        return None
    return LocationPoint(
        coordinate=coordinate,
        label=name if isinstance(name, str) else None,
        needs_coordinate_transform=False,
    )


def _first_float(query: dict[str, list[str]], name: str) -> float | None:
    values = query.get(name)
    if not values:
        return None
    try:
        value = float(values[0])
    except ValueError:
        return None
    return value if math.isfinite(value) else None
