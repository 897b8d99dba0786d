"""Coordinate extraction from map links and typed text."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from urllib.parse import parse_qs, unquote, urlsplit

from geranium_locsim.core.models import Coordinate

logger = logging.getLogger(__name__)

# Google style "/@lat,lon" in the link path
_AT_PAIR_RE = re.compile(r"/@([-+]?\d+(?:\.\d+)?),([-+]?\d+(?:\.\d+)?)")


@dataclass(frozen=True, slots=True)
class ExtractedCoordinate:
    coordinate: Coordinate
    # Links from map providers, our own scheme and notifications carry WGS-84
    needs_coordinate_transform: bool = False


def _to_float(token: str) -> float | None:
    try:
        value = float(token.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _pair(value: str, *, exact: bool) -> Coordinate | None:
    parts = value.split(",")
    if exact and len(parts) != 2:
        return None
    if len(parts) < 2:
        return None
    lat = _to_float(parts[0])
    lon = _to_float(parts[1])
    if lat is None or lon is None:
        return None
    return Coordinate(lat, lon)


def extract_coordinate(url: str) -> ExtractedCoordinate | None:
    """Pull a coordinate out of a shared map link.

    Tried in order, first match wins: ``ll=lat,lon``, ``q=lat,lon[,...]``,
    ``center=lat,lon``, then ``/@lat,lon`` in the path. Returns None when
    nothing matches; callers must then leave all state untouched.
    """
    parts = urlsplit(url.strip())
    query = parse_qs(parts.query, keep_blank_values=True)

    candidates = (
        ("ll", True),
        ("q", False),
        ("center", True),
    )
    for name, exact in candidates:
        values = query.get(name)
        if not values:
            continue
        coordinate = _pair(values[0], exact=exact)
        if coordinate is not None and coordinate.is_valid:
            logger.debug("extract: %s= matched %s", name, coordinate.as_tuple())
            return ExtractedCoordinate(coordinate)
        logger.debug("extract: %s=%r did not parse", name, values[0])

    match = _AT_PAIR_RE.search(unquote(parts.path))
    if match:
        coordinate = Coordinate(float(match.group(1)), float(match.group(2)))
        if coordinate.is_valid:
            logger.debug("extract: /@ matched %s", coordinate.as_tuple())
            return ExtractedCoordinate(coordinate)

    logger.info("extract: no coordinate found in %s", url)
    return None


def parse_coordinate_text(text: str) -> Coordinate | None:
    """Parse a typed ``"lat,lon"`` or ``"lon,lat"`` pair.

    Latitude-first is assumed whenever it fits; the pair is read as
    longitude-first only when the first value cannot be a latitude.
    """
    cleaned = "".join(text.split())
    tokens = cleaned.split(",")
    if len(tokens) != 2:
        return None
    first = _to_float(tokens[0])
    second = _to_float(tokens[1])
    if first is None or second is None:
        return None

    if abs(first) <= 90 and abs(second) <= 180:
        coordinate = Coordinate(first, second)
    elif abs(second) <= 90 and abs(first) <= 180:
        coordinate = Coordinate(second, first)
    else:
        return None

    return coordinate if coordinate.is_valid else None
