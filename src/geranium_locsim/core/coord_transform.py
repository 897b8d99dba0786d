"""WGS-84 <-> GCJ-02 coordinate conversion.

GCJ-02 is the offset frame China-region map providers display in. Points
outside the mainland bounding box are never offset, so both directions return
them unchanged.

The inverse is the usual one-step approximation: the offset is evaluated at the
GCJ-02 point as if it were WGS-84 and subtracted. It is not refined
iteratively, so round trips drift by a few meters.
"""

from __future__ import annotations

import math

from .models import Coordinate

# Krasovsky 1940 ellipsoid parameters used by the published bias model
SEMI_MAJOR_AXIS = 6378245.0
ECCENTRICITY_SQ = 0.00669342162296594323

CHINA_MIN_LON = 72.004
CHINA_MAX_LON = 137.8347
CHINA_MIN_LAT = 0.8293
CHINA_MAX_LAT = 55.8271


def out_of_china(coordinate: Coordinate) -> bool:
    """Return True if the coordinate lies outside the offset region."""
    lon = coordinate.longitude
    lat = coordinate.latitude
    if lon < CHINA_MIN_LON or lon > CHINA_MAX_LON:
        return True
    return lat < CHINA_MIN_LAT or lat > CHINA_MAX_LAT


def _transform_lat(x: float, y: float) -> float:
    ret = -100.0 + 2.0 * x + 3.0 * y + 0.2 * y * y + 0.1 * x * y + 0.2 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * math.pi) + 40.0 * math.sin(y / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * math.pi) + 320.0 * math.sin(y * math.pi / 30.0)) * 2.0 / 3.0
    return ret


def _transform_lon(x: float, y: float) -> float:
    ret = 300.0 + x + 2.0 * y + 0.1 * x * x + 0.1 * x * y + 0.1 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * math.pi) + 40.0 * math.sin(x / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * math.pi) + 300.0 * math.sin(x / 30.0 * math.pi)) * 2.0 / 3.0
    return ret


def _offset(lat: float, lon: float) -> tuple[float, float]:
    """Return the (d_lat, d_lon) offset in degrees evaluated at (lat, lon)."""
    d_lat = _transform_lat(lon - 105.0, lat - 35.0)
    d_lon = _transform_lon(lon - 105.0, lat - 35.0)
    rad_lat = lat / 180.0 * math.pi
    magic = math.sin(rad_lat)
    magic = 1 - ECCENTRICITY_SQ * magic * magic
    sqrt_magic = math.sqrt(magic)
    d_lat = (d_lat * 180.0) / ((SEMI_MAJOR_AXIS * (1 - ECCENTRICITY_SQ)) / (magic * sqrt_magic) * math.pi)
    d_lon = (d_lon * 180.0) / (SEMI_MAJOR_AXIS / sqrt_magic * math.cos(rad_lat) * math.pi)
    return d_lat, d_lon


def wgs84_to_gcj02(coordinate: Coordinate) -> Coordinate:
    if out_of_china(coordinate):
        return coordinate
    d_lat, d_lon = _offset(coordinate.latitude, coordinate.longitude)
    return Coordinate(coordinate.latitude + d_lat, coordinate.longitude + d_lon)


def gcj02_to_wgs84(coordinate: Coordinate) -> Coordinate:
    if out_of_china(coordinate):
        return coordinate
    d_lat, d_lon = _offset(coordinate.latitude, coordinate.longitude)
    return Coordinate(coordinate.latitude - d_lat, coordinate.longitude - d_lon)
