from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from .enums import SpoofingError


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A latitude/longitude pair in degrees.

    The frame (WGS-84 or GCJ-02) is not part of the value; callers track it
    through LocationPoint.needs_coordinate_transform.
    """

    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        return abs(self.latitude) <= 90.0 and abs(self.longitude) <= 180.0

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class LocationPoint:
    coordinate: Coordinate
    altitude: float = 0.0
    label: str | None = None
    note: str | None = None
    # False for coordinates already in WGS-84 (bookmarks, deep links, map links)
    needs_coordinate_transform: bool = True

    @property
    def latitude(self) -> float:
        return self.coordinate.latitude

    @property
    def longitude(self) -> float:
        return self.coordinate.longitude

    @property
    def coordinate_description(self) -> str:
        return f"{self.latitude}, {self.longitude}"


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Running:
    point: LocationPoint


SessionState = Idle | Running

IDLE = Idle()


@dataclass(frozen=True, slots=True)
class SpoofingSession:
    state: SessionState = IDLE
    last_error: SpoofingError | None = None

    @property
    def is_active(self) -> bool:
        return isinstance(self.state, Running)

    @property
    def active_point(self) -> LocationPoint | None:
        if isinstance(self.state, Running):
            return self.state.point
        return None


@dataclass(frozen=True, slots=True)
class PersistedSpoofingRecord:
    """Durable shadow of SpoofingSession kept in the shared key-value store."""

    is_spoofing: bool
    coordinate: Coordinate | None = None
    label: str | None = None
    note: str | None = None

    def to_point(self) -> LocationPoint | None:
        if not self.is_spoofing or self.coordinate is None:
            return None
        # Persisted coordinates are stored in their already-resolved frame
        return LocationPoint(
            coordinate=self.coordinate,
            label=self.label,
            note=self.note,
            needs_coordinate_transform=False,
        )


@dataclass(slots=True)
class Bookmark:
    name: str
    coordinate: Coordinate
    note: str | None = None
    bookmark_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_used_at: datetime | None = None

    @property
    def location_point(self) -> LocationPoint:
        return LocationPoint(
            coordinate=self.coordinate,
            label=self.name,
            note=self.note,
            needs_coordinate_transform=False,
        )


@dataclass(slots=True)
class MapStatus:
    title: str
    detail: str
    is_active: bool
