from .coord_transform import gcj02_to_wgs84, out_of_china, wgs84_to_gcj02
from .enums import DeepLinkHost, SessionEvent, SpoofingError
from .geo import distance_m, haversine_m
from .models import (
    IDLE,
    Bookmark,
    Coordinate,
    Idle,
    LocationPoint,
    MapStatus,
    PersistedSpoofingRecord,
    Running,
    SessionState,
    SpoofingSession,
)
from .services import CrossProcessSignal, KeyValueStore, LocationSource, SimulationService

__all__ = [
    "IDLE",
    "Bookmark",
    "Coordinate",
    "CrossProcessSignal",
    "DeepLinkHost",
    "Idle",
    "KeyValueStore",
    "LocationPoint",
    "LocationSource",
    "MapStatus",
    "PersistedSpoofingRecord",
    "Running",
    "SessionEvent",
    "SessionState",
    "SimulationService",
    "SpoofingError",
    "SpoofingSession",
    "distance_m",
    "gcj02_to_wgs84",
    "haversine_m",
    "out_of_china",
    "wgs84_to_gcj02",
]
