"""Mock implementations for testing and development."""

from .geocoder import MockGeocoder, MockPlaceSearcher
from .gps import MockLocationSource
from .simulation import MockSimulationService
from .store import InMemoryKeyValueStore, MemorySignal

__all__ = [
    "InMemoryKeyValueStore",
    "MemorySignal",
    "MockGeocoder",
    "MockLocationSource",
    "MockPlaceSearcher",
    "MockSimulationService",
]
