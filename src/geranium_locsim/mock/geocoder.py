from __future__ import annotations

import time

from geranium_locsim.core.models import Coordinate
from geranium_locsim.locsim.geocode import Address, SearchResult


class MockGeocoder:
    """Returns a canned address; ``delay`` simulates a slow lookup."""

    def __init__(self, address: Address | None = None, delay: float = 0.0) -> None:
        self._address = address
        self._delay = delay
        self.requests: list[Coordinate] = []

    def reverse(self, coordinate: Coordinate) -> Address | None:
        self.requests.append(coordinate)
        if self._delay:
            time.sleep(self._delay)
        return self._address


class MockPlaceSearcher:
    """Answers queries from a fixed table; unknown queries find nothing."""

    def __init__(
        self, places: dict[str, list[SearchResult]] | None = None, delay: float = 0.0
    ) -> None:
        self._places = places or {}
        self._delay = delay
        self.queries: list[str] = []

    def search(self, query: str) -> list[SearchResult]:
        self.queries.append(query)
        if self._delay:
            time.sleep(self._delay)
        return list(self._places.get(query, []))
