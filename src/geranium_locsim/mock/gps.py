"""Mock real-location source for development and testing."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)


class MockLocationSource:
    """Replays a fixed list of readings.

    With no positions it behaves like a device without a fix, which makes
    reconciliation trust the persisted record.
    """

    def __init__(self, positions: list[tuple[float, float]] | None = None) -> None:
        self._callback: Callable[[float, float], None] | None = None
        self._positions = list(positions) if positions is not None else []
        self._position_index = 0
        self.resume_count = 0

    def get_location(self) -> tuple[float, float] | None:
        if not self._positions:
            return None
        return self._positions[self._position_index]

    def resume_updates(self) -> None:
        self.resume_count += 1
        logger.debug("MockLocationSource: resume requested (%d)", self.resume_count)

    def cycle_position(self) -> bool:
        """Advance to the next reading. Returns False if there are none."""
        if not self._positions:
            return False
        self._position_index = (self._position_index + 1) % len(self._positions)
        lat, lon = self._positions[self._position_index]
        if self._callback:
            self._callback(lat, lon)
        return True

    def set_callback(self, callback: Callable[[float, float], None] | None) -> None:
        self._callback = callback

    def jump_to(self, lat: float, lon: float) -> None:
        """Replace the current reading."""
        if self._positions:
            self._positions[self._position_index] = (lat, lon)
        else:
            self._positions.append((lat, lon))
        if self._callback:
            self._callback(lat, lon)

    def clear(self) -> None:
        """Drop all readings (no fix)."""
        self._positions.clear()
        self._position_index = 0
