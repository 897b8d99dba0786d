"""Decide whether a persisted override is still in effect.

The platform (or another tool) can cancel a simulation without telling us, so
at startup and on every foreground resume the persisted record is compared with
the live position. If the device reports a position close to the persisted
point the simulation is still honoured; if it is far away the override is gone.
"""

from __future__ import annotations

import logging

from geranium_locsim.core.geo import distance_m
from geranium_locsim.core.models import Coordinate, LocationPoint, PersistedSpoofingRecord

from .persistence import SpoofingRecordStore

logger = logging.getLogger(__name__)

# Loose enough to absorb GCJ/WGS skew between providers and sensor jitter.
DEFAULT_THRESHOLD_M = 1000.0


class ReconciliationPolicy:
    def __init__(
        self, records: SpoofingRecordStore, threshold_m: float = DEFAULT_THRESHOLD_M
    ) -> None:
        self._records = records
        self.threshold_m = threshold_m

    def evaluate(
        self,
        persisted: PersistedSpoofingRecord | None,
        live_reading: Coordinate | None,
    ) -> LocationPoint | None:
        """Return the point to restore, or None if no override is in effect.

        Clears the persisted record when the live reading disproves it.
        """
        if persisted is None or not persisted.is_spoofing:
            logger.debug("reconcile: no persisted override")
            return None

        point = persisted.to_point()
        if point is None:
            return None

        if live_reading is None:
            # Nothing to compare against. If the override is active the sensor
            # would report the spoofed point anyway, so trust the record.
            logger.info("reconcile: no live reading, keeping persisted point")
            return point

        distance = distance_m(live_reading, point.coordinate)
        if distance > self.threshold_m:
            logger.warning(
                "reconcile: live position is %.0f m from persisted point, override was cancelled",
                distance,
            )
            self._records.clear()
            return None

        logger.info("reconcile: live position within %.0f m, override still active", distance)
        return point
