"""Durable shadow of the spoofing session in the shared key-value store."""

from __future__ import annotations

import logging
import sqlite3

from geranium_locsim.core.models import Coordinate, LocationPoint, PersistedSpoofingRecord
from geranium_locsim.core.services import KeyValueStore

logger = logging.getLogger(__name__)

IS_SPOOFING_KEY = "isSpoofing"
COORDINATE_KEY = "spoofingCoordinate"
LABEL_KEY = "spoofingLabel"
NOTE_KEY = "spoofingNote"

RECORD_KEYS = (IS_SPOOFING_KEY, COORDINATE_KEY, LABEL_KEY, NOTE_KEY)

# Store failures never abort a state transition; a restart just won't recover.
_STORE_ERRORS = (sqlite3.Error, OSError)


class SpoofingRecordStore:
    """Reads and writes PersistedSpoofingRecord as four separate keys.

    Another process may read between two key writes, so ``save`` writes the
    flag last and ``clear`` removes it first. A reader therefore never sees the
    flag set without a coordinate.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def load(self) -> PersistedSpoofingRecord | None:
        try:
            flag = self._store.get(IS_SPOOFING_KEY)
            if not flag:
                return None
            raw_coord = self._store.get(COORDINATE_KEY)
            label = self._store.get(LABEL_KEY)
            note = self._store.get(NOTE_KEY)
        except _STORE_ERRORS as exc:
            logger.warning("persist: load failed: %s", exc)
            return None

        coordinate = _decode_coordinate(raw_coord)
        if coordinate is None:
            logger.warning("persist: isSpoofing set but coordinate is %r, ignoring", raw_coord)
            return None
        logger.debug("persist: loaded %.6f, %.6f label=%s", *coordinate.as_tuple(), label)
        return PersistedSpoofingRecord(
            is_spoofing=True,
            coordinate=coordinate,
            label=label if isinstance(label, str) else None,
            note=note if isinstance(note, str) else None,
        )

    def save(self, point: LocationPoint) -> bool:
        try:
            self._store.set(COORDINATE_KEY, [point.latitude, point.longitude])
            self._write_optional(LABEL_KEY, point.label)
            self._write_optional(NOTE_KEY, point.note)
            self._store.set(IS_SPOOFING_KEY, True)
        except _STORE_ERRORS as exc:
            logger.warning("persist: save failed: %s", exc)
            return False
        logger.info("persist: saved %.6f, %.6f", point.latitude, point.longitude)
        return True

    def update_details(self, label: str | None, note: str | None) -> bool:
        try:
            self._write_optional(LABEL_KEY, label)
            self._write_optional(NOTE_KEY, note)
        except _STORE_ERRORS as exc:
            logger.warning("persist: detail update failed: %s", exc)
            return False
        return True

    def clear(self) -> bool:
        try:
            for key in RECORD_KEYS:
                self._store.remove(key)
        except _STORE_ERRORS as exc:
            logger.warning("persist: clear failed: %s", exc)
            return False
        logger.info("persist: cleared")
        return True

    def _write_optional(self, key: str, value: str | None) -> None:
        if value is None:
            self._store.remove(key)
        else:
            self._store.set(key, value)


def _decode_coordinate(raw: object) -> Coordinate | None:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        return None
    try:
        coordinate = Coordinate(float(raw[0]), float(raw[1]))
    except (TypeError, ValueError):
        return None
    return coordinate if coordinate.is_valid else None
