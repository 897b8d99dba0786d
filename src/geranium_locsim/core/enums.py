"""Enums for error kinds, deep-link hosts, and session events."""

from enum import StrEnum


class SpoofingError(StrEnum):
    """Error kinds recorded on SpoofingSession.last_error.

    These are informational: the engine never raises them.
    """

    UNABLE_TO_START = "unableToStart"
    INVALID_COORDINATE = "invalidCoordinate"

    @property
    def message(self) -> str:
        if self is SpoofingError.UNABLE_TO_START:
            return "Unable to start location simulation, please try again later."
        return "Select a location on the map first."


class DeepLinkHost(StrEnum):
    """Hosts understood under the geranium:// scheme."""

    SPOOF = "spoof"
    SPOOF_AND_BOOKMARK = "spoof-and-bookmark"
    PROCESS_MAP_URL = "process-map-url"
    BOOKMARKS = "bookmarks"


class SessionEvent(StrEnum):
    """Transitions reported to session observers."""

    STARTED = "started"
    STOPPED = "stopped"
    RESTORED = "restored"
    DETAILS_UPDATED = "details_updated"
    ERROR_RECORDED = "error_recorded"
