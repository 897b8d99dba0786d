from __future__ import annotations

from dataclasses import dataclass, field, replace

MAX_RECENT_SEARCHES = 6


@dataclass(slots=True)
class LocSimSettings:
    # Bookmarks
    auto_start_from_bookmarks: bool = True

    # Map
    default_zoom_level: float = 0.0

    # Diagnostics
    log_level: str = "INFO"

    # Search
    recent_searches: list[str] = field(default_factory=list)

    def clone(self) -> "LocSimSettings":
        return replace(self, recent_searches=list(self.recent_searches))

    @property
    def map_span_degrees(self) -> float:
        return max(0.01, min(self.default_zoom_level / 1000, 5.0))


def add_recent_search(settings: LocSimSettings, query: str) -> LocSimSettings:
    """Return a copy with ``query`` moved to the front of the recent list."""
    updated = settings.clone()
    query = query.strip()
    if not query:
        return updated
    recent = [q for q in updated.recent_searches if q != query]
    recent.insert(0, query)
    updated.recent_searches = recent[:MAX_RECENT_SEARCHES]
    return updated
