"""Share hand-off between the share-extension side and the main process.

The extension writes the shared map URL into the shared store and then posts
the signal. The main process, on wakeup (or at startup), takes the pending URL
and turns it into a ``process-map-url`` deep link.
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlencode

from geranium_locsim.core.enums import DeepLinkHost
from geranium_locsim.core.models import LocationPoint
from geranium_locsim.core.services import CrossProcessSignal, KeyValueStore

logger = logging.getLogger(__name__)

SCHEME = "geranium"
SHARED_URL_KEY = "sharedURL"


class ShareInbox:
    def __init__(self, store: KeyValueStore, signal: CrossProcessSignal) -> None:
        self._store = store
        self._signal = signal

    def submit(self, map_url: str) -> None:
        """Write-then-signal: store the URL before waking the main process."""
        self._store.set(SHARED_URL_KEY, map_url)
        self._signal.post()
        logger.info("share: submitted %s", map_url)

    def take(self) -> str | None:
        """Return the pending URL as a deep link and remove it, if any."""
        map_url = self._store.get(SHARED_URL_KEY)
        if not isinstance(map_url, str) or not map_url:
            return None
        self._store.remove(SHARED_URL_KEY)
        return build_process_link(map_url)

    def poll(self) -> str | None:
        """Take the pending URL only if a signal arrived since the last poll."""
        if not self._signal.poll():
            return None
        return self.take()


def build_process_link(map_url: str) -> str:
    query = urlencode({"url": map_url})
    return f"{SCHEME}://{DeepLinkHost.PROCESS_MAP_URL}?{query}"


def build_spoof_link(point: LocationPoint) -> str:
    query = urlencode({"lat": repr(point.latitude), "lon": repr(point.longitude)})
    return f"{SCHEME}://{DeepLinkHost.SPOOF}?{query}"


def share_qr(point: LocationPoint, dest: str | Path, scale: int = 8) -> Path:
    """Render the spoof deep link for ``point`` as a QR code image."""
    import segno

    dest = Path(dest)
    qr = segno.make(build_spoof_link(point), error="L")
    qr.save(str(dest), scale=scale, border=2)
    return dest


def print_share_qr(point: LocationPoint) -> None:
    """Print the spoof deep link QR code to the terminal."""
    import segno

    segno.make(build_spoof_link(point), error="L").terminal(compact=True)
