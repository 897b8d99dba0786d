"""File-backed cross-process wakeup signal."""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

from .paths import signal_path

logger = logging.getLogger(__name__)


class FileSignal:
    """Zero-payload signal shared through a token file.

    ``post`` replaces the token; every watcher whose last-seen token differs
    reports one wakeup on its next ``poll``. Watchers must re-read the shared
    store after a wakeup, since the signal carries no data.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else signal_path()
        self._seen = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def post(self) -> None:
        token = uuid4().hex
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(token, encoding="utf-8")
        tmp.replace(self._path)
        logger.debug("signal: posted %s", token[:8])

    def poll(self) -> bool:
        token = self._read()
        if token is None or token == self._seen:
            return False
        self._seen = token
        logger.debug("signal: received %s", token[:8])
        return True

    def _read(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8").strip() or None
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("signal: cannot read %s: %s", self._path, exc)
            return None
