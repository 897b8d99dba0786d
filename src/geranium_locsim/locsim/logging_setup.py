"""Process-wide logging for geranium-locsim.

Every module logs through ``logging.getLogger(__name__)``. This module attaches
the two root handlers once per process: a stderr handler whose level follows
``LOG_LEVEL``, then the saved setting, then INFO, and a rotating DEBUG file in
the state directory that ``export-logs`` bundles for bug reports.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

from .paths import state_dir

LOG_DIR = state_dir()
LOG_FILE = LOG_DIR / "app.log"
LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
MAX_BYTES = 1_000_000
BACKUP_COUNT = 3

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
DEFAULT_LEVEL = "INFO"

_stderr_handler: logging.StreamHandler | None = None
_configured = False


def _env_level() -> str | None:
    level = os.environ.get("LOG_LEVEL", "").upper()
    return level if level in VALID_LEVELS else None


def resolve_level(requested: str | None) -> str:
    """``LOG_LEVEL`` wins, then ``requested``, then INFO."""
    env = _env_level()
    if env is not None:
        return env
    if requested and requested.upper() in VALID_LEVELS:
        return requested.upper()
    return DEFAULT_LEVEL


def configure_logging(console_level: str | None = None) -> None:
    """Attach the stderr and rotating-file handlers to the root logger.

    Later calls are no-ops; use ``set_stderr_level`` to change verbosity.
    """
    global _stderr_handler, _configured  # noqa: PLW0603

    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    _stderr_handler = logging.StreamHandler(sys.stderr)
    _stderr_handler.setLevel(getattr(logging, resolve_level(console_level)))
    _stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(_stderr_handler)

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        LOG_FILE, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    root.addHandler(file_handler)

    _configured = True


def set_stderr_level(level_name: str) -> None:
    if _stderr_handler is None:
        return
    upper = level_name.upper()
    if upper in VALID_LEVELS:
        _stderr_handler.setLevel(getattr(logging, upper))


def apply_settings_level(level_name: str) -> None:
    """Apply the user's saved level unless ``LOG_LEVEL`` pins it."""
    if _env_level() is None:
        set_stderr_level(level_name)


def get_log_files_chronological() -> list[Path]:
    """Oldest first: app.log.3, app.log.2, app.log.1, app.log."""
    files = [LOG_FILE.with_suffix(f".log.{i}") for i in range(BACKUP_COUNT, 0, -1)]
    files.append(LOG_FILE)
    return [path for path in files if path.exists()]


def _copy_logs(out: TextIO) -> None:
    for log_file in get_log_files_chronological():
        with log_file.open(encoding="utf-8", errors="replace") as f:
            shutil.copyfileobj(f, out)


def export_logs_to_path(dest: str | Path) -> Path:
    dest = Path(dest)
    with dest.open("w", encoding="utf-8") as out:
        _copy_logs(out)
    return dest


def export_logs_to_stdout() -> None:
    _copy_logs(sys.stdout)
