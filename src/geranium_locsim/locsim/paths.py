from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "geranium-locsim"


def xdg_state_home() -> Path:
    """Return XDG_STATE_HOME or default ~/.local/state"""
    return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))


def state_dir() -> Path:
    """Return the app state directory (XDG_STATE_HOME/geranium-locsim)"""
    return xdg_state_home() / APP_NAME


def db_path() -> Path:
    """Return the path to the shared SQLite database.

    GERANIUM_DB_PATH overrides the location so a companion process (the share
    hand-off) can point at the same file.
    """
    override = os.environ.get("GERANIUM_DB_PATH")
    if override:
        return Path(override)
    return state_dir() / "locsim.db"


def signal_path() -> Path:
    """Return the token file used for cross-process wakeups."""
    return state_dir() / "shared-url.signal"


def timezone_signal_path() -> Path:
    """Return the token file posted whenever the simulated position changes."""
    return state_dir() / "timezone-update.signal"
