from __future__ import annotations

import os
from dataclasses import dataclass

from .reconcile import DEFAULT_THRESHOLD_M


@dataclass(slots=True)
class RuntimeConfig:
    mock: bool = False
    gps_port: str = "/dev/ttyS0"
    gps_baud: int = 9600
    reconcile_threshold_m: float = DEFAULT_THRESHOLD_M
    resume_delay_s: float = 0.5
    search_debounce_s: float = 0.5
    device_udid: str | None = None

    def to_log_string(self) -> str:
        return (
            f"mock={self.mock} gps_port={self.gps_port} gps_baud={self.gps_baud} "
            f"reconcile_threshold_m={self.reconcile_threshold_m} "
            f"resume_delay_s={self.resume_delay_s} search_debounce_s={self.search_debounce_s} "
            f"device_udid={self.device_udid or '-'}"
        )


def load_runtime_config() -> RuntimeConfig:
    return RuntimeConfig(
        mock=_env_bool("GERANIUM_MOCK", False),
        gps_port=os.environ.get("GERANIUM_GPS_PORT", "/dev/ttyS0"),
        gps_baud=_env_int("GERANIUM_GPS_BAUD", 9600),
        reconcile_threshold_m=_env_float("GERANIUM_RECONCILE_THRESHOLD_M", DEFAULT_THRESHOLD_M),
        resume_delay_s=_env_float("GERANIUM_RESUME_DELAY", 0.5),
        search_debounce_s=_env_float("GERANIUM_SEARCH_DEBOUNCE", 0.5),
        device_udid=os.environ.get("GERANIUM_DEVICE_UDID") or None,
    )


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}
