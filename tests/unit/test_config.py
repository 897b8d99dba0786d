from __future__ import annotations

from geranium_locsim.locsim.config import RuntimeConfig, load_runtime_config
from geranium_locsim.locsim.paths import db_path, signal_path, state_dir

ENV_VARS = (
    "GERANIUM_MOCK",
    "GERANIUM_GPS_PORT",
    "GERANIUM_GPS_BAUD",
    "GERANIUM_RECONCILE_THRESHOLD_M",
    "GERANIUM_RESUME_DELAY",
    "GERANIUM_SEARCH_DEBOUNCE",
    "GERANIUM_DEVICE_UDID",
)


def test_defaults(monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    assert load_runtime_config() == RuntimeConfig()


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("GERANIUM_MOCK", "yes")
    monkeypatch.setenv("GERANIUM_GPS_PORT", "/dev/ttyUSB0")
    monkeypatch.setenv("GERANIUM_GPS_BAUD", "4800")
    monkeypatch.setenv("GERANIUM_RECONCILE_THRESHOLD_M", "250")
    monkeypatch.setenv("GERANIUM_RESUME_DELAY", "1.5")
    monkeypatch.setenv("GERANIUM_SEARCH_DEBOUNCE", "0")
    monkeypatch.setenv("GERANIUM_DEVICE_UDID", "00008110-000A")

    config = load_runtime_config()
    assert config.mock is True
    assert config.gps_port == "/dev/ttyUSB0"
    assert config.gps_baud == 4800
    assert config.reconcile_threshold_m == 250.0
    assert config.resume_delay_s == 1.5
    assert config.search_debounce_s == 0.0
    assert config.device_udid == "00008110-000A"
    assert "mock=True" in config.to_log_string()


def test_invalid_numbers_fall_back(monkeypatch) -> None:
    monkeypatch.setenv("GERANIUM_GPS_BAUD", "fast")
    monkeypatch.setenv("GERANIUM_RECONCILE_THRESHOLD_M", "far")
    config = load_runtime_config()
    assert config.gps_baud == 9600
    assert config.reconcile_threshold_m == 1000.0


def test_paths_follow_xdg_state_home(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
    monkeypatch.delenv("GERANIUM_DB_PATH", raising=False)
    assert state_dir() == tmp_path / "geranium-locsim"
    assert db_path() == tmp_path / "geranium-locsim" / "locsim.db"
    assert signal_path().parent == state_dir()
