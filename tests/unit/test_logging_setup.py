from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import geranium_locsim.locsim.logging_setup as log_mod


def _reset_module() -> None:
    """Reset module-level state so configure_logging can run again."""
    log_mod._configured = False
    log_mod._stderr_handler = None
    root = logging.getLogger()
    root.handlers = [
        h
        for h in root.handlers
        if not isinstance(
            h,
            (
                logging.StreamHandler,
                logging.handlers.RotatingFileHandler,
            ),
        )
    ]


def test_configure_logging_creates_handlers(tmp_path: Path, monkeypatch) -> None:
    _reset_module()
    log_dir = tmp_path / "state"
    log_file = log_dir / "app.log"
    monkeypatch.setattr(log_mod, "LOG_DIR", log_dir)
    monkeypatch.setattr(log_mod, "LOG_FILE", log_file)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    log_mod.configure_logging()

    root = logging.getLogger()
    handler_types = [type(h).__name__ for h in root.handlers]
    assert "StreamHandler" in handler_types
    assert "RotatingFileHandler" in handler_types
    assert log_file.exists()
    assert log_mod._stderr_handler is not None
    assert log_mod._stderr_handler.level == logging.INFO

    _reset_module()


def test_env_level_overrides_argument(tmp_path: Path, monkeypatch) -> None:
    _reset_module()
    log_dir = tmp_path / "state"
    monkeypatch.setattr(log_mod, "LOG_DIR", log_dir)
    monkeypatch.setattr(log_mod, "LOG_FILE", log_dir / "app.log")
    monkeypatch.setenv("LOG_LEVEL", "error")

    log_mod.configure_logging("DEBUG")
    assert log_mod._stderr_handler is not None
    assert log_mod._stderr_handler.level == logging.ERROR

    _reset_module()


def test_set_stderr_level(tmp_path: Path, monkeypatch) -> None:
    _reset_module()
    log_dir = tmp_path / "state"
    monkeypatch.setattr(log_mod, "LOG_DIR", log_dir)
    monkeypatch.setattr(log_mod, "LOG_FILE", log_dir / "app.log")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    log_mod.configure_logging("WARNING")
    assert log_mod._stderr_handler is not None
    assert log_mod._stderr_handler.level == logging.WARNING

    log_mod.set_stderr_level("debug")
    assert log_mod._stderr_handler.level == logging.DEBUG

    log_mod.set_stderr_level("LOUD")
    assert log_mod._stderr_handler.level == logging.DEBUG

    _reset_module()


def test_export_logs_concatenates(tmp_path: Path, monkeypatch) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    log_file = log_dir / "app.log"

    monkeypatch.setattr(log_mod, "LOG_DIR", log_dir)
    monkeypatch.setattr(log_mod, "LOG_FILE", log_file)
    monkeypatch.setattr(log_mod, "BACKUP_COUNT", 3)

    (log_dir / "app.log.2").write_text("engine: start\n")
    (log_dir / "app.log.1").write_text("persist: saved\n")
    log_file.write_text("engine: stop\n")

    dest = tmp_path / "export.txt"
    log_mod.export_logs_to_path(dest)

    lines = dest.read_text().strip().split("\n")
    assert lines == ["engine: start", "persist: saved", "engine: stop"]


def test_resolve_level_precedence(monkeypatch) -> None:
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert log_mod.resolve_level(None) == "INFO"
    assert log_mod.resolve_level("warning") == "WARNING"
    assert log_mod.resolve_level("chatty") == "INFO"

    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    assert log_mod.resolve_level("ERROR") == "DEBUG"


def test_saved_level_respects_env_pin(tmp_path: Path, monkeypatch) -> None:
    _reset_module()
    log_dir = tmp_path / "state"
    monkeypatch.setattr(log_mod, "LOG_DIR", log_dir)
    monkeypatch.setattr(log_mod, "LOG_FILE", log_dir / "app.log")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    log_mod.configure_logging()
    log_mod.apply_settings_level("ERROR")
    assert log_mod._stderr_handler is not None
    assert log_mod._stderr_handler.level == logging.ERROR

    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    log_mod.apply_settings_level("WARNING")
    assert log_mod._stderr_handler.level == logging.ERROR

    _reset_module()
