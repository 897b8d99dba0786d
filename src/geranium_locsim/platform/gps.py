"""Real (unspoofed) position from a serial NMEA GPS receiver."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import pynmea2

if TYPE_CHECKING:
    from geranium_locsim.core.services import LocationSource
    from geranium_locsim.locsim.config import RuntimeConfig

logger = logging.getLogger(__name__)

_POSITION_SENTENCES = ("GGA", "RMC", "GLL")


class SerialNmeaLocationSource:
    """Reads NMEA sentences from a serial receiver.

    Call ``poll()`` periodically (or ``read_fix()`` for a one-shot reading).
    The receiver is independent of the simulated position, which is what the
    reconciliation check needs.
    """

    def __init__(self, port: str = "/dev/ttyS0", baud_rate: int = 9600) -> None:
        self._port = port
        self._baud_rate = baud_rate
        self._serial: object | None = None
        self._running = False
        self._latitude: float | None = None
        self._longitude: float | None = None
        self._callback: Callable[[float, float], None] | None = None
        self._last_error: str | None = None

    def start(self) -> None:
        if self._running:
            return
        import serial

        try:
            self._serial = serial.Serial(self._port, self._baud_rate, timeout=1.0)
        except PermissionError:
            self._report_error(f"Permission denied on {self._port} - add user to dialout group")
            return
        except (OSError, serial.SerialException) as e:
            self._report_error(f"Serial port error: {e}")
            return
        self._running = True
        logger.debug("GPS: opened %s at %d baud", self._port, self._baud_rate)

    def stop(self) -> None:
        self._running = False
        if self._serial is not None:
            try:
                self._serial.close()  # type: ignore[attr-defined]
            except OSError as e:
                logger.debug("GPS: serial close error: %s", e)
            self._serial = None

    def get_location(self) -> tuple[float, float] | None:
        if self._latitude is not None and self._longitude is not None:
            return (self._latitude, self._longitude)
        return None

    def resume_updates(self) -> None:
        """Reopen the receiver after a simulation stops."""
        self.start()

    def set_callback(self, callback: Callable[[float, float], None] | None) -> None:
        self._callback = callback

    def get_last_error(self) -> str | None:
        return self._last_error

    def poll(self) -> bool:
        """Read and parse one line. Returns True to continue polling."""
        if not self._running or self._serial is None:
            return self._running
        try:
            line = self._serial.readline()  # type: ignore[attr-defined]
        except OSError as e:
            self._report_error(f"GPS read error: {e}")
            return True
        if line:
            self.feed(line.decode("ascii", errors="ignore").strip())
        return True

    def read_fix(self, timeout: float = 5.0) -> tuple[float, float] | None:
        """Poll until a position arrives or ``timeout`` seconds pass."""
        self.start()
        deadline = time.monotonic() + timeout
        while self._running and time.monotonic() < deadline:
            self.poll()
            location = self.get_location()
            if location is not None:
                return location
        return self.get_location()

    def feed(self, sentence: str) -> None:
        """Parse one NMEA sentence and update the position if it carries a fix."""
        if not sentence.startswith("$"):
            return
        try:
            msg = pynmea2.parse(sentence)
        except pynmea2.ParseError as e:
            logger.debug("GPS: parse error: %s", e)
            return
        if msg.sentence_type not in _POSITION_SENTENCES:
            return
        if msg.sentence_type == "GGA" and int(msg.gps_qual or 0) == 0:
            return
        if msg.sentence_type == "RMC" and msg.status != "A":
            return
        try:
            lat = float(msg.latitude)
            lon = float(msg.longitude)
        except (TypeError, ValueError):
            return
        self._update_location(lat, lon)

    def _update_location(self, lat: float, lon: float) -> None:
        if lat == 0.0 and lon == 0.0:
            return
        if self._latitude is None:
            logger.info("GPS: fix acquired: %.6f, %.6f", lat, lon)
        self._latitude = lat
        self._longitude = lon
        if self._callback:
            self._callback(lat, lon)

    def _report_error(self, message: str) -> None:
        self._last_error = message
        logger.warning("GPS: %s", message)


def create_location_source(config: RuntimeConfig) -> LocationSource:
    """Create the appropriate real-location source for the current environment."""
    if config.mock:
        from geranium_locsim.mock import MockLocationSource

        return MockLocationSource()

    if Path(config.gps_port).exists():
        return SerialNmeaLocationSource(config.gps_port, config.gps_baud)

    # No receiver: reconciliation falls back to trusting the persisted record
    from geranium_locsim.mock import MockLocationSource

    logger.info("GPS: %s not present, no live readings available", config.gps_port)
    return MockLocationSource()
