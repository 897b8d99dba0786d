"""Location simulation on an attached iOS device via pymobiledevice3."""

from __future__ import annotations

import logging
from typing import Any

from geranium_locsim.core.models import Coordinate

logger = logging.getLogger(__name__)


def import_simulate_location() -> tuple[Any, Any]:
    try:
        from pymobiledevice3.lockdown import create_using_usbmux
        from pymobiledevice3.services.simulate_location import DtSimulateLocation
    except ImportError as exc:
        raise RuntimeError(
            "pymobiledevice3 is not available. Install with `pip install geranium-locsim[device]`."
        ) from exc
    return create_using_usbmux, DtSimulateLocation


class DeviceSimulationService:
    """SimulationService backed by the developer simulate-location service.

    The device service only accepts a single fixed point, so ``append``
    buffers it and ``start_simulating`` sends the last appended point.
    """

    def __init__(self, udid: str | None = None, service: Any | None = None) -> None:
        self._udid = udid
        self._service = service
        self._pending: list[tuple[Coordinate, float]] = []
        self._flushed: tuple[Coordinate, float] | None = None

    def _connect(self) -> Any:
        if self._service is None:
            create_using_usbmux, simulate_location_type = import_simulate_location()
            lockdown = create_using_usbmux(serial=self._udid)
            self._service = simulate_location_type(lockdown)
            logger.info("device: connected to %s", self._udid or "first usbmux device")
        return self._service

    def clear(self) -> None:
        self._pending.clear()
        self._flushed = None

    def append(self, coordinate: Coordinate, altitude: float) -> None:
        self._pending.append((coordinate, altitude))

    def flush(self) -> None:
        if self._pending:
            self._flushed = self._pending[-1]
        self._pending.clear()

    def start_simulating(self) -> None:
        if self._flushed is None:
            return
        coordinate, _altitude = self._flushed
        self._connect().set(coordinate.latitude, coordinate.longitude)
        logger.info("device: simulating %.6f, %.6f", coordinate.latitude, coordinate.longitude)

    def stop_simulating(self) -> None:
        # Always clear the device side: a simulation may survive from an earlier run
        self._connect().clear()
        logger.info("device: simulation cleared")
