"""Recording stand-in for the OS simulation service."""

from __future__ import annotations

import logging

from geranium_locsim.core.models import Coordinate

logger = logging.getLogger(__name__)


class MockSimulationService:
    """Records every call so tests can check the call order.

    Set ``fail_on_start`` to make ``start_simulating`` raise.
    """

    def __init__(self, *, fail_on_start: bool = False) -> None:
        self.calls: list[str] = []
        self.pending: list[tuple[Coordinate, float]] = []
        self.simulated: tuple[Coordinate, float] | None = None
        self.active = False
        self.fail_on_start = fail_on_start
        self._flushed: list[tuple[Coordinate, float]] = []

    def clear(self) -> None:
        self.calls.append("clear")
        self.pending.clear()
        self._flushed.clear()

    def append(self, coordinate: Coordinate, altitude: float) -> None:
        self.calls.append("append")
        self.pending.append((coordinate, altitude))

    def flush(self) -> None:
        self.calls.append("flush")
        self._flushed = list(self.pending)
        self.pending.clear()

    def start_simulating(self) -> None:
        self.calls.append("start")
        if self.fail_on_start:
            raise RuntimeError("simulation refused")
        self.simulated = self._flushed[-1] if self._flushed else None
        self.active = self.simulated is not None
        logger.debug("MockSimulationService: simulating %s", self.simulated)

    def stop_simulating(self) -> None:
        self.calls.append("stop")
        self.active = False
        self.simulated = None
