"""Protocols for the collaborators the spoofing core talks to."""

from __future__ import annotations

from typing import Any, Protocol

from .models import Coordinate


class SimulationService(Protocol):
    """OS-level location simulation primitive.

    The engine always drives it as stop, clear, append, flush, start when
    starting and stop, clear, flush when stopping.
    """

    def clear(self) -> None: ...

    def append(self, coordinate: Coordinate, altitude: float) -> None: ...

    def flush(self) -> None: ...

    def start_simulating(self) -> None: ...

    def stop_simulating(self) -> None: ...


class KeyValueStore(Protocol):
    """String-keyed store shared between processes."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class LocationSource(Protocol):
    """Real (unspoofed) position reading."""

    def get_location(self) -> tuple[float, float] | None:
        """Return current (latitude, longitude) or None if no reading."""
        ...

    def resume_updates(self) -> None:
        """Ask the source to resume normal updates after a simulation stops."""
        ...


class CrossProcessSignal(Protocol):
    """Zero-payload, fire-and-forget notification between processes."""

    def post(self) -> None: ...

    def poll(self) -> bool:
        """Return True if a signal arrived since the last poll."""
        ...
