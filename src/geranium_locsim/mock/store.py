"""In-memory key-value store and signal."""

from __future__ import annotations

from typing import Any


class InMemoryKeyValueStore:
    def __init__(self, *, fail_writes: bool = False) -> None:
        self.data: dict[str, Any] = {}
        self.writes: list[tuple[str, str]] = []
        self.fail_writes = fail_writes

    def get(self, key: str) -> Any | None:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        if self.fail_writes:
            raise OSError("store unavailable")
        self.writes.append(("set", key))
        self.data[key] = value

    def remove(self, key: str) -> None:
        if self.fail_writes:
            raise OSError("store unavailable")
        self.writes.append(("remove", key))
        self.data.pop(key, None)


class MemorySignal:
    def __init__(self) -> None:
        self.posted = 0
        self._seen = 0

    def post(self) -> None:
        self.posted += 1

    def poll(self) -> bool:
        if self.posted == self._seen:
            return False
        self._seen = self.posted
        return True
