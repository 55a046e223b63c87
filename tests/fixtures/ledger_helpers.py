"""
Ledger Test Helpers

In-memory DataStore doubles for exercising persistence and rollback.
"""

from copy import deepcopy
from typing import Any


class MemoryDataStore:
    """DataStore that keeps every saved snapshot in a list."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self.saves: list[dict[str, Any]] = []
        self._initial = initial

    def exists(self) -> bool:
        return self._initial is not None or bool(self.saves)

    def load(self) -> dict[str, Any]:
        return deepcopy(self.saves[-1] if self.saves else self._initial)

    def save(self, data: dict[str, Any]) -> None:
        self.saves.append(deepcopy(data))


class FailingDataStore(MemoryDataStore):
    """DataStore whose saves fail once ``fail`` is switched on."""

    def __init__(self, initial: dict[str, Any] | None = None):
        super().__init__(initial)
        self.fail = False

    def save(self, data: dict[str, Any]) -> None:
        if self.fail:
            raise OSError("No space left on device")
        super().save(data)
