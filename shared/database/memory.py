"""
In-Memory Key-Value Store
=========================

Dictionary-backed store for development and testing.

Data is stored in memory and lost on restart.

Version: 0.1.0
"""

from typing import Any

from shared.config import StoreBackend
from shared.database.store import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    @property
    def backend(self) -> StoreBackend:
        return StoreBackend.MEMORY

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Store values must be str, got {type(value).__name__}")
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "backend": self.backend.value,
            "keys": len(self._data),
        }

    def clear_all(self) -> None:
        """Clear all data (for testing)."""
        self._data.clear()
