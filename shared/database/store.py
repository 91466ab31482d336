"""
Key-Value Store Abstraction
===========================

Async string key-value interface used for local persistent state
(submission history, block records, device identifiers).

Backends:
- memory: process-local dictionary (development, testing)
- redis: shared Redis instance (production)

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from typing import Any

from shared.config import StoreBackend, settings
from shared.logging import get_logger

logger = get_logger(__name__)


class StoreError(Exception):
    """Backend failure while reading or writing the key-value store."""


class KeyValueStore(ABC):
    """
    Abstract async key-value store.

    Values are opaque strings. Implementations must raise StoreError
    for backend failures so callers can tell I/O trouble from bugs.
    """

    @property
    @abstractmethod
    def backend(self) -> StoreBackend:
        """Backend type."""
        ...

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value for key, or None if absent."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete key. Removing a missing key is not an error."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        return None

    async def health_check(self) -> dict[str, Any]:
        """Check store health."""
        return {"status": "healthy", "backend": self.backend.value}


# Global store instance
_store: KeyValueStore | None = None


def get_store() -> KeyValueStore:
    """
    Get the configured key-value store instance.

    Returns:
        KeyValueStore instance based on settings
    """
    global _store

    if _store is None:
        backend = settings.store.backend

        if backend == StoreBackend.MEMORY:
            from shared.database.memory import InMemoryKeyValueStore

            _store = InMemoryKeyValueStore()
        elif backend == StoreBackend.REDIS:
            from shared.database.redis import RedisKeyValueStore

            _store = RedisKeyValueStore()
        else:
            raise ValueError(f"Unknown store backend: {backend}")

        logger.info("store_initialized", backend=backend.value)

    return _store


def set_store(store: KeyValueStore | None) -> None:
    """
    Set a custom key-value store (or None to reset to settings).

    Args:
        store: KeyValueStore instance
    """
    global _store
    _store = store
