"""
Database Module
===============

Async key-value storage for local persistent state.

Backends:
- In-memory (development, testing)
- Redis (redis.asyncio)

Usage:
    from shared.database import get_store

    store = get_store()
    await store.set("fraud_detection:user-1:device_id", "device_...")
    value = await store.get("fraud_detection:user-1:device_id")
"""

from shared.database.memory import InMemoryKeyValueStore
from shared.database.redis import RedisClient, RedisKeyValueStore
from shared.database.store import (
    KeyValueStore,
    StoreError,
    get_store,
    set_store,
)


__all__ = [
    "KeyValueStore",
    "StoreError",
    "get_store",
    "set_store",
    # Memory
    "InMemoryKeyValueStore",
    # Redis
    "RedisClient",
    "RedisKeyValueStore",
]
