"""
Unit tests for the key-value store backends.
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from shared.config import StoreBackend
from shared.database import (
    InMemoryKeyValueStore,
    RedisKeyValueStore,
    StoreError,
    get_store,
    set_store,
)


class TestInMemoryStore:
    """Tests for the in-memory backend."""

    @pytest.mark.asyncio
    async def test_set_get_remove(self) -> None:
        """Test basic value lifecycle."""
        store = InMemoryKeyValueStore()

        await store.set("k", "v")
        assert await store.get("k") == "v"

        await store.remove("k")
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_remove_missing_key(self) -> None:
        """Test removing a missing key is not an error."""
        store = InMemoryKeyValueStore()

        await store.remove("missing")

    @pytest.mark.asyncio
    async def test_rejects_non_string_values(self) -> None:
        """Test values must already be serialized."""
        store = InMemoryKeyValueStore()

        with pytest.raises(TypeError):
            await store.set("k", {"not": "serialized"})  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_initial_data_and_health(self) -> None:
        """Test initial data is loaded and reported by health check."""
        store = InMemoryKeyValueStore({"a": "1", "b": "2"})

        health = await store.health_check()

        assert health["status"] == "healthy"
        assert health["backend"] == "memory"
        assert health["keys"] == 2


class TestRedisStore:
    """Tests for the Redis backend with a mocked client."""

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self) -> None:
        """Test byte values are decoded to str."""
        client = AsyncMock()
        client.get.return_value = b"value"
        store = RedisKeyValueStore(client=client)

        assert await store.get("k") == "value"
        client.get.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_set_and_remove_delegate(self) -> None:
        """Test writes map onto SET and DEL."""
        client = AsyncMock()
        store = RedisKeyValueStore(client=client)

        await store.set("k", "v")
        await store.remove("k")

        client.set.assert_awaited_once_with("k", "v")
        client.delete.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["get", "set", "remove"])
    async def test_redis_errors_become_store_errors(self, operation: str) -> None:
        """Test backend failures surface as StoreError."""
        client = AsyncMock()
        client.get.side_effect = RedisConnectionError("down")
        client.set.side_effect = RedisConnectionError("down")
        client.delete.side_effect = RedisConnectionError("down")
        store = RedisKeyValueStore(client=client)

        with pytest.raises(StoreError):
            if operation == "set":
                await store.set("k", "v")
            else:
                await getattr(store, operation)("k")

    def test_backend(self) -> None:
        """Test backend reports redis."""
        assert RedisKeyValueStore(client=AsyncMock()).backend == StoreBackend.REDIS


class TestStoreSingleton:
    """Tests for the configured store accessor."""

    def test_default_backend_is_memory(self) -> None:
        """Test the test environment resolves to the in-memory store."""
        set_store(None)
        try:
            store = get_store()

            assert isinstance(store, InMemoryKeyValueStore)
            assert get_store() is store
        finally:
            set_store(None)

    def test_set_store_overrides(self) -> None:
        """Test a custom store can be injected."""
        custom = InMemoryKeyValueStore()
        set_store(custom)
        try:
            assert get_store() is custom
        finally:
            set_store(None)
