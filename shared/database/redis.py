"""
Redis Client
============

Async Redis client and the Redis-backed key-value store.

Version: 0.1.0
"""

import time
from typing import Any

import redis.asyncio as aioredis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from shared.config import StoreBackend, settings
from shared.database.store import KeyValueStore, StoreError
from shared.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """
    Async Redis client wrapper.

    Provides connection management shared by every Redis consumer.
    """

    _client: Redis | None = None  # type: ignore[type-arg]

    @classmethod
    def get_client(cls) -> Redis:  # type: ignore[type-arg]
        """Get or create the async client."""
        if cls._client is None:
            cls._client = aioredis.from_url(
                settings.redis.url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=settings.redis.max_connections,
            )
            logger.info(
                "redis_client_created",
                host=settings.redis.host,
            )
        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the client and release all connections."""
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None
            logger.info("redis_client_closed")

    @classmethod
    async def health_check(cls) -> dict[str, Any]:
        """
        Check Redis health.

        Returns:
            dict with status and server info
        """
        try:
            start = time.perf_counter()
            client = cls.get_client()
            pong = await client.ping()
            latency_ms = (time.perf_counter() - start) * 1000

            info = await client.info("server")

            return {
                "status": "healthy" if pong else "unhealthy",
                "latency_ms": round(latency_ms, 2),
                "redis_version": info.get("redis_version", "unknown"),
            }
        except RedisError as e:
            logger.error("redis_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }


class RedisKeyValueStore(KeyValueStore):
    """
    Key-value store backed by Redis strings.

    Redis serializes commands per key, so no extra locking is done here.
    """

    def __init__(self, client: Redis | None = None) -> None:  # type: ignore[type-arg]
        self._client = client

    @property
    def backend(self) -> StoreBackend:
        return StoreBackend.REDIS

    @property
    def client(self) -> Redis:  # type: ignore[type-arg]
        if self._client is None:
            self._client = RedisClient.get_client()
        return self._client

    async def get(self, key: str) -> str | None:
        try:
            value = await self.client.get(key)
        except RedisError as e:
            raise StoreError(f"Redis GET {key} failed: {e}") from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self.client.set(key, value)
        except RedisError as e:
            raise StoreError(f"Redis SET {key} failed: {e}") from e

    async def remove(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            raise StoreError(f"Redis DEL {key} failed: {e}") from e

    async def close(self) -> None:
        await RedisClient.close()
        self._client = None

    async def health_check(self) -> dict[str, Any]:
        result = await RedisClient.health_check()
        result["backend"] = self.backend.value
        return result
