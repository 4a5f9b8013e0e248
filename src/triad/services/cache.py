"""
Redis cache service.

Pass-through wrapper over ``redis.asyncio``: values are stored as JSON,
with an optional TTL in seconds.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import redis.asyncio as aioredis

from triad.config.settings import RedisSettings
from triad.exceptions import ServiceNotConnectedError, TriadConnectionError
from triad.utils.logging import get_logger

logger = get_logger("triad.services.cache")


def _default_client_factory(url: str) -> Any:
    return aioredis.from_url(url, decode_responses=True)


class CacheService:
    """
    JSON key-value cache backed by Redis.

    Args:
        settings: Redis connection settings
        client_factory: Builds a client from a URL (default: redis.asyncio.from_url)
    """

    def __init__(
        self,
        settings: RedisSettings | None = None,
        client_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self.settings = settings or RedisSettings()
        self._client_factory = client_factory or _default_client_factory
        self._client: Any = None
        self._connected = False

    async def connect(self) -> None:
        """Connect to Redis and verify the connection with PING."""
        try:
            self._client = self._client_factory(self.settings.url)
            await self._client.ping()
        except Exception as e:
            logger.error(f"Redis connection error: {e}")
            await self._discard_client()
            raise TriadConnectionError(f"Redis connection error: {e}", details={"service": "Redis"}) from e
        self._connected = True
        logger.info(f"Connected to Redis at {self.settings.url}")

    async def _discard_client(self) -> None:
        client, self._client = self._client, None
        self._connected = False
        if client is None:
            return
        try:
            await client.aclose()
        except Exception as close_error:
            logger.debug(f"Ignoring error while closing Redis client: {close_error}")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._connected = False
            logger.info("Disconnected from Redis")

    def _require_client(self) -> Any:
        if self._client is None:
            raise ServiceNotConnectedError("Redis")
        return self._client

    async def get(self, key: str) -> Any | None:
        """Return the decoded value for ``key``, or None on a miss."""
        value = await self._require_client().get(key)
        return json.loads(value) if value else None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store ``value`` as JSON, expiring after ``ttl_seconds`` when given."""
        client = self._require_client()
        string_value = json.dumps(value)
        if ttl_seconds:
            await client.setex(key, ttl_seconds, string_value)
        else:
            await client.set(key, string_value)

    async def delete(self, key: str) -> None:
        await self._require_client().delete(key)

    async def exists(self, key: str) -> bool:
        return (await self._require_client().exists(key)) == 1

    def is_connected(self) -> bool:
        return self._client is not None and self._connected
