"""
Tests for the Redis cache service.

The redis.asyncio client is replaced with an AsyncMock via ``client_factory``.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from triad.config.settings import RedisSettings
from triad.exceptions import ServiceNotConnectedError, TriadConnectionError
from triad.services.cache import CacheService


def _redis_client():
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.setex = AsyncMock()
    client.delete = AsyncMock()
    client.exists = AsyncMock(return_value=0)
    client.aclose = AsyncMock()
    return client


async def _connected_cache(client):
    cache = CacheService(RedisSettings(url="redis://cache:6379"), client_factory=lambda url: client)
    await cache.connect()
    return cache


class TestCacheConnection:
    @pytest.mark.asyncio
    async def test_connect_pings_server(self):
        client = _redis_client()
        urls = []

        def factory(url):
            urls.append(url)
            return client

        cache = CacheService(RedisSettings(url="redis://cache:6379"), client_factory=factory)
        await cache.connect()

        assert urls == ["redis://cache:6379"]
        client.ping.assert_awaited_once()
        assert cache.is_connected() is True

    @pytest.mark.asyncio
    async def test_connect_failure_propagates(self):
        client = _redis_client()
        client.ping.side_effect = ConnectionError("Connection refused")
        cache = CacheService(client_factory=lambda url: client)

        with pytest.raises(TriadConnectionError, match="Connection refused") as exc_info:
            await cache.connect()

        assert exc_info.value.details == {"service": "Redis"}
        assert cache.is_connected() is False
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self):
        client = _redis_client()
        cache = await _connected_cache(client)

        await cache.disconnect()

        client.aclose.assert_awaited_once()
        assert cache.is_connected() is False

    @pytest.mark.asyncio
    async def test_disconnect_without_connect_is_noop(self):
        cache = CacheService(client_factory=lambda url: _redis_client())
        await cache.disconnect()
        assert cache.is_connected() is False

    @pytest.mark.asyncio
    async def test_use_before_connect_raises(self):
        cache = CacheService(client_factory=lambda url: _redis_client())

        with pytest.raises(ServiceNotConnectedError, match="Redis not connected"):
            await cache.get("user:1")


class TestCacheOperations:
    @pytest.mark.asyncio
    async def test_get_decodes_json(self):
        client = _redis_client()
        client.get.return_value = json.dumps({"name": "Ada"})
        cache = await _connected_cache(client)

        assert await cache.get("user:1") == {"name": "Ada"}
        client.get.assert_awaited_once_with("user:1")

    @pytest.mark.asyncio
    async def test_get_miss_returns_none(self):
        cache = await _connected_cache(_redis_client())
        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_set_without_ttl(self):
        client = _redis_client()
        cache = await _connected_cache(client)

        await cache.set("greeting", "hello")

        client.set.assert_awaited_once_with("greeting", '"hello"')
        client.setex.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_set_with_ttl_uses_setex(self):
        client = _redis_client()
        cache = await _connected_cache(client)

        await cache.set("session", {"id": 7}, ttl_seconds=60)

        client.setex.assert_awaited_once_with("session", 60, '{"id": 7}')
        client.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete(self):
        client = _redis_client()
        cache = await _connected_cache(client)

        await cache.delete("old")

        client.delete.assert_awaited_once_with("old")

    @pytest.mark.asyncio
    async def test_exists(self):
        client = _redis_client()
        cache = await _connected_cache(client)

        client.exists.return_value = 1
        assert await cache.exists("k") is True
        client.exists.return_value = 0
        assert await cache.exists("k") is False
