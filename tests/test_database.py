"""
Tests for the MongoDB database service.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from triad.config.settings import MongoSettings
from triad.exceptions import ServiceNotConnectedError, TriadConnectionError
from triad.services.database import DatabaseService, database_name_from_uri


def _mongo_client():
    client = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.close = AsyncMock()
    return client


class TestDatabaseName:
    @pytest.mark.parametrize(
        "uri,expected",
        [
            ("mongodb://localhost:27017/myapp", "myapp"),
            ("mongodb://user:pw@db:27017/shop?authSource=admin", "shop"),
            ("mongodb://localhost:27017", "fallback"),
            ("mongodb://localhost:27017/", "fallback"),
        ],
    )
    def test_database_name_from_uri(self, uri, expected):
        assert database_name_from_uri(uri, default="fallback") == expected


class TestDatabaseService:
    @pytest.mark.asyncio
    async def test_connect_selects_database_from_uri(self):
        client = _mongo_client()
        service = DatabaseService(
            MongoSettings(uri="mongodb://db:27017/shop"),
            client_factory=lambda uri: client,
        )

        await service.connect()

        client.admin.command.assert_awaited_once_with("ping")
        client.__getitem__.assert_called_with("shop")
        assert service.get_db() is client.__getitem__.return_value
        assert service.is_connected() is True

    @pytest.mark.asyncio
    async def test_connect_uses_default_database(self):
        client = _mongo_client()
        service = DatabaseService(
            MongoSettings(uri="mongodb://db:27017", default_database="myapp"),
            client_factory=lambda uri: client,
        )

        await service.connect()

        client.__getitem__.assert_called_with("myapp")

    @pytest.mark.asyncio
    async def test_connect_failure_propagates(self):
        client = _mongo_client()
        client.admin.command.side_effect = ConnectionError("server selection timeout")
        service = DatabaseService(client_factory=lambda uri: client)

        with pytest.raises(TriadConnectionError, match="server selection timeout") as exc_info:
            await service.connect()

        assert exc_info.value.details == {"service": "MongoDB"}
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert service.is_connected() is False
        with pytest.raises(ServiceNotConnectedError):
            service.get_db()

    @pytest.mark.asyncio
    async def test_failed_ping_closes_client(self):
        client = _mongo_client()
        client.admin.command.side_effect = ConnectionError("server selection timeout")
        service = DatabaseService(client_factory=lambda uri: client)

        with pytest.raises(TriadConnectionError):
            await service.connect()

        client.close.assert_awaited_once()

        # Nothing left to close afterwards
        await service.disconnect()
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_client_construction_failure_is_wrapped(self):
        def factory(uri):
            raise ValueError("invalid URI scheme")

        service = DatabaseService(client_factory=factory)

        with pytest.raises(TriadConnectionError, match="invalid URI scheme"):
            await service.connect()

        assert service.is_connected() is False

    def test_get_db_before_connect_raises(self):
        service = DatabaseService(client_factory=lambda uri: _mongo_client())

        with pytest.raises(ServiceNotConnectedError, match="Database not connected. Call connect\\(\\) first."):
            service.get_db()

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self):
        client = _mongo_client()
        service = DatabaseService(client_factory=lambda uri: client)
        await service.connect()

        await service.disconnect()

        client.close.assert_awaited_once()
        assert service.is_connected() is False
