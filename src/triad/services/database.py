"""
MongoDB database service.

Pass-through wrapper over PyMongo's asyncio client.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse

from pymongo import AsyncMongoClient

from triad.config.settings import MongoSettings
from triad.exceptions import ServiceNotConnectedError, TriadConnectionError
from triad.utils.logging import get_logger

logger = get_logger("triad.services.database")


def database_name_from_uri(uri: str, default: str = "myapp") -> str:
    """
    Extract the database name from a MongoDB URI path.

    ``mongodb://host:27017/shop?authSource=admin`` -> ``shop``; a URI
    without a path yields ``default``.
    """
    name = urlparse(uri).path.lstrip("/")
    return name or default


class DatabaseService:
    """
    Holds the MongoDB client and the selected database.

    Args:
        settings: MongoDB connection settings
        client_factory: Builds a client from a URI (default: AsyncMongoClient)
    """

    def __init__(
        self,
        settings: MongoSettings | None = None,
        client_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self.settings = settings or MongoSettings()
        self._client_factory = client_factory or AsyncMongoClient
        self._client: Any = None
        self._db: Any = None

    async def connect(self) -> None:
        """Create the client, ping the server and select the database."""
        try:
            self._client = self._client_factory(self.settings.uri)
            await self._client.admin.command("ping")
        except Exception as e:
            logger.error(f"MongoDB connection error: {e}")
            await self._discard_client()
            raise TriadConnectionError(f"MongoDB connection error: {e}", details={"service": "MongoDB"}) from e

        db_name = database_name_from_uri(self.settings.uri, self.settings.default_database)
        self._db = self._client[db_name]
        logger.info(f"Connected to MongoDB database '{db_name}'")

    async def _discard_client(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.close()
        except Exception as close_error:
            logger.debug(f"Ignoring error while closing MongoDB client: {close_error}")

    async def disconnect(self) -> None:
        """Close the client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._db = None
            logger.info("Disconnected from MongoDB")

    def get_db(self) -> Any:
        if self._db is None:
            raise ServiceNotConnectedError("Database")
        return self._db

    def is_connected(self) -> bool:
        return self._db is not None
