"""
Triad HTTP service.

Provides:
- GET / and GET /health
- GET /api/data (MongoDB)
- GET/POST /api/cache/{key} (Redis)
- Application logs published to Kafka, with a console fallback
"""

from __future__ import annotations

from typing import Any

from aiohttp import web

from triad.config.loader import Config
from triad.config.settings import KafkaSettings, MongoSettings, RedisSettings, ServerSettings
from triad.exceptions import InitializationError
from triad.service.api import setup_routes
from triad.service.api.middleware import error_middleware
from triad.services.cache import CacheService
from triad.services.database import DatabaseService
from triad.services.logger import LogPublisher
from triad.utils.logging import get_logger

logger = get_logger("triad.service")

SERVICE_KEY = web.AppKey("triad_service", object)


class TriadService:
    """
    Owns the three backing service clients and their lifecycle.

    Clients can be injected for testing; otherwise they are built from the
    config sections.
    """

    def __init__(
        self,
        config: Config,
        *,
        database: Any = None,
        cache: Any = None,
        log: Any = None,
    ) -> None:
        self.config = config
        self.settings = ServerSettings.from_config(config)
        self.database = database or DatabaseService(MongoSettings.from_config(config))
        self.cache = cache or CacheService(RedisSettings.from_config(config))
        self.log = log or LogPublisher(KafkaSettings.from_config(config))
        self.started = False

    async def startup(self) -> None:
        """
        Connect MongoDB, Redis and Kafka, in that order.

        MongoDB and Redis are required. Kafka is not: its publisher degrades
        to console logging when the broker cannot be reached.

        Raises:
            InitializationError: if MongoDB or Redis cannot be reached
        """
        logger.info("Starting server...")
        try:
            await self.database.connect()
            await self.cache.connect()
        except Exception as e:
            logger.error(f"Failed to start server: {e}")
            await self.log.error("Server startup failed", {"error": str(e)})
            raise InitializationError(f"Failed to start server: {e}") from e

        await self.log.connect()
        self.started = True

    async def shutdown(self) -> None:
        """Close every connection. Safe to call after a failed startup."""
        logger.info("Shutting down gracefully...")
        await self.log.info("Server shutdown initiated")
        await self.database.disconnect()
        await self.cache.disconnect()
        await self.log.disconnect()
        self.started = False
        logger.info("All connections closed")


def create_app(service: TriadService) -> web.Application:
    """Build the aiohttp application around a service."""
    app = web.Application(middlewares=[error_middleware])
    app[SERVICE_KEY] = service
    setup_routes(app, service)

    async def on_startup(app: web.Application) -> None:
        await service.startup()
        logger.info(f"Server is running on http://{service.settings.host}:{service.settings.port}")
        await service.log.info(
            "Server started successfully",
            {"port": service.settings.port, "environment": service.settings.environment},
        )

    async def on_cleanup(app: web.Application) -> None:
        await service.shutdown()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


def run_service(config: Config, *, host: str | None = None, port: int | None = None) -> None:
    """
    Run the Triad service (blocking).

    SIGINT/SIGTERM trigger a graceful shutdown through the cleanup hook.

    Args:
        config: Loaded configuration
        host: Host to bind to (default: server.host)
        port: Port to bind to (default: server.port)

    Raises:
        InitializationError: if a required backing service is unreachable
    """
    service = TriadService(config)
    app = create_app(service)
    web.run_app(
        app,
        host=host or service.settings.host,
        port=port or service.settings.port,
        access_log=None,
        print=None,
    )
