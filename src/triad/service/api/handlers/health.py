"""
Root and health check endpoints.
"""

from aiohttp import web

from triad.service.api.handlers import BaseHandler
from triad.services.logger import utc_timestamp

WELCOME_MESSAGE = "Hello from aiohttp with MongoDB, Redis, and Kafka!"


class HealthHandler(BaseHandler):
    """Handler for the welcome and health check endpoints."""

    async def root(self, request: web.Request) -> web.Response:
        """
        GET /

        Returns a welcome message.
        """
        await self.log.info("Root endpoint accessed")
        return await self.json_response({"message": WELCOME_MESSAGE})

    async def health(self, request: web.Request) -> web.Response:
        """
        GET /health

        Returns the connection status of each backing service. Always 200:
        a degraded Kafka connection is reported, not treated as a failure.
        """
        health_status = {
            "status": "OK",
            "timestamp": utc_timestamp(),
            "services": {
                "mongodb": self.database.is_connected(),
                "redis": self.cache.is_connected(),
                "kafka": self.log.get_connection_status(),
            },
        }

        await self.log.info("Health check performed", health_status)
        return await self.json_response(health_status)
