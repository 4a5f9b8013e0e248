"""
API route registration.
"""

from typing import TYPE_CHECKING

from aiohttp import web

from triad.service.api.handlers.cache import CacheHandler
from triad.service.api.handlers.data import DataHandler
from triad.service.api.handlers.health import HealthHandler

if TYPE_CHECKING:
    from triad.service.server import TriadService


def setup_routes(app: web.Application, service: "TriadService") -> None:
    """
    Register all API routes.

    Args:
        app: aiohttp Application
        service: TriadService instance for handler access
    """
    health = HealthHandler(service)
    data = DataHandler(service)
    cache = CacheHandler(service)

    prefix = "/api"

    app.router.add_routes(
        [
            # Welcome & health
            web.get("/", health.root),
            web.get("/health", health.health),
            # MongoDB
            web.get(f"{prefix}/data", data.list_items),
            # Redis
            web.get(f"{prefix}/cache/{{key}}", cache.get),
            web.post(f"{prefix}/cache/{{key}}", cache.set),
        ]
    )
