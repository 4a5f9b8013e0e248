"""
API endpoint handlers.

One handler class per backing service; all share the response helpers
defined here.
"""

import datetime
import math
from typing import TYPE_CHECKING, Any

from aiohttp import web
from bson import Decimal128, ObjectId

if TYPE_CHECKING:
    from triad.service.server import TriadService


def _sanitize(obj: Any) -> Any:
    """Convert MongoDB documents into JSON-safe values.

    ObjectId becomes its hex string, Decimal128 and datetimes become
    strings, NaN/Inf become None.
    """
    if isinstance(obj, dict):
        return {str(k): _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        return None
    if isinstance(obj, (ObjectId, Decimal128)):
        return str(obj)
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()
    return obj


class BaseHandler:
    """Gives handlers the service's clients and JSON response helpers."""

    def __init__(self, service: "TriadService"):
        self.service = service

    @property
    def database(self) -> Any:
        return self.service.database

    @property
    def cache(self) -> Any:
        return self.service.cache

    @property
    def log(self) -> Any:
        """Application log publisher."""
        return self.service.log

    async def json_response(self, data: Any, status: int = 200) -> web.Response:
        # X-Request-ID is added by error_middleware
        return web.json_response(_sanitize(data), status=status)

    async def failure_response(self, message: str, status: int = 500) -> web.Response:
        """``{"success": false, "error": message}`` for a failed backing-service call."""
        return await self.json_response({"success": False, "error": message}, status=status)
