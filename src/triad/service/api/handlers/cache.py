"""
Redis-backed cache endpoints.
"""

from typing import Any

from aiohttp import web

from triad.service.api.errors import ValidationError
from triad.service.api.handlers import BaseHandler


def _parse_ttl(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError("ttl must be a positive integer (seconds)", details={"ttl": value})
    return value


class CacheHandler(BaseHandler):
    """Handler for reading and writing cached values."""

    async def get(self, request: web.Request) -> web.Response:
        """
        GET /api/cache/{key}

        Reports whether the key was a hit or a miss.
        """
        key = request.match_info["key"]
        try:
            cached_value = await self.cache.get(key)
        except Exception as e:
            await self.log.error("Cache error", {"error": str(e)})
            return await self.failure_response("Cache operation failed")

        # Stored 0, false and "" are still hits
        if cached_value is not None:
            await self.log.info("Cache hit", {"key": key})
            return await self.json_response({"success": True, "source": "cache", "data": cached_value})

        await self.log.info("Cache miss", {"key": key})
        return await self.json_response({"success": True, "source": "miss", "data": None})

    async def set(self, request: web.Request) -> web.Response:
        """
        POST /api/cache/{key}

        Body:
          { "value": <any JSON>, "ttl": <seconds, optional> }
        """
        key = request.match_info["key"]
        payload = await request.json()
        if not isinstance(payload, dict):
            raise ValidationError("body must be a JSON object")
        if "value" not in payload:
            raise ValidationError("body must contain 'value'")
        ttl = _parse_ttl(payload.get("ttl"))

        try:
            await self.cache.set(key, payload["value"], ttl)
        except Exception as e:
            await self.log.error("Cache set error", {"error": str(e)})
            return await self.failure_response("Failed to cache value")

        await self.log.info("Cache set", {"key": key, "hasTtl": ttl is not None})
        return await self.json_response({"success": True, "message": "Value cached successfully"})
