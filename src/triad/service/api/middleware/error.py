"""
Error handling middleware.

Tags every request with an ID and converts exceptions escaping a handler
into structured JSON errors.
"""

import json
import uuid
from typing import Callable

from aiohttp import web

from triad.exceptions import ServiceNotConnectedError
from triad.service.api.errors import APIError, ErrorCode
from triad.utils.logging import get_logger

logger = get_logger("triad.api.middleware.error")

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: web.Request) -> str:
    # Keep the caller's ID so logs can be correlated across services
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and len(incoming) <= 64:
        return incoming
    return f"req_{uuid.uuid4().hex[:12]}"


def _as_api_error(exc: Exception) -> APIError:
    if isinstance(exc, APIError):
        return exc
    if isinstance(exc, json.JSONDecodeError):
        return APIError(ErrorCode.INVALID_REQUEST, "Invalid JSON in request body")
    if isinstance(exc, ServiceNotConnectedError):
        return APIError(ErrorCode.SERVICE_UNAVAILABLE, f"{exc.service} is not available")
    return APIError(ErrorCode.INTERNAL_ERROR, "An internal error occurred")


@web.middleware
async def error_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    """
    Attach ``request_id`` to the request and the response, and render errors.

    aiohttp's own HTTP exceptions (404, 405, ...) pass through untouched.
    """
    request_id = _request_id(request)
    request["request_id"] = request_id

    try:
        response = await handler(request)
    except web.HTTPException:
        raise
    except Exception as exc:
        error = _as_api_error(exc)
        context = {
            "request_id": request_id,
            "error_code": error.code.value,
            "path": request.path,
            "method": request.method,
        }
        if error.status >= 500 and error is not exc:
            logger.error(f"Unhandled error on {request.method} {request.path}: {exc}", extra=context, exc_info=True)
        else:
            logger.warning(f"{error.code.value}: {exc}", extra=context)
        return web.json_response(
            error.to_dict(request_id),
            status=error.status,
            headers={REQUEST_ID_HEADER: request_id},
        )

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
