"""
Structured API errors.

Request problems raise an APIError; error_middleware turns it into
``{"success": false, "error": {"code", "message", ...}}`` with the status
registered for its code.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
}


def error_body(
    code: ErrorCode,
    message: str,
    request_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Response body shared by every structured error."""
    error: dict[str, Any] = {"code": code.value, "message": message}
    if details:
        error["details"] = details
    if request_id:
        error["request_id"] = request_id
    return {"success": False, "error": error}


class APIError(Exception):
    """
    Request error with a code and an HTTP status.

    ``status`` defaults to the one registered for ``code``:

        raise APIError(ErrorCode.SERVICE_UNAVAILABLE, "Redis is not connected")
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status or HTTP_STATUS.get(code, 400)
        self.details = details or {}

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        return error_body(self.code, self.message, request_id, self.details)


class ValidationError(APIError):
    """Malformed request body or parameter."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.VALIDATION_ERROR, message, details=details)
