"""
API middleware components.
"""

from triad.service.api.middleware.error import error_middleware

__all__ = ["error_middleware"]
