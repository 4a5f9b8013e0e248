"""
REST API module for Triad.
"""

from triad.service.api.routes import setup_routes

__all__ = ["setup_routes"]
