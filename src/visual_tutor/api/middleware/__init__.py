"""
API middleware.

CORS configuration and request logging.
"""

from visual_tutor.api.middleware.cors import add_cors_middleware
from visual_tutor.api.middleware.logging import RequestLoggingMiddleware

__all__ = [
    "add_cors_middleware",
    "RequestLoggingMiddleware",
]
