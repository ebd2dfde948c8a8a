"""FastAPI middleware components.

This package contains custom middleware for request authentication and
request logging.
"""

from api.src.middleware.auth import (
    AuthMiddleware,
    get_current_user_from_request,
    get_optional_user_from_request,
)
from api.src.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "AuthMiddleware",
    "RequestLoggingMiddleware",
    "get_current_user_from_request",
    "get_optional_user_from_request",
]
