"""
Bearer token authentication middleware for FastAPI.

Provides:
- Access token extraction from the Authorization header
- Supabase token verification through AuthService
- Request state enrichment with the current user
- Helpers for endpoints to read the authenticated user
"""

from typing import Callable, Iterable, Optional

import structlog
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from api.src.models.auth import CurrentUser
from api.src.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

DEFAULT_EXEMPT_PATHS = (
    "/health",
    "/ready",
    "/metrics",
    "/docs",
    "/redoc",
    "/openapi.json",
)


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Authenticates requests with Supabase access tokens.

    Requests to exempt paths pass through untouched. Every other request
    must carry a valid Bearer token, otherwise it is answered with 401
    before reaching a router.
    """

    def __init__(self, app, auth_service: AuthService, exempt_paths: Optional[Iterable[str]] = None):
        """
        Initialize auth middleware.

        Args:
            app: ASGI application
            auth_service: Token verification service
            exempt_paths: Paths that don't require authentication
        """
        super().__init__(app)
        self.auth_service = auth_service
        self.exempt_paths = tuple(exempt_paths or DEFAULT_EXEMPT_PATHS)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.user = None

        if request.method == "OPTIONS" or self._is_exempt_path(request.url.path):
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            logger.warning("auth_missing_token", path=request.url.path, method=request.method)
            return create_auth_error("Missing authentication token")

        current_user = self.auth_service.get_current_user(token)
        if current_user is None:
            logger.warning("auth_invalid_token", path=request.url.path, method=request.method)
            return create_auth_error("Invalid authentication token")

        request.state.user = current_user
        with structlog.contextvars.bound_contextvars(user_id=current_user.id):
            logger.debug("request_authenticated", path=request.url.path, method=request.method)
            return await call_next(request)

    def _is_exempt_path(self, path: str) -> bool:
        return any(path == exempt or path.startswith(exempt + "/") for exempt in self.exempt_paths)

    @staticmethod
    def _extract_token(request: Request) -> Optional[str]:
        """Return the Bearer token of the Authorization header, if any."""
        header = request.headers.get("Authorization")
        if not header:
            return None

        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()


def get_current_user_from_request(request: Request) -> CurrentUser:
    """
    Get the user the middleware authenticated.

    Raises:
        HTTPException: 401 if the request is not authenticated
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user_from_request(request: Request) -> Optional[CurrentUser]:
    return getattr(request.state, "user", None)


def create_auth_error(detail: str) -> JSONResponse:
    """Build a 401 response with a Bearer challenge."""
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )
