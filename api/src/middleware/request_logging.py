"""Request logging and HTTP metrics middleware."""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request
from prometheus_client import Counter, Gauge, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = structlog.get_logger(__name__)

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"]
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    ["method"]
)

UNLOGGED_PATHS = ("/health", "/ready", "/metrics")


def _endpoint_label(request: Request) -> str:
    # Route templates keep the label set bounded
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with a correlation ID and records HTTP metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        method = request.method
        path = request.url.path
        quiet = path in UNLOGGED_PATHS

        http_requests_in_progress.labels(method=method).inc()
        start_time = time.perf_counter()

        with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
            if not quiet:
                logger.info("request_started", method=method, path=path)

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "request_failed",
                    method=method,
                    path=path,
                    error=str(e),
                    duration=f"{time.perf_counter() - start_time:.3f}s",
                    exc_info=True
                )
                raise
            finally:
                http_requests_in_progress.labels(method=method).dec()

            duration = time.perf_counter() - start_time
            endpoint = _endpoint_label(request)
            http_requests_total.labels(method=method, endpoint=endpoint, status=response.status_code).inc()
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

            if not quiet:
                logger.info(
                    "request_completed",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                    duration=f"{duration:.3f}s"
                )

        response.headers["X-Correlation-ID"] = correlation_id
        return response
