"""
FastAPI application entry point for the FleetOS Notifications API.

This module provides the main FastAPI application with:
- Health and readiness endpoints
- Supabase access token authentication
- Request logging with correlation IDs
- Prometheus metrics
- OpenTelemetry distributed tracing
- Hosting of the periodic fleet checks
- Graceful startup and shutdown
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.src.config import Settings, get_settings
from api.src.dependencies import get_auth_service
from api.src.middleware.auth import DEFAULT_EXEMPT_PATHS, AuthMiddleware
from api.src.middleware.request_logging import RequestLoggingMiddleware
from api.src.routers import notifications, preferences
from notifier.src.config import get_config
from notifier.src.container import build_notification_system
from notifier.src.repositories.base import RepositoryError
from shared.logging import configure_logging
from shared.metrics import get_metrics_handler
from shared.models import ComponentStatus, ReadinessReport, ServiceInfo
from shared.tracing import configure_tracing, shutdown_tracing

# Initialize logger
logger = structlog.get_logger(__name__)

# Get settings
settings: Settings = get_settings()

STARTED_AT = time.monotonic()

# ============================================================================
# Lifespan Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - Logging and tracing setup
    - Notification engine construction and service sign-in
    - Starting and stopping the background loop (fleet checks only when
      jobs_enabled)
    """
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name="fleetos-api",
        environment=settings.environment,
    )

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    # ========================================================================
    # Startup: Initialize Resources
    # ========================================================================

    try:
        if settings.tracing_enabled:
            configure_tracing(
                service_name="fleetos-api",
                otlp_endpoint=settings.tracing_otlp_endpoint,
                sampling_rate=settings.tracing_sample_rate,
                service_version=settings.app_version,
            )

        config = get_config()
        system = build_notification_system(config)
        app.state.notification_system = system

        # Reminders scheduled through this API are dispatched by this process
        system.background_jobs.run_checks = settings.jobs_enabled
        if settings.jobs_enabled and config.supabase.service_email and config.supabase.service_password:
            system.session_user.sign_in(config.supabase.service_email, config.supabase.service_password)
        system.background_jobs.start()

        logger.info(
            "application_started",
            app_name=settings.app_name,
            jobs_enabled=settings.jobs_enabled
        )

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    # ========================================================================
    # Shutdown: Cleanup Resources
    # ========================================================================

    finally:
        logger.info("application_shutting_down")
        system = getattr(app.state, "notification_system", None)
        if system is not None:
            system.background_jobs.stop()
            cancelled = system.notification_service.cancel_all()
            logger.info("scheduled_notifications_discarded", count=cancelled)
        shutdown_tracing()
        logger.info("application_shutdown_complete")


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Notification API for the FleetOS rental fleet manager. "
        "Manages notification preferences, history and reminders."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ============================================================================
# Middleware Configuration
# ============================================================================

# Innermost first: authentication runs inside request logging
app.add_middleware(
    AuthMiddleware,
    auth_service=get_auth_service(),
    exempt_paths=DEFAULT_EXEMPT_PATHS,
)
app.add_middleware(RequestLoggingMiddleware)

if settings.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# OpenTelemetry Instrumentation
if settings.tracing_enabled:
    FastAPIInstrumentor.instrument_app(app)

# ============================================================================
# Exception Handlers
# ============================================================================


@app.exception_handler(RepositoryError)
async def repository_exception_handler(request: Request, exc: RepositoryError):
    """Backend failures surface as 503 so clients can retry."""
    logger.error(
        "repository_error",
        path=request.url.path,
        operation=exc.operation,
        code=exc.code,
        error=str(exc)
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Backend temporarily unavailable"}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # Validator exceptions in "ctx" are not JSON serializable
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.warning(
        "validation_error",
        path=request.url.path,
        errors=exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_errors(exc)}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

# ============================================================================
# Health and Readiness Endpoints
# ============================================================================


@app.get("/health", tags=["Health"], response_model=ServiceInfo)
async def health_check() -> ServiceInfo:
    """
    Health check endpoint.

    Returns basic health status without checking dependencies.
    """
    return ServiceInfo(
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        uptime_seconds=round(time.monotonic() - STARTED_AT, 3)
    )


@app.get("/ready", tags=["Health"], response_class=JSONResponse)
async def readiness_check(request: Request) -> JSONResponse:
    """
    Readiness check endpoint.

    Ready once the notification engine is built and its background loop
    is running.
    """
    system = getattr(request.app.state, "notification_system", None)
    report = ReadinessReport(service=settings.app_name, version=settings.app_version)
    report.checks["notification_system"] = (
        ComponentStatus.HEALTHY if system is not None else ComponentStatus.UNAVAILABLE
    )

    running = system is not None and system.background_jobs.is_running
    report.checks["background_jobs"] = ComponentStatus.HEALTHY if running else ComponentStatus.STOPPED

    return JSONResponse(
        status_code=status.HTTP_200_OK if report.ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=report.to_response()
    )

# ============================================================================
# Metrics Endpoint
# ============================================================================


@app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return Response(
        content=get_metrics_handler()(),
        media_type=CONTENT_TYPE_LATEST
    )

# ============================================================================
# API Router Registration
# ============================================================================

app.include_router(preferences.router, prefix=settings.api_prefix)
app.include_router(notifications.router, prefix=settings.api_prefix)

# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port
    )

    uvicorn.run(
        "api.src.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=False,
    )
