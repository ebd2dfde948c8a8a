"""
FastAPI dependency injection for the notification engine and authentication.

Provides injectable dependencies for:
- The notification engine built at startup
- Its services (preferences, history, scheduling, jobs)
- The authenticated user

All dependencies use FastAPI's dependency injection system; tests replace
``get_notification_system`` through ``app.dependency_overrides``.
"""

from functools import lru_cache

import structlog
from fastapi import Depends, HTTPException, Request, status

from api.src.config import Settings, get_settings
from api.src.middleware.auth import get_current_user_from_request
from api.src.models.auth import CurrentUser
from api.src.services.auth_service import AuthService
from notifier.src.container import NotificationSystem
from notifier.src.jobs.background_jobs import BackgroundJobs
from notifier.src.scheduler.reminder_scheduler import ReminderScheduler
from notifier.src.services.history_service import HistoryService
from notifier.src.services.notification_service import NotificationService
from notifier.src.services.preferences_service import PreferencesService

logger = structlog.get_logger(__name__)


# ============================================================================
# NOTIFICATION ENGINE
# ============================================================================


def get_notification_system(request: Request) -> NotificationSystem:
    """
    Get the notification engine built during application startup.

    Raises:
        HTTPException: 503 if the engine is not available
    """
    system = getattr(request.app.state, "notification_system", None)
    if system is None:
        logger.error("notification_system_unavailable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification service is not available"
        )
    return system


def get_preferences_service(
    system: NotificationSystem = Depends(get_notification_system)
) -> PreferencesService:
    return system.preferences_service


def get_history_service(
    system: NotificationSystem = Depends(get_notification_system)
) -> HistoryService:
    return system.history_service


def get_notification_service(
    system: NotificationSystem = Depends(get_notification_system)
) -> NotificationService:
    return system.notification_service


def get_reminder_scheduler(
    system: NotificationSystem = Depends(get_notification_system)
) -> ReminderScheduler:
    return system.reminder_scheduler


def get_background_jobs(
    system: NotificationSystem = Depends(get_notification_system)
) -> BackgroundJobs:
    return system.background_jobs


# ============================================================================
# AUTHENTICATION
# ============================================================================


@lru_cache()
def get_auth_service() -> AuthService:
    """Get the cached authentication service."""
    return AuthService(get_settings())


def get_current_user(request: Request) -> CurrentUser:
    """
    Get the current authenticated user.

    The auth middleware verifies the token; this dependency only reads the
    result so endpoints can declare it.

    Example:
        @router.get("/history")
        def history(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    return get_current_user_from_request(request)


# ============================================================================
# UTILITY DEPENDENCIES
# ============================================================================


def get_settings_dependency() -> Settings:
    return get_settings()
