"""
Preferences router.

Provides REST API endpoints for:
- Reading and partially updating notification preferences
- Switching single notification types and whole categories
- Quiet hours
- Export and import of a preference set

All endpoints operate on the preferences of the authenticated user.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from api.src.dependencies import get_current_user, get_preferences_service
from api.src.models.auth import CurrentUser, ErrorResponse
from api.src.models.notifications import (
    OperationResult,
    PreferencesImportRequest,
    PreferencesUpdate,
    QuietHoursRequest,
    ToggleRequest,
)
from notifier.src.catalog.notification_types import NotificationCategory, NotificationType
from notifier.src.models.notification import NotificationPreferences
from notifier.src.services.preferences_service import PreferencesService

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/notifications/preferences",
    tags=["Preferences"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        503: {"model": ErrorResponse, "description": "Backend unavailable"}
    }
)


def _unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Preferences could not be stored"
    )


def _load(service: PreferencesService, user_id: str) -> NotificationPreferences:
    preferences = service.get_preferences(user_id)
    if preferences is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Preferences are not available"
        )
    return preferences


# ============================================================================
# PREFERENCES
# ============================================================================


@router.get(
    "",
    response_model=NotificationPreferences,
    summary="Get Preferences",
    description="Get the notification preferences of the current user, creating defaults on first access."
)
def get_preferences(
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service)
) -> NotificationPreferences:
    return _load(service, user.id)


@router.patch(
    "",
    response_model=NotificationPreferences,
    summary="Update Preferences",
    responses={422: {"model": ErrorResponse, "description": "Validation Error"}}
)
def update_preferences(
    update: PreferencesUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service)
) -> NotificationPreferences:
    """
    Update preference columns of the current user.

    Only fields present in the request body are changed.
    """
    # Make sure a row exists before updating it
    _load(service, user.id)

    updates = update.to_updates()
    if updates and not service.update_preferences(user.id, updates):
        raise _unavailable()

    return _load(service, user.id)


@router.put(
    "/types/{notification_type}",
    response_model=OperationResult,
    summary="Toggle Notification Type"
)
def toggle_type(
    notification_type: NotificationType,
    toggle: ToggleRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service)
) -> OperationResult:
    if not service.toggle_notification_type(user.id, notification_type, toggle.enabled):
        raise _unavailable()
    return OperationResult(success=True)


@router.put(
    "/categories/{category}",
    response_model=OperationResult,
    summary="Toggle Category",
    responses={422: {"model": ErrorResponse, "description": "Category cannot be disabled"}}
)
def toggle_category(
    category: NotificationCategory,
    toggle: ToggleRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service)
) -> OperationResult:
    """
    Enable or disable a whole category.

    Alerts have no category switch and answer 422.
    """
    try:
        stored = service.toggle_category(user.id, category, toggle.enabled)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    if not stored:
        raise _unavailable()
    return OperationResult(success=True)


@router.put(
    "/quiet-hours",
    response_model=OperationResult,
    summary="Set Quiet Hours"
)
def set_quiet_hours(
    quiet_hours: QuietHoursRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service)
) -> OperationResult:
    _load(service, user.id)
    if not service.set_quiet_hours(user.id, quiet_hours.enabled, quiet_hours.start, quiet_hours.end):
        raise _unavailable()
    return OperationResult(success=True)


# ============================================================================
# EXPORT / IMPORT
# ============================================================================


@router.get(
    "/export",
    summary="Export Preferences",
    response_class=Response,
    responses={200: {"content": {"application/json": {}}}}
)
def export_preferences(
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service)
) -> Response:
    exported = service.export_preferences(user.id)
    if exported is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Preferences are not available"
        )
    return Response(content=exported, media_type="application/json")


@router.post(
    "/import",
    response_model=OperationResult,
    summary="Import Preferences",
    responses={422: {"model": ErrorResponse, "description": "Invalid preferences payload"}}
)
def import_preferences(
    payload: PreferencesImportRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PreferencesService = Depends(get_preferences_service)
) -> OperationResult:
    """
    Apply previously exported preferences.

    Identity and timestamp fields of the payload are ignored.
    """
    _load(service, user.id)
    if not service.import_preferences(user.id, payload.data):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid preferences payload"
        )
    logger.info("preferences_imported", user_id=user.id)
    return OperationResult(success=True)
