"""
Notifications router.

Provides REST API endpoints for:
- Notification history (list, unread count, read state, deletion)
- The local schedule of pending notifications
- Scheduling and cancelling contract and vehicle reminders
- Manually triggering the periodic fleet jobs

All endpoints operate on the data of the authenticated user.
"""

from typing import Callable, List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.src.config import Settings
from api.src.dependencies import (
    get_background_jobs,
    get_current_user,
    get_history_service,
    get_notification_service,
    get_notification_system,
    get_reminder_scheduler,
    get_settings_dependency,
)
from api.src.models.auth import CurrentUser, ErrorResponse
from api.src.models.notifications import (
    BulkResult,
    JobResult,
    OperationResult,
    ReminderResult,
    ScheduledNotificationResponse,
    UnreadCountResponse,
)
from notifier.src.container import NotificationSystem
from notifier.src.jobs.background_jobs import BackgroundJobs
from notifier.src.models.notification import NotificationHistoryEntry
from notifier.src.scheduler.reminder_scheduler import ReminderScheduler
from notifier.src.services.history_service import HistoryService
from notifier.src.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        503: {"model": ErrorResponse, "description": "Backend unavailable"}
    }
)


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


# ============================================================================
# HISTORY
# ============================================================================


@router.get(
    "/history",
    response_model=List[NotificationHistoryEntry],
    summary="Notification History",
    description="Delivered notifications of the current user, newest first."
)
def get_history(
    limit: Optional[int] = Query(None, gt=0, le=1000),
    user: CurrentUser = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service),
    settings: Settings = Depends(get_settings_dependency)
) -> List[NotificationHistoryEntry]:
    return service.get_history(user.id, limit or settings.history_default_limit)


@router.get("/history/unread-count", response_model=UnreadCountResponse, summary="Unread Count")
def get_unread_count(
    user: CurrentUser = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service)
) -> UnreadCountResponse:
    return UnreadCountResponse(count=service.get_unread_count(user.id))


@router.post("/history/read-all", response_model=BulkResult, summary="Mark All As Read")
def mark_all_as_read(
    user: CurrentUser = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service)
) -> BulkResult:
    return BulkResult(count=service.mark_all_as_read(user.id))


@router.post(
    "/history/{notification_id}/read",
    response_model=OperationResult,
    summary="Mark As Read",
    responses={404: {"model": ErrorResponse, "description": "Not Found"}}
)
def mark_as_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service)
) -> OperationResult:
    if not service.mark_as_read(user.id, notification_id):
        raise _not_found("Notification")
    return OperationResult(success=True)


@router.delete("/history/read", response_model=BulkResult, summary="Delete All Read")
def delete_all_read(
    user: CurrentUser = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service)
) -> BulkResult:
    return BulkResult(count=service.delete_all_read(user.id))


@router.delete(
    "/history/{notification_id}",
    response_model=OperationResult,
    summary="Delete Notification",
    responses={404: {"model": ErrorResponse, "description": "Not Found"}}
)
def delete_notification(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service)
) -> OperationResult:
    if not service.delete_notification(user.id, notification_id):
        raise _not_found("Notification")
    return OperationResult(success=True)


# ============================================================================
# SCHEDULE
# ============================================================================


@router.get(
    "/scheduled",
    response_model=List[ScheduledNotificationResponse],
    summary="Scheduled Notifications",
    description="Pending notifications of the current user, ordered by trigger time."
)
def get_scheduled(
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
) -> List[ScheduledNotificationResponse]:
    return [ScheduledNotificationResponse.model_validate(n.model_dump()) for n in service.get_scheduled(user.id)]


@router.post(
    "/contracts/{contract_id}/reminders",
    response_model=ReminderResult,
    summary="Schedule Contract Reminders",
    responses={404: {"model": ErrorResponse, "description": "Not Found"}}
)
def schedule_contract_reminders(
    contract_id: str,
    user: CurrentUser = Depends(get_current_user),
    system: NotificationSystem = Depends(get_notification_system),
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler)
) -> ReminderResult:
    """
    Schedule pickup and return reminders of a contract.

    Reminders scheduled earlier for the same contract are replaced.
    """
    contract = system.contract_repo.get(contract_id)
    # Rows without an owner belong to nobody
    if contract is None or contract.user_id != user.id:
        raise _not_found("Contract")

    scheduled = scheduler.schedule_contract_notifications(user.id, contract)
    return ReminderResult(scheduled=scheduled)


@router.delete("/contracts/{contract_id}/reminders", response_model=ReminderResult, summary="Cancel Contract Reminders")
def cancel_contract_reminders(
    contract_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
) -> ReminderResult:
    cancelled = service.cancel_where(lambda n: n.user_id == user.id and n.contract_id == contract_id)
    return ReminderResult(cancelled=cancelled)


@router.post(
    "/vehicles/{vehicle_id}/reminders",
    response_model=ReminderResult,
    summary="Schedule Vehicle Reminders",
    responses={404: {"model": ErrorResponse, "description": "Not Found"}}
)
def schedule_vehicle_reminders(
    vehicle_id: str,
    user: CurrentUser = Depends(get_current_user),
    system: NotificationSystem = Depends(get_notification_system),
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler)
) -> ReminderResult:
    """
    Schedule KTEO, insurance, tire and service reminders of a vehicle.

    Reminders scheduled earlier for the same vehicle are replaced.
    """
    vehicle = system.vehicle_repo.get(vehicle_id)
    if vehicle is None or vehicle.user_id != user.id:
        raise _not_found("Vehicle")

    scheduled = scheduler.schedule_vehicle_maintenance_notifications(user.id, vehicle)
    return ReminderResult(scheduled=scheduled)


@router.delete("/vehicles/{vehicle_id}/reminders", response_model=ReminderResult, summary="Cancel Vehicle Reminders")
def cancel_vehicle_reminders(
    vehicle_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
) -> ReminderResult:
    cancelled = service.cancel_where(lambda n: n.user_id == user.id and n.vehicle_id == vehicle_id)
    return ReminderResult(cancelled=cancelled)


# ============================================================================
# JOBS
# ============================================================================


def _run_job(name: str, job: Callable[[], object]) -> JobResult:
    result = job()
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Job '{name}' could not run"
        )
    if isinstance(result, list):
        return JobResult(job=name, success=True, sent=result)
    return JobResult(job=name, success=bool(result))


@router.post("/jobs/run-checks", response_model=JobResult, summary="Run Fleet Checks")
def run_checks(
    user: CurrentUser = Depends(get_current_user),
    jobs: BackgroundJobs = Depends(get_background_jobs)
) -> JobResult:
    """Run operational, smart alert, overdue and critical maintenance checks now."""
    return _run_job("run_checks", lambda: jobs.run_all_checks(user_id=user.id))


@router.post("/jobs/daily-briefing", response_model=JobResult, summary="Send Daily Briefing")
def daily_briefing(
    user: CurrentUser = Depends(get_current_user),
    jobs: BackgroundJobs = Depends(get_background_jobs)
) -> JobResult:
    return _run_job("daily_briefing", lambda: jobs.send_daily_briefing(user_id=user.id))


@router.post("/jobs/end-of-day-summary", response_model=JobResult, summary="Send End Of Day Summary")
def end_of_day_summary(
    user: CurrentUser = Depends(get_current_user),
    jobs: BackgroundJobs = Depends(get_background_jobs)
) -> JobResult:
    return _run_job("end_of_day_summary", lambda: jobs.send_end_of_day_summary(user_id=user.id))


@router.post("/jobs/weekly-summary", response_model=JobResult, summary="Send Weekly Summary")
def weekly_summary(
    user: CurrentUser = Depends(get_current_user),
    jobs: BackgroundJobs = Depends(get_background_jobs)
) -> JobResult:
    return _run_job("weekly_summary", lambda: jobs.send_weekly_summary(user_id=user.id))


@router.post("/jobs/milestones", response_model=JobResult, summary="Check Milestones")
def milestones(
    user: CurrentUser = Depends(get_current_user),
    jobs: BackgroundJobs = Depends(get_background_jobs)
) -> JobResult:
    return _run_job("milestones", lambda: jobs.check_milestones(user_id=user.id))
