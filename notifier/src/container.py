"""Wires repositories, services, scheduler and jobs from configuration."""

from dataclasses import dataclass
from typing import Optional

import structlog
from supabase import Client

from shared.metrics import NotificationMetrics, get_metrics

from .config import Config
from .jobs.background_jobs import BackgroundJobs
from .jobs.session import SupabaseSessionUser
from .repositories.base import create_supabase_client
from .repositories.fleet_repo import ContractRepository, VehicleRepository
from .repositories.notification_repo import DailyCountRepository, HistoryRepository, PreferencesRepository
from .scheduler.fleet_checks import FleetChecks
from .scheduler.reminder_scheduler import ReminderScheduler
from .services.history_service import HistoryService
from .services.notification_service import NotificationService
from .services.preferences_service import PreferencesService

logger = structlog.get_logger(__name__)


@dataclass
class NotificationSystem:
    """Every long-lived component of the notification engine."""

    contract_repo: ContractRepository
    vehicle_repo: VehicleRepository
    preferences_service: PreferencesService
    history_service: HistoryService
    notification_service: NotificationService
    reminder_scheduler: ReminderScheduler
    fleet_checks: FleetChecks
    background_jobs: BackgroundJobs
    session_user: SupabaseSessionUser


def build_notification_system(
    config: Config,
    client: Optional[Client] = None,
    metrics: Optional[NotificationMetrics] = None,
) -> NotificationSystem:
    """
    Build the notification engine.

    Args:
        config: Service configuration
        client: Supabase client (created from config if None)
        metrics: Metrics instance (process-wide instance if None)

    Returns:
        Wired NotificationSystem
    """
    client = client or create_supabase_client(config.supabase)
    metrics = metrics or get_metrics()
    attempts = config.supabase.retry_attempts
    notify = config.notifications

    contract_repo = ContractRepository(client, attempts, tz_name=notify.business_timezone)
    vehicle_repo = VehicleRepository(client, attempts)

    preferences_service = PreferencesService(
        PreferencesRepository(client, attempts),
        DailyCountRepository(client, attempts),
        default_timezone=notify.business_timezone,
    )
    history_service = HistoryService(HistoryRepository(client, attempts))
    notification_service = NotificationService(
        preferences_service, history_service, metrics, language=notify.language
    )

    reminder_scheduler = ReminderScheduler(
        notification_service,
        business_timezone=notify.business_timezone,
        reminder_hour=notify.expiry_reminder_hour,
        language=notify.language,
    )
    fleet_checks = FleetChecks(
        notification_service,
        metrics,
        business_timezone=notify.business_timezone,
        language=notify.language,
        morning_briefing_hour=notify.morning_briefing_hour,
        end_of_day_hour=notify.end_of_day_hour,
        weekend_planning_hour=notify.weekend_planning_hour,
        milestone_contract_count=notify.milestone_contract_count,
    )

    session_user = SupabaseSessionUser(client)
    background_jobs = BackgroundJobs(
        contract_repo,
        vehicle_repo,
        fleet_checks,
        notification_service,
        preferences_service,
        metrics,
        user_resolver=session_user,
        check_interval_seconds=config.jobs.check_interval_seconds,
        dispatch_interval_seconds=config.jobs.dispatch_interval_seconds,
        business_timezone=notify.business_timezone,
        run_checks=config.jobs.enabled,
    )

    logger.info(
        "notification_system_built",
        language=notify.language,
        business_timezone=notify.business_timezone,
    )

    return NotificationSystem(
        contract_repo=contract_repo,
        vehicle_repo=vehicle_repo,
        preferences_service=preferences_service,
        history_service=history_service,
        notification_service=notification_service,
        reminder_scheduler=reminder_scheduler,
        fleet_checks=fleet_checks,
        background_jobs=background_jobs,
        session_user=session_user,
    )
