"""
Periodic background jobs.

A single daemon thread owns the repeating timer. It runs the fleet checks
once immediately and then every ``check_interval_seconds``; between checks
it wakes every ``dispatch_interval_seconds`` to deliver scheduled
notifications that became due.
"""

import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

import structlog

from shared.metrics import NotificationMetrics
from shared.tracing import trace_function

from ..models.fleet import Contract, Vehicle
from ..repositories.base import RepositoryError
from ..repositories.fleet_repo import ContractRepository, VehicleRepository
from ..scheduler.fleet_checks import FleetChecks
from ..services.notification_service import NotificationService
from ..services.preferences_service import PreferencesService

logger = structlog.get_logger(__name__)


class BackgroundJobs:
    """Runs the fleet checks and the scheduled-notification dispatcher."""

    def __init__(
        self,
        contract_repo: ContractRepository,
        vehicle_repo: VehicleRepository,
        fleet_checks: FleetChecks,
        notification_service: NotificationService,
        preferences_service: PreferencesService,
        metrics: NotificationMetrics,
        user_resolver: Callable[[], Optional[str]],
        check_interval_seconds: float = 3600,
        dispatch_interval_seconds: float = 60,
        business_timezone: str = "Europe/Athens",
        run_checks: bool = True,
    ):
        """
        Initialize background jobs.

        Args:
            contract_repo: Contract source
            vehicle_repo: Vehicle source
            fleet_checks: Check implementations
            notification_service: Scheduled store to dispatch from
            preferences_service: Used for the nightly daily-count reset
            metrics: Prometheus metrics
            user_resolver: Returns the session user ID, or None when signed out
            check_interval_seconds: Period of the fleet checks
            dispatch_interval_seconds: Period of the due-notification dispatch
            business_timezone: Timezone of the nightly reset
            run_checks: Run the fleet checks on the timer; when False the
                loop only dispatches due notifications
        """
        self.contract_repo = contract_repo
        self.vehicle_repo = vehicle_repo
        self.fleet_checks = fleet_checks
        self.notification_service = notification_service
        self.preferences_service = preferences_service
        self.metrics = metrics
        self.user_resolver = user_resolver
        self.check_interval_seconds = check_interval_seconds
        self.dispatch_interval_seconds = dispatch_interval_seconds
        self.tz = ZoneInfo(business_timezone)
        self.run_checks = run_checks

        self._running = False
        self._start_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._metrics = {
            "check_runs": 0,
            "check_failures": 0,
            "checks_skipped_no_user": 0,
            "dispatched": 0,
            "last_run_at": None,
        }

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the timer thread. A second call while running is a no-op."""
        with self._start_lock:
            if self._running:
                logger.warning("background_jobs_already_running")
                return

            self._running = True
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, name="fleetos-background-jobs", daemon=True)
            self._thread.start()

        logger.info(
            "background_jobs_started",
            run_checks=self.run_checks,
            check_interval_seconds=self.check_interval_seconds,
            dispatch_interval_seconds=self.dispatch_interval_seconds,
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the timer thread."""
        with self._start_lock:
            if not self._running:
                return
            self._running = False
            self._stop_event.set()
            thread = self._thread
            self._thread = None

        if thread is not None:
            thread.join(timeout=timeout)
        logger.info("background_jobs_stopped", metrics=self.get_metrics())

    def _loop(self) -> None:
        next_check = time.monotonic()

        while not self._stop_event.is_set():
            wait = self.dispatch_interval_seconds
            if self.run_checks:
                if time.monotonic() >= next_check:
                    self.run_all_checks()
                    next_check = time.monotonic() + self.check_interval_seconds
                wait = min(wait, max(0.0, next_check - time.monotonic()))

            self.dispatch_due()

            self._stop_event.wait(wait)

    def dispatch_due(self, now: Optional[datetime] = None) -> int:
        try:
            delivered = self.notification_service.dispatch_due(now)
        except Exception as e:
            logger.error("dispatch_failed", error=str(e), exc_info=True)
            return 0
        self._metrics["dispatched"] += delivered
        return delivered

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _load_fleet(self, user_id: str) -> Tuple[List[Contract], List[Vehicle]]:
        contracts = self.contract_repo.list_for_user(user_id)
        vehicles = self.vehicle_repo.list_for_user(user_id)
        return contracts, vehicles

    @trace_function("background_jobs.run_all_checks")
    def run_all_checks(self, now: Optional[datetime] = None, user_id: Optional[str] = None) -> bool:
        """
        Run every periodic check for the session user.

        Order: operational summaries, smart alerts, overdue returns,
        critical maintenance. Nothing runs when no user is signed in.

        Args:
            now: Current instant (defaults to now, UTC)
            user_id: User to run for (defaults to the session user)

        Returns:
            True if the checks ran to completion
        """
        now = now or datetime.now(timezone.utc)
        started = time.perf_counter()
        self._metrics["last_run_at"] = now.isoformat()

        user_id = user_id or self.user_resolver()
        if not user_id:
            self._metrics["checks_skipped_no_user"] += 1
            self.metrics.background_runs.labels(status="skipped").inc()
            logger.info("background_checks_skipped", reason="no_user")
            return False

        with structlog.contextvars.bound_contextvars(run_id=uuid.uuid4().hex[:12], user_id=user_id):
            logger.info("background_checks_started")
            try:
                contracts, vehicles = self._load_fleet(user_id)

                self.fleet_checks.check_operational_notifications(user_id, contracts, vehicles, now)
                self.fleet_checks.check_smart_alerts(user_id, contracts, vehicles, now)
                self.fleet_checks.check_overdue_returns(user_id, contracts, now)
                self.fleet_checks.check_critical_maintenance(user_id, vehicles, now)

                if now.astimezone(self.tz).hour == 0:
                    self.preferences_service.reset_daily_count(user_id, now)

            except RepositoryError as e:
                self._metrics["check_failures"] += 1
                self.metrics.background_runs.labels(status="failed").inc()
                logger.error("background_checks_failed", error=str(e))
                return False
            except Exception as e:
                # The timer must survive any single failed run
                self._metrics["check_failures"] += 1
                self.metrics.background_runs.labels(status="failed").inc()
                logger.error("background_checks_failed", error=str(e), exc_info=True)
                return False
            finally:
                self.metrics.background_run_duration.observe(time.perf_counter() - started)

            self._metrics["check_runs"] += 1
            self.metrics.background_runs.labels(status="success").inc()
            logger.info(
                "background_checks_completed",
                contracts=len(contracts),
                vehicles=len(vehicles),
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return True

    # ------------------------------------------------------------------
    # Manual triggers
    # ------------------------------------------------------------------

    def _manual(self, name: str, action: Callable[[str], Any], user_id: Optional[str] = None) -> Optional[Any]:
        user_id = user_id or self.user_resolver()
        if not user_id:
            logger.info("manual_job_skipped", job=name, reason="no_user")
            return None
        try:
            result = action(user_id)
        except RepositoryError as e:
            logger.error("manual_job_failed", job=name, user_id=user_id, error=str(e))
            return None
        logger.info("manual_job_completed", job=name, user_id=user_id, result=result)
        return result

    def send_daily_briefing(self, now: Optional[datetime] = None, user_id: Optional[str] = None) -> Optional[bool]:
        return self._manual(
            "daily_briefing",
            lambda user_id: self.fleet_checks.send_daily_briefing(
                user_id, self.contract_repo.list_for_user(user_id), now
            ),
            user_id=user_id,
        )

    def send_end_of_day_summary(self, now: Optional[datetime] = None, user_id: Optional[str] = None) -> Optional[bool]:
        def action(user_id: str) -> bool:
            contracts, vehicles = self._load_fleet(user_id)
            return self.fleet_checks.send_end_of_day_summary(user_id, contracts, vehicles, now)

        return self._manual("end_of_day_summary", action, user_id=user_id)

    def send_weekly_summary(self, now: Optional[datetime] = None, user_id: Optional[str] = None) -> Optional[bool]:
        def action(user_id: str) -> bool:
            since = (now or datetime.now(timezone.utc)) - timedelta(days=7)
            recent = self.contract_repo.list_created_since(user_id, since)
            return self.fleet_checks.send_weekly_summary(user_id, recent, now)

        return self._manual("weekly_summary", action, user_id=user_id)

    def check_milestones(self, now: Optional[datetime] = None, user_id: Optional[str] = None) -> Optional[list]:
        return self._manual(
            "milestones",
            lambda user_id: [
                t.value
                for t in self.fleet_checks.check_milestones(user_id, self.contract_repo.list_for_user(user_id), now)
            ],
            user_id=user_id,
        )

    def get_metrics(self) -> Dict[str, Any]:
        return {
            **self._metrics,
            "running": self._running,
            "scheduled": len(self.notification_service.get_scheduled()),
        }
