"""
Unit tests for the periodic background jobs.

Tests cover:
- Start/stop lifecycle of the timer thread
- Check order and the no-user skip
- Failure isolation of a single run
- Manual triggers and the nightly daily-count reset
- Session user resolution
"""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock

import pytest

from notifier.src.catalog.notification_types import NotificationType
from notifier.src.jobs.background_jobs import BackgroundJobs
from notifier.src.jobs.session import SupabaseSessionUser
from notifier.src.repositories.base import RepositoryError
from notifier.src.repositories.fleet_repo import ContractRepository, VehicleRepository
from notifier.src.scheduler.fleet_checks import FleetChecks
from notifier.src.services.notification_service import NotificationService
from notifier.src.services.preferences_service import PreferencesService

NOON_UTC = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)  # 12:00 in Athens
ATHENS_MIDNIGHT = datetime(2025, 6, 1, 21, 30, tzinfo=timezone.utc)  # 00:30 in Athens


@pytest.fixture
def fleet_checks():
    checks = Mock(spec=FleetChecks)
    checks.send_daily_briefing.return_value = True
    checks.check_milestones.return_value = [NotificationType.PERFECT_WEEK]
    return checks


@pytest.fixture
def contract_repo(contract_factory):
    repo = Mock(spec=ContractRepository)
    repo.list_for_user.return_value = [contract_factory()]
    return repo


@pytest.fixture
def vehicle_repo(vehicle_factory):
    repo = Mock(spec=VehicleRepository)
    repo.list_for_user.return_value = [vehicle_factory()]
    return repo


@pytest.fixture
def jobs(contract_repo, vehicle_repo, fleet_checks, metrics):
    service = Mock(spec=NotificationService)
    service.dispatch_due.return_value = 0
    service.get_scheduled.return_value = []
    return BackgroundJobs(
        contract_repo=contract_repo,
        vehicle_repo=vehicle_repo,
        fleet_checks=fleet_checks,
        notification_service=service,
        preferences_service=Mock(spec=PreferencesService),
        metrics=metrics,
        user_resolver=lambda: "user-1",
        check_interval_seconds=3600,
        dispatch_interval_seconds=0.01,
    )


class TestLifecycle:
    """Test timer thread start and stop"""

    def test_start_is_idempotent(self, jobs):
        jobs.start()
        first_thread = jobs._thread
        jobs.start()

        assert jobs.is_running
        assert jobs._thread is first_thread

        jobs.stop()
        assert not jobs.is_running
        assert not first_thread.is_alive()

    def test_start_runs_checks_immediately(self, jobs, fleet_checks):
        checked = threading.Event()
        fleet_checks.check_smart_alerts.side_effect = lambda *args: checked.set()

        jobs.start()
        assert checked.wait(timeout=5)
        jobs.stop()

        fleet_checks.check_smart_alerts.assert_called()

    def test_dispatch_only_loop(self, jobs, fleet_checks):
        """Test that the loop keeps dispatching with the fleet checks switched off"""
        dispatched = threading.Event()
        jobs.notification_service.dispatch_due.side_effect = lambda *args: dispatched.set() or 0
        jobs.run_checks = False

        jobs.start()
        assert dispatched.wait(timeout=5)
        jobs.stop()

        fleet_checks.check_smart_alerts.assert_not_called()
        fleet_checks.check_operational_notifications.assert_not_called()

    def test_stop_when_not_running(self, jobs):
        jobs.stop()
        assert not jobs.is_running


class TestRunAllChecks:
    """Test one run of the periodic checks"""

    def test_checks_run_in_order(self, jobs, fleet_checks, contract_repo, vehicle_repo):
        order = MagicMock()
        order.attach_mock(fleet_checks.check_operational_notifications, "operational")
        order.attach_mock(fleet_checks.check_smart_alerts, "smart")
        order.attach_mock(fleet_checks.check_overdue_returns, "overdue")
        order.attach_mock(fleet_checks.check_critical_maintenance, "maintenance")

        assert jobs.run_all_checks(NOON_UTC) is True

        assert [c[0] for c in order.mock_calls] == ["operational", "smart", "overdue", "maintenance"]
        contracts = contract_repo.list_for_user.return_value
        vehicles = vehicle_repo.list_for_user.return_value
        fleet_checks.check_smart_alerts.assert_called_once_with("user-1", contracts, vehicles, NOON_UTC)

    def test_skipped_without_user(self, jobs, fleet_checks, contract_repo, registry):
        jobs.user_resolver = lambda: None

        assert jobs.run_all_checks(NOON_UTC) is False

        contract_repo.list_for_user.assert_not_called()
        fleet_checks.check_smart_alerts.assert_not_called()
        assert jobs.get_metrics()["checks_skipped_no_user"] == 1
        assert registry.get_sample_value(
            "fleetos_background_check_runs_total", {"status": "skipped"}
        ) == 1.0

    def test_explicit_user_overrides_session(self, jobs, contract_repo):
        jobs.user_resolver = lambda: None

        assert jobs.run_all_checks(NOON_UTC, user_id="user-2") is True
        contract_repo.list_for_user.assert_called_once_with("user-2")

    def test_backend_failure_does_not_raise(self, jobs, contract_repo, registry):
        contract_repo.list_for_user.side_effect = RepositoryError("list_contracts", "unavailable")

        assert jobs.run_all_checks(NOON_UTC) is False
        assert jobs.get_metrics()["check_failures"] == 1
        assert registry.get_sample_value(
            "fleetos_background_check_runs_total", {"status": "failed"}
        ) == 1.0

    def test_unexpected_failure_does_not_raise(self, jobs, fleet_checks):
        fleet_checks.check_overdue_returns.side_effect = RuntimeError("boom")

        assert jobs.run_all_checks(NOON_UTC) is False
        fleet_checks.check_critical_maintenance.assert_not_called()

    def test_daily_count_reset_at_local_midnight(self, jobs):
        jobs.run_all_checks(NOON_UTC)
        jobs.preferences_service.reset_daily_count.assert_not_called()

        jobs.run_all_checks(ATHENS_MIDNIGHT)
        jobs.preferences_service.reset_daily_count.assert_called_once_with("user-1", ATHENS_MIDNIGHT)

    def test_dispatch_failure_is_contained(self, jobs):
        jobs.notification_service.dispatch_due.side_effect = RuntimeError("lock poisoned")
        assert jobs.dispatch_due(NOON_UTC) == 0


class TestManualTriggers:
    """Test jobs triggered on demand"""

    def test_daily_briefing_for_explicit_user(self, jobs, fleet_checks, contract_repo):
        assert jobs.send_daily_briefing(NOON_UTC, user_id="user-9") is True

        contract_repo.list_for_user.assert_called_once_with("user-9")
        fleet_checks.send_daily_briefing.assert_called_once_with(
            "user-9", contract_repo.list_for_user.return_value, NOON_UTC
        )

    def test_milestones_return_type_values(self, jobs):
        assert jobs.check_milestones(NOON_UTC) == ["perfect_week"]

    def test_end_of_day_loads_vehicles(self, jobs, fleet_checks, vehicle_repo):
        fleet_checks.send_end_of_day_summary.return_value = True

        assert jobs.send_end_of_day_summary(NOON_UTC) is True
        vehicle_repo.list_for_user.assert_called_once_with("user-1")

    def test_no_user_returns_none(self, jobs, fleet_checks):
        jobs.user_resolver = lambda: None

        assert jobs.send_weekly_summary(NOON_UTC) is None
        fleet_checks.send_weekly_summary.assert_not_called()

    def test_backend_failure_returns_none(self, jobs, contract_repo):
        contract_repo.list_created_since.side_effect = RepositoryError("list_recent_contracts", "unavailable")
        assert jobs.send_weekly_summary(NOON_UTC) is None

    def test_weekly_summary_reads_last_seven_days(self, jobs, fleet_checks, contract_repo):
        fleet_checks.send_weekly_summary.return_value = True

        assert jobs.send_weekly_summary(NOON_UTC) is True

        contract_repo.list_created_since.assert_called_once_with("user-1", NOON_UTC - timedelta(days=7))
        fleet_checks.send_weekly_summary.assert_called_once_with(
            "user-1", contract_repo.list_created_since.return_value, NOON_UTC
        )
        contract_repo.list_for_user.assert_not_called()


class TestSessionUser:
    """Test resolving the signed-in worker user"""

    def test_session_user_id(self):
        client = Mock()
        client.auth.get_user.return_value = Mock(user=Mock(id="user-1"))

        assert SupabaseSessionUser(client)() == "user-1"

    def test_signed_out(self):
        client = Mock()
        client.auth.get_user.return_value = None

        assert SupabaseSessionUser(client)() is None

    def test_auth_error_means_no_user(self):
        client = Mock()
        client.auth.get_user.side_effect = RuntimeError("session expired")

        assert SupabaseSessionUser(client)() is None

    def test_sign_in(self):
        client = Mock()
        client.auth.sign_in_with_password.return_value = Mock(user=Mock(id="worker"))

        assert SupabaseSessionUser(client).sign_in("ops@example.com", "secret") == "worker"
        client.auth.sign_in_with_password.assert_called_once_with(
            {"email": "ops@example.com", "password": "secret"}
        )
