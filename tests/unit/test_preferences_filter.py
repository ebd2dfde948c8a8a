"""
Unit tests for notification preferences and the delivery filter.

Tests cover:
- Quiet hours windows, including windows that cross midnight
- Filter order: critical-only, type, category, quiet hours, daily limit
- Critical notifications bypassing quiet hours and the daily limit
- Default preference creation and backend failures
- Export and import of preferences
"""

import json
from datetime import date, datetime, timezone
from unittest.mock import Mock

import pytest

from notifier.src.catalog.notification_types import (
    ALL_NOTIFICATION_TYPES,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    get_notification_config,
)
from notifier.src.repositories.base import RepositoryError
from notifier.src.repositories.notification_repo import DailyCountRepository, PreferencesRepository
from notifier.src.services.preferences_service import (
    SUPPRESS_CATEGORY_DISABLED,
    SUPPRESS_CRITICAL_ONLY,
    SUPPRESS_DAILY_LIMIT,
    SUPPRESS_QUIET_HOURS,
    SUPPRESS_TYPE_DISABLED,
    PreferencesService,
    is_in_quiet_hours,
)

USER = "user-1"

# 12:00 in Athens (UTC+3 in summer)
NOON_ATHENS = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)
# 23:30 in Athens
LATE_ATHENS = datetime(2025, 6, 1, 20, 30, tzinfo=timezone.utc)


def preference_row(**overrides):
    row = {
        "id": "pref-1",
        "user_id": USER,
        "enabled_types": list(ALL_NOTIFICATION_TYPES),
        "quiet_hours_enabled": True,
        "quiet_hours_start": "22:00:00",
        "quiet_hours_end": "07:00:00",
        "critical_only_mode": False,
        "max_daily_notifications": 10,
        "timezone": "Europe/Athens",
        "enable_contract_notifications": True,
        "enable_maintenance_notifications": True,
        "enable_financial_notifications": True,
        "enable_operational_notifications": True,
        "enable_milestone_notifications": True,
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": None,
    }
    row.update(overrides)
    return row


class TestQuietHours:
    """Test quiet hours window evaluation"""

    @pytest.mark.parametrize("current,expected", [
        ("23:00", True),
        ("02:30", True),
        ("06:59", True),
        ("07:00", False),
        ("12:00", False),
        ("21:59", False),
        ("22:00", True),
    ])
    def test_window_crossing_midnight(self, current, expected):
        assert is_in_quiet_hours(current, "22:00", "07:00") is expected

    @pytest.mark.parametrize("current,expected", [
        ("13:00", True),
        ("14:59", True),
        ("15:00", False),
        ("12:59", False),
    ])
    def test_same_day_window(self, current, expected):
        assert is_in_quiet_hours(current, "13:00", "15:00") is expected


class TestDeliveryFilter:
    """Test the preference filter applied before delivery"""

    @pytest.fixture
    def preferences_repo(self):
        repo = Mock(spec=PreferencesRepository)
        repo.get.return_value = preference_row()
        return repo

    @pytest.fixture
    def daily_count_repo(self):
        repo = Mock(spec=DailyCountRepository)
        repo.get.return_value = {"id": "count-1", "count": 0}
        return repo

    @pytest.fixture
    def service(self, preferences_repo, daily_count_repo):
        return PreferencesService(preferences_repo, daily_count_repo, default_timezone="Europe/Athens")

    def check(self, service, notification_type, now=NOON_ATHENS):
        priority = get_notification_config(notification_type).priority
        return service.check_notification(USER, notification_type, priority, now)

    def test_allows_by_default(self, service):
        assert self.check(service, NotificationType.PICKUP_3H) is None
        assert service.should_send_notification(
            USER, NotificationType.PICKUP_3H, NotificationPriority.HIGH, NOON_ATHENS
        ) is True

    def test_critical_only_mode(self, service, preferences_repo):
        preferences_repo.get.return_value = preference_row(critical_only_mode=True)

        assert self.check(service, NotificationType.PICKUP_3H) == SUPPRESS_CRITICAL_ONLY
        assert self.check(service, NotificationType.DOUBLE_BOOKING) is None

    def test_disabled_type(self, service, preferences_repo):
        enabled = [t for t in ALL_NOTIFICATION_TYPES if t != "pickup_3h"]
        preferences_repo.get.return_value = preference_row(enabled_types=enabled)

        assert self.check(service, NotificationType.PICKUP_3H) == SUPPRESS_TYPE_DISABLED
        assert self.check(service, NotificationType.PICKUP_24H) is None

    def test_disabled_type_applies_to_critical(self, service, preferences_repo):
        """Test that an explicitly disabled type is never sent"""
        enabled = [t for t in ALL_NOTIFICATION_TYPES if t != "double_booking"]
        preferences_repo.get.return_value = preference_row(enabled_types=enabled)

        assert self.check(service, NotificationType.DOUBLE_BOOKING) == SUPPRESS_TYPE_DISABLED

    def test_disabled_category(self, service, preferences_repo):
        preferences_repo.get.return_value = preference_row(enable_maintenance_notifications=False)

        assert self.check(service, NotificationType.KTEO_30D) == SUPPRESS_CATEGORY_DISABLED
        # KTEO expiry is an alert and has no category switch
        assert self.check(service, NotificationType.KTEO_EXPIRED) is None

    def test_quiet_hours_suppress_non_critical(self, service):
        assert self.check(service, NotificationType.GAP_OPPORTUNITY, LATE_ATHENS) == SUPPRESS_QUIET_HOURS

    def test_quiet_hours_use_user_timezone(self, service):
        """Test that 20:30 UTC is 23:30 in Athens"""
        assert self.check(service, NotificationType.PICKUP_3H, LATE_ATHENS) == SUPPRESS_QUIET_HOURS

    def test_critical_bypasses_quiet_hours(self, service):
        assert self.check(service, NotificationType.RETURN_OVERDUE, LATE_ATHENS) is None

    def test_quiet_hours_disabled(self, service, preferences_repo):
        preferences_repo.get.return_value = preference_row(quiet_hours_enabled=False)
        assert self.check(service, NotificationType.GAP_OPPORTUNITY, LATE_ATHENS) is None

    def test_daily_limit(self, service, daily_count_repo):
        daily_count_repo.get.return_value = {"id": "count-1", "count": 10}

        assert self.check(service, NotificationType.PICKUP_3H) == SUPPRESS_DAILY_LIMIT
        assert self.check(service, NotificationType.DOUBLE_BOOKING) is None

    def test_daily_limit_uses_local_date(self, service, preferences_repo, daily_count_repo):
        """Test that 22:30 UTC on June 1 counts against June 2 in Athens"""
        preferences_repo.get.return_value = preference_row(quiet_hours_enabled=False)

        self.check(service, NotificationType.PICKUP_3H, datetime(2025, 6, 1, 22, 30, tzinfo=timezone.utc))

        daily_count_repo.get.assert_called_once_with(USER, date(2025, 6, 2))

    def test_zero_limit_means_unlimited(self, service, preferences_repo, daily_count_repo):
        preferences_repo.get.return_value = preference_row(max_daily_notifications=0)
        daily_count_repo.get.return_value = {"id": "count-1", "count": 500}

        assert self.check(service, NotificationType.PICKUP_3H) is None

    def test_preferences_unavailable_allows(self, service, preferences_repo):
        """Test that a backend failure never blocks delivery"""
        preferences_repo.get.side_effect = RepositoryError("get_preferences", "connection refused")

        assert self.check(service, NotificationType.PICKUP_3H, LATE_ATHENS) is None


class TestPreferencesCrud:
    """Test reading and writing preferences"""

    @pytest.fixture
    def preferences_repo(self):
        return Mock(spec=PreferencesRepository)

    @pytest.fixture
    def service(self, preferences_repo):
        return PreferencesService(preferences_repo, Mock(spec=DailyCountRepository))

    def test_creates_defaults_when_missing(self, service, preferences_repo):
        preferences_repo.get.return_value = None
        preferences_repo.insert.side_effect = lambda row: {"id": "new", **row}

        preferences = service.get_preferences(USER)

        assert preferences.user_id == USER
        assert preferences.id == "new"
        assert preferences.quiet_hours_start == "22:00"
        inserted = preferences_repo.insert.call_args[0][0]
        assert "id" not in inserted
        assert inserted["enabled_types"] == ALL_NOTIFICATION_TYPES

    def test_quiet_hours_normalized_from_time_column(self, service, preferences_repo):
        preferences_repo.get.return_value = preference_row(quiet_hours_start="23:15:00")
        assert service.get_preferences(USER).quiet_hours_start == "23:15"

    def test_get_returns_none_on_backend_failure(self, service, preferences_repo):
        preferences_repo.get.side_effect = RepositoryError("get_preferences", "boom")
        assert service.get_preferences(USER) is None

    def test_toggle_type_off_and_on(self, service, preferences_repo):
        preferences_repo.get.return_value = preference_row()
        preferences_repo.update.return_value = preference_row()

        assert service.toggle_notification_type(USER, NotificationType.GAP_OPPORTUNITY, False) is True
        updates = preferences_repo.update.call_args[0][1]
        assert "gap_opportunity" not in updates["enabled_types"]

        preferences_repo.get.return_value = preference_row(enabled_types=updates["enabled_types"])
        service.toggle_notification_type(USER, "gap_opportunity", True)
        assert "gap_opportunity" in preferences_repo.update.call_args[0][1]["enabled_types"]

    def test_toggle_category(self, service, preferences_repo):
        preferences_repo.update.return_value = preference_row()

        assert service.toggle_category(USER, NotificationCategory.FINANCIAL, False) is True
        preferences_repo.update.assert_called_once_with(USER, {"enable_financial_notifications": False})

    def test_alert_category_cannot_be_toggled(self, service):
        with pytest.raises(ValueError):
            service.toggle_category(USER, NotificationCategory.ALERT, False)

    def test_set_quiet_hours_validates(self, service, preferences_repo):
        preferences_repo.update.return_value = preference_row()

        assert service.set_quiet_hours(USER, True, "23:00", "6:30") is True
        preferences_repo.update.assert_called_once_with(
            USER, {"quiet_hours_enabled": True, "quiet_hours_start": "23:00", "quiet_hours_end": "06:30"}
        )

        with pytest.raises(ValueError):
            service.set_quiet_hours(USER, True, "25:00", None)

    def test_update_failure_returns_false(self, service, preferences_repo):
        preferences_repo.update.side_effect = RepositoryError("update_preferences", "boom")
        assert service.update_preferences(USER, {"critical_only_mode": True}) is False


class TestExportImport:
    """Test preference export and import"""

    @pytest.fixture
    def preferences_repo(self):
        repo = Mock(spec=PreferencesRepository)
        repo.get.return_value = preference_row(max_daily_notifications=25)
        repo.update.return_value = preference_row()
        return repo

    @pytest.fixture
    def service(self, preferences_repo):
        return PreferencesService(preferences_repo, Mock(spec=DailyCountRepository))

    def test_export_is_indented_json(self, service):
        exported = service.export_preferences(USER)

        assert exported.startswith("{\n  ")
        data = json.loads(exported)
        assert data["max_daily_notifications"] == 25
        assert data["user_id"] == USER

    def test_import_ignores_identity_columns(self, service, preferences_repo):
        payload = json.dumps({
            "id": "other",
            "user_id": "someone-else",
            "created_at": "2020-01-01T00:00:00Z",
            "updated_at": "2020-01-01T00:00:00Z",
            "max_daily_notifications": 5,
            "critical_only_mode": True,
            "unknown_column": 1,
        })

        assert service.import_preferences(USER, payload) is True
        user_id, updates = preferences_repo.update.call_args[0]
        assert user_id == USER
        assert updates == {"max_daily_notifications": 5, "critical_only_mode": True}

    def test_export_then_import(self, service, preferences_repo):
        assert service.import_preferences(USER, service.export_preferences(USER)) is True
        updates = preferences_repo.update.call_args[0][1]
        assert updates["max_daily_notifications"] == 25
        assert not {"id", "user_id", "created_at", "updated_at"} & set(updates)

    @pytest.mark.parametrize("payload", ["not json", "[1, 2]", '{"quiet_hours_start": "99:99"}'])
    def test_invalid_payload_rejected(self, service, preferences_repo, payload):
        assert service.import_preferences(USER, payload) is False
        preferences_repo.update.assert_not_called()
