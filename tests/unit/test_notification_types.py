"""
Unit tests for the notification catalog.

Tests cover:
- Completeness of the per-type configuration
- Priority and category assignments the delivery filter relies on
- Localized titles and message templates
"""

import pytest

from notifier.src.catalog.messages import (
    INSURANCE_EXPIRED_DAYS,
    MESSAGES,
    RETURN_OVERDUE_HOURS,
    render_message,
)
from notifier.src.catalog.notification_types import (
    ALL_NOTIFICATION_TYPES,
    CATEGORY_PREFERENCE_COLUMNS,
    DEFAULT_NOTIFICATION_PREFERENCES,
    NOTIFICATION_CONFIGS,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    get_notification_config,
)


class TestNotificationConfigs:
    """Test the per-type configuration table"""

    def test_every_type_has_a_config(self):
        """Test that no type is missing from the catalog"""
        assert set(NOTIFICATION_CONFIGS) == set(NotificationType)

    def test_config_type_matches_key(self):
        for notification_type, config in NOTIFICATION_CONFIGS.items():
            assert config.type is notification_type

    @pytest.mark.parametrize("notification_type", [
        NotificationType.RETURN_OVERDUE,
        NotificationType.KTEO_EXPIRED,
        NotificationType.KTEO_OVERDUE,
        NotificationType.INSURANCE_EXPIRED,
        NotificationType.DOUBLE_BOOKING,
        NotificationType.MAINTENANCE_DURING_RENTAL,
        NotificationType.DAMAGE_REPORTED,
    ])
    def test_urgent_types_are_critical(self, notification_type):
        """Test that fleet emergencies bypass quiet hours and caps"""
        assert get_notification_config(notification_type).priority == NotificationPriority.CRITICAL

    def test_pickup_reminders_are_contract_category(self):
        for notification_type in (NotificationType.PICKUP_24H, NotificationType.PICKUP_3H, NotificationType.PICKUP_30MIN):
            assert get_notification_config(notification_type).category == NotificationCategory.CONTRACT

    def test_lookup_by_string_value(self):
        config = get_notification_config("gap_opportunity")
        assert config.type == NotificationType.GAP_OPPORTUNITY
        assert config.priority == NotificationPriority.LOW

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            get_notification_config("not_a_type")

    def test_localized_title(self):
        config = get_notification_config(NotificationType.DOUBLE_BOOKING)
        assert config.localized_title("en") == "🚨 Double Booking!"
        assert config.localized_title("el") == "🚨 Διπλή Κράτηση!"
        # Unknown languages fall back to Greek
        assert config.localized_title("de") == config.title


class TestPreferenceDefaults:
    """Test catalog-level preference defaults"""

    def test_all_types_enabled_by_default(self):
        assert DEFAULT_NOTIFICATION_PREFERENCES["enabled_types"] == ALL_NOTIFICATION_TYPES
        assert len(ALL_NOTIFICATION_TYPES) == len(NotificationType)

    def test_default_quiet_hours(self):
        assert DEFAULT_NOTIFICATION_PREFERENCES["quiet_hours_start"] == "22:00"
        assert DEFAULT_NOTIFICATION_PREFERENCES["quiet_hours_end"] == "07:00"
        assert DEFAULT_NOTIFICATION_PREFERENCES["max_daily_notifications"] == 10

    def test_alert_category_has_no_switch(self):
        """Test that alerts cannot be muted by category"""
        assert NotificationCategory.ALERT not in CATEGORY_PREFERENCE_COLUMNS
        assert len(CATEGORY_PREFERENCE_COLUMNS) == len(NotificationCategory) - 1


class TestMessages:
    """Test message templates"""

    def test_languages_have_the_same_templates(self):
        assert set(MESSAGES["el"]) == set(MESSAGES["en"])

    def test_render_pickup_reminder(self):
        body = render_message(
            NotificationType.PICKUP_24H, "en", plate="ABC-123", customer="Nikos", time="10:00"
        )
        assert body == "Prepare vehicle ABC-123 for pickup by Nikos tomorrow at 10:00"

    def test_render_by_string_key(self):
        """Test that plain string keys reach enum-keyed templates"""
        body = render_message("service_due", "en", plate="ABC-123", km=300)
        assert body == "ABC-123 needs service in 300 km"

    def test_render_variants(self):
        assert render_message(RETURN_OVERDUE_HOURS, "en", plate="ABC-123", hours=5) == (
            "Vehicle ABC-123 was not returned! Delay: 5 hours"
        )
        assert "12" in render_message(INSURANCE_EXPIRED_DAYS, "el", plate="ABC-123", days=12)

    def test_unknown_language_falls_back_to_greek(self):
        assert render_message(NotificationType.PERFECT_WEEK, "fr") == MESSAGES["el"][NotificationType.PERFECT_WEEK]

    def test_missing_placeholder_raises(self):
        with pytest.raises(KeyError):
            render_message(NotificationType.PICKUP_3H, "en", plate="ABC-123")
