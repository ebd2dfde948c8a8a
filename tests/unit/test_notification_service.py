"""
Unit tests for the notification store and delivery pipeline.

Tests cover:
- Scheduling, listing and cancelling notifications
- Dispatching due notifications in trigger order
- Preference suppression and its metrics
- History and daily count bookkeeping after delivery
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from notifier.src.catalog.notification_types import NotificationPriority, NotificationType
from notifier.src.models.notification import NotificationContent
from notifier.src.services.notification_service import NotificationChannel, NotificationService
from notifier.src.services.preferences_service import SUPPRESS_QUIET_HOURS

NOW = datetime(2025, 6, 1, 6, 0, tzinfo=timezone.utc)


def content(contract_id="c-1", body="Reminder"):
    return NotificationContent(body=body, data={"contractId": contract_id})


class TestScheduledStore:
    """Test the in-process schedule"""

    def test_schedule_sets_localized_title(self, notification_service):
        identifier = notification_service.schedule_notification_by_type(
            "user-1", NotificationType.PICKUP_3H, content(), NOW + timedelta(hours=1)
        )

        scheduled = notification_service.get_scheduled()
        assert len(scheduled) == 1
        assert scheduled[0].identifier == identifier
        assert scheduled[0].title == "Pickup Today"
        assert scheduled[0].type == "pickup_3h"

    def test_get_scheduled_sorted_and_filtered(self, notification_service):
        notification_service.schedule_notification_by_type(
            "user-1", NotificationType.RETURN_1D, content(), NOW + timedelta(days=2)
        )
        notification_service.schedule_notification_by_type(
            "user-2", NotificationType.PICKUP_24H, content(), NOW + timedelta(days=1)
        )
        notification_service.schedule_notification_by_type(
            "user-1", NotificationType.PICKUP_3H, content(), NOW + timedelta(hours=3)
        )

        assert [n.type for n in notification_service.get_scheduled()] == ["pickup_3h", "pickup_24h", "return_1d"]
        assert [n.type for n in notification_service.get_scheduled(user_id="user-1")] == ["pickup_3h", "return_1d"]

    def test_cancel_by_data(self, notification_service, registry):
        notification_service.schedule_notification_by_type(
            "user-1", NotificationType.PICKUP_3H, content("c-1"), NOW + timedelta(hours=1)
        )
        notification_service.schedule_notification_by_type(
            "user-1", NotificationType.PICKUP_3H, content("c-2"), NOW + timedelta(hours=1)
        )

        assert notification_service.cancel_by_data("contractId", "c-1") == 1
        assert [n.contract_id for n in notification_service.get_scheduled()] == ["c-2"]
        assert registry.get_sample_value(
            "fleetos_notifications_cancelled_total", {"type": "pickup_3h"}
        ) == 1.0
        assert registry.get_sample_value("fleetos_scheduled_notifications") == 1.0

    def test_cancel_all(self, notification_service):
        for offset in range(3):
            notification_service.schedule_notification_by_type(
                "user-1", NotificationType.PICKUP_3H, content(), NOW + timedelta(hours=offset + 1)
            )

        assert notification_service.cancel_all() == 3
        assert notification_service.get_scheduled() == []


class TestDispatch:
    """Test delivery of due notifications"""

    def test_only_due_notifications_delivered(self, notification_service, history_service):
        notification_service.schedule_notification_by_type(
            "user-1", NotificationType.PICKUP_3H, content(body="due"), NOW - timedelta(minutes=1)
        )
        notification_service.schedule_notification_by_type(
            "user-1", NotificationType.PICKUP_30MIN, content(body="later"), NOW + timedelta(minutes=1)
        )

        assert notification_service.dispatch_due(NOW) == 1

        history_service.save_notification.assert_called_once()
        assert history_service.save_notification.call_args.args[3] == "due"
        assert [n.body for n in notification_service.get_scheduled()] == ["later"]

    def test_trigger_equal_to_now_is_due(self, notification_service):
        notification_service.schedule_notification_by_type(
            "user-1", NotificationType.PICKUP_3H, content(), NOW
        )
        assert notification_service.dispatch_due(NOW) == 1

    def test_dispatched_in_trigger_order(self, preferences_service, history_service, metrics):
        channel = Mock(spec=NotificationChannel)
        channel.name = "mock"
        service = NotificationService(preferences_service, history_service, metrics, channels=[channel])
        service.schedule_notification_by_type("user-1", NotificationType.RETURN_3H, content(body="second"), NOW - timedelta(minutes=5))
        service.schedule_notification_by_type("user-1", NotificationType.PICKUP_3H, content(body="first"), NOW - timedelta(hours=1))

        service.dispatch_due(NOW)

        assert [c.args[0].body for c in channel.send.call_args_list] == ["first", "second"]

    def test_suppressed_notification_is_dropped(self, notification_service, preferences_service, history_service, registry):
        preferences_service.check_notification.return_value = SUPPRESS_QUIET_HOURS
        notification_service.schedule_notification_by_type(
            "user-1", NotificationType.PICKUP_3H, content(), NOW - timedelta(minutes=1)
        )

        assert notification_service.dispatch_due(NOW) == 0

        # Suppressed notifications are not kept for a later retry
        assert notification_service.get_scheduled() == []
        history_service.save_notification.assert_not_called()
        preferences_service.increment_daily_count.assert_not_called()
        assert registry.get_sample_value(
            "fleetos_notifications_suppressed_total", {"type": "pickup_3h", "reason": "quiet_hours"}
        ) == 1.0
        assert registry.get_sample_value(
            "fleetos_notifications_dispatched_total", {"type": "pickup_3h"}
        ) == 1.0


class TestDelivery:
    """Test immediate delivery"""

    def test_send_records_history_and_count(self, notification_service, preferences_service, history_service, registry):
        sent = notification_service.send_notification_by_type(
            "user-1",
            NotificationType.DOUBLE_BOOKING,
            NotificationContent(body="Double booking", data={"licensePlate": "ABC-123"}),
            NOW,
        )

        assert sent is True
        preferences_service.check_notification.assert_called_once_with(
            "user-1", NotificationType.DOUBLE_BOOKING, NotificationPriority.CRITICAL, NOW
        )
        history_service.save_notification.assert_called_once_with(
            "user-1", "double_booking", "🚨 Double Booking!", "Double booking", {"licensePlate": "ABC-123"}
        )
        preferences_service.increment_daily_count.assert_called_once_with("user-1", NOW)
        assert registry.get_sample_value(
            "fleetos_notifications_sent_total", {"type": "double_booking", "priority": "critical"}
        ) == 1.0

    def test_send_without_user_skips_bookkeeping(self, notification_service, preferences_service, history_service):
        assert notification_service.send_notification_by_type(
            None, NotificationType.PERFECT_WEEK, NotificationContent(body="Well done"), NOW
        ) is True

        preferences_service.check_notification.assert_not_called()
        history_service.save_notification.assert_not_called()

    def test_failing_channel_does_not_block_others(self, preferences_service, history_service, metrics):
        broken = Mock(spec=NotificationChannel)
        broken.name = "broken"
        broken.send.side_effect = RuntimeError("push gateway down")
        working = Mock(spec=NotificationChannel)
        working.name = "working"
        service = NotificationService(preferences_service, history_service, metrics, channels=[broken, working])

        assert service.send_notification_by_type(
            "user-1", NotificationType.PICKUP_3H, NotificationContent(body="Pickup"), NOW
        ) is True
        working.send.assert_called_once()
        history_service.save_notification.assert_called_once()
