"""
Notification scheduling and delivery.

Scheduled notifications live in an in-process store until their trigger
time; the background loop calls ``dispatch_due`` to deliver those that are
due. Delivery runs the preference filter, hands the notification to the
configured channels, records it in history and bumps the daily count.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog

from shared.metrics import NotificationMetrics

from ..catalog.notification_types import NotificationType, NotificationTypeConfig, get_notification_config
from ..models.notification import NotificationContent, ScheduledNotification
from .history_service import HistoryService
from .preferences_service import PreferencesService

logger = structlog.get_logger(__name__)


class NotificationChannel:
    """A delivery target for notifications that passed the preference filter."""

    name = "base"

    def send(self, notification: ScheduledNotification, config: NotificationTypeConfig) -> None:
        raise NotImplementedError


class LoggingChannel(NotificationChannel):
    """Writes delivered notifications to the structured log."""

    name = "log"

    def send(self, notification: ScheduledNotification, config: NotificationTypeConfig) -> None:
        logger.info(
            "notification_delivered",
            identifier=notification.identifier,
            user_id=notification.user_id,
            notification_type=notification.type,
            priority=config.priority.value,
            title=notification.title,
            body=notification.body,
            sound=config.sound_enabled,
            vibration=config.vibration_enabled,
        )


class NotificationService:
    """Owns the scheduled-notification store and the delivery pipeline."""

    def __init__(
        self,
        preferences_service: PreferencesService,
        history_service: HistoryService,
        metrics: NotificationMetrics,
        channels: Optional[Sequence[NotificationChannel]] = None,
        language: str = "el",
    ):
        """
        Initialize notification service.

        Args:
            preferences_service: Preference filter and daily count
            history_service: History writer
            metrics: Prometheus metrics
            channels: Delivery channels (defaults to the logging channel)
            language: Title language, "el" or "en"
        """
        self.preferences_service = preferences_service
        self.history_service = history_service
        self.metrics = metrics
        self.channels: List[NotificationChannel] = list(channels) if channels else [LoggingChannel()]
        self.language = language

        self._scheduled: Dict[str, ScheduledNotification] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Scheduled store
    # ------------------------------------------------------------------

    def _update_queue_gauge(self) -> None:
        self.metrics.scheduled_queue_size.set(len(self._scheduled))

    def schedule_notification_by_type(
        self,
        user_id: Optional[str],
        notification_type: NotificationType,
        content: NotificationContent,
        trigger_at: datetime,
    ) -> str:
        """
        Register a notification for delivery at ``trigger_at``.

        Args:
            user_id: Recipient user ID
            notification_type: Notification type, used for title and priority
            content: Body and data payload
            trigger_at: Aware delivery instant

        Returns:
            Identifier of the scheduled notification
        """
        config = get_notification_config(notification_type)
        notification = ScheduledNotification(
            user_id=user_id,
            type=config.type,
            title=config.localized_title(self.language),
            body=content.body,
            data=content.data,
            trigger_at=trigger_at,
        )

        with self._lock:
            self._scheduled[notification.identifier] = notification
            self._update_queue_gauge()

        self.metrics.notifications_scheduled.labels(type=config.type.value).inc()
        logger.debug(
            "notification_scheduled",
            identifier=notification.identifier,
            notification_type=config.type.value,
            trigger_at=trigger_at.isoformat(),
        )
        return notification.identifier

    def get_scheduled(self, user_id: Optional[str] = None) -> List[ScheduledNotification]:
        """List scheduled notifications ordered by trigger time, optionally for one user."""
        with self._lock:
            items = list(self._scheduled.values())
        if user_id is not None:
            items = [n for n in items if n.user_id == user_id]
        return sorted(items, key=lambda n: n.trigger_at)

    def cancel_where(self, predicate: Callable[[ScheduledNotification], bool]) -> int:
        """
        Cancel every scheduled notification matching a predicate.

        Returns:
            Number of cancelled notifications
        """
        with self._lock:
            matched = [n for n in self._scheduled.values() if predicate(n)]
            for notification in matched:
                del self._scheduled[notification.identifier]
            self._update_queue_gauge()

        for notification in matched:
            self.metrics.notifications_cancelled.labels(type=notification.type).inc()
        return len(matched)

    def cancel_by_data(self, key: str, value: Any) -> int:
        """Cancel scheduled notifications whose data payload has ``key == value``."""
        return self.cancel_where(lambda n: n.data.get(key) == value)

    def cancel_all(self) -> int:
        return self.cancel_where(lambda n: True)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def deliver(self, notification: ScheduledNotification, now: Optional[datetime] = None) -> bool:
        """
        Deliver a notification if the recipient's preferences allow it.

        Args:
            notification: Notification to deliver
            now: Current instant for quiet hours and daily count

        Returns:
            True if the notification was delivered
        """
        config = get_notification_config(notification.type)
        type_value = config.type.value

        if notification.user_id:
            reason = self.preferences_service.check_notification(
                notification.user_id, config.type, config.priority, now
            )
            if reason is not None:
                self.metrics.notifications_suppressed.labels(type=type_value, reason=reason).inc()
                logger.info(
                    "notification_suppressed",
                    identifier=notification.identifier,
                    user_id=notification.user_id,
                    notification_type=type_value,
                    reason=reason,
                )
                return False

        for channel in self.channels:
            try:
                channel.send(notification, config)
            except Exception as e:
                logger.error(
                    "channel_delivery_failed",
                    channel=channel.name,
                    identifier=notification.identifier,
                    error=str(e),
                )

        self.metrics.notifications_sent.labels(type=type_value, priority=config.priority.value).inc()

        if notification.user_id:
            # History and count failures are logged by the services and never undo delivery
            self.history_service.save_notification(
                notification.user_id,
                type_value,
                notification.title,
                notification.body,
                notification.data,
            )
            self.preferences_service.increment_daily_count(notification.user_id, now)

        return True

    def send_notification_by_type(
        self,
        user_id: Optional[str],
        notification_type: NotificationType,
        content: NotificationContent,
        now: Optional[datetime] = None,
    ) -> bool:
        """Deliver a notification immediately."""
        config = get_notification_config(notification_type)
        notification = ScheduledNotification(
            user_id=user_id,
            type=config.type,
            title=config.localized_title(self.language),
            body=content.body,
            data=content.data,
            trigger_at=now or datetime.now(timezone.utc),
        )
        return self.deliver(notification, now)

    def dispatch_due(self, now: Optional[datetime] = None) -> int:
        """
        Deliver every scheduled notification whose trigger time has passed.

        Args:
            now: Current instant (defaults to now, UTC)

        Returns:
            Number of notifications delivered
        """
        now = now or datetime.now(timezone.utc)

        with self._lock:
            due = [n for n in self._scheduled.values() if n.trigger_at <= now]
            for notification in due:
                del self._scheduled[notification.identifier]
            self._update_queue_gauge()

        delivered = 0
        for notification in sorted(due, key=lambda n: n.trigger_at):
            self.metrics.notifications_dispatched.labels(type=notification.type).inc()
            if self.deliver(notification, now):
                delivered += 1

        if due:
            logger.info("scheduled_notifications_dispatched", due=len(due), delivered=delivered)
        return delivered
