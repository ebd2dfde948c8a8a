"""Notification catalog: types, priorities, titles and message templates."""

from .notification_types import (
    DEFAULT_NOTIFICATION_PREFERENCES,
    NOTIFICATION_CONFIGS,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    NotificationTypeConfig,
    get_notification_config,
)
from .messages import render_message

__all__ = [
    "DEFAULT_NOTIFICATION_PREFERENCES",
    "NOTIFICATION_CONFIGS",
    "NotificationCategory",
    "NotificationPriority",
    "NotificationType",
    "NotificationTypeConfig",
    "get_notification_config",
    "render_message",
]
