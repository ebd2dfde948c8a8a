"""Notification services: preferences, history, scheduling and delivery."""

from .history_service import HistoryService
from .notification_service import LoggingChannel, NotificationChannel, NotificationService
from .preferences_service import PreferencesService

__all__ = [
    "HistoryService",
    "LoggingChannel",
    "NotificationChannel",
    "NotificationService",
    "PreferencesService",
]
