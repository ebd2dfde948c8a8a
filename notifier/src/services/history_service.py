"""Delivered-notification history."""

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from ..catalog.notification_types import NOTIFICATION_CONFIGS, NotificationType
from ..models.notification import NotificationHistoryEntry
from ..repositories.base import RepositoryError
from ..repositories.notification_repo import HistoryRepository

logger = structlog.get_logger(__name__)

DEFAULT_EMOJI = "📢"
DEFAULT_CATEGORY = "operational"
DEFAULT_PRIORITY = "medium"


def enrich_with_config(entry: NotificationHistoryEntry) -> NotificationHistoryEntry:
    """Fill emoji, category and priority from the catalog, with fallbacks for unknown types."""
    try:
        config = NOTIFICATION_CONFIGS.get(NotificationType(entry.notification_type))
    except ValueError:
        config = None

    return entry.model_copy(
        update={
            "emoji": config.emoji if config else DEFAULT_EMOJI,
            "category": config.category.value if config else DEFAULT_CATEGORY,
            "priority": config.priority.value if config else DEFAULT_PRIORITY,
        }
    )


class HistoryService:
    """Records delivered notifications and serves the notification inbox."""

    def __init__(self, history_repo: HistoryRepository):
        self.history_repo = history_repo

    def save_notification(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[NotificationHistoryEntry]:
        """
        Save a delivered notification.

        Contract and vehicle references are taken from the data payload.

        Returns:
            The stored entry, or None if it could not be written
        """
        data = data or {}
        row = {
            "user_id": user_id,
            "notification_type": notification_type,
            "title": title,
            "body": body,
            "data": data,
            "contract_id": data.get("contractId"),
            "vehicle_id": data.get("vehicleId"),
        }
        try:
            stored = self.history_repo.insert(row)
        except RepositoryError as e:
            logger.error("save_history_failed", user_id=user_id, notification_type=notification_type, error=str(e))
            return None

        return NotificationHistoryEntry.from_row(stored) if stored else None

    def get_history(self, user_id: str, limit: Optional[int] = None) -> List[NotificationHistoryEntry]:
        """Get the notifications of a user, newest first, enriched with catalog details."""
        try:
            rows = self.history_repo.list_for_user(user_id, limit=limit)
        except RepositoryError as e:
            logger.error("get_history_failed", user_id=user_id, error=str(e))
            return []

        entries = []
        for row in rows:
            try:
                entries.append(enrich_with_config(NotificationHistoryEntry.from_row(row)))
            except (ValidationError, KeyError) as e:
                logger.warning("history_row_skipped", row_id=row.get("id"), error=str(e))
        return entries

    def get_unread_count(self, user_id: str) -> int:
        try:
            return self.history_repo.count_unread(user_id)
        except RepositoryError as e:
            logger.error("get_unread_count_failed", user_id=user_id, error=str(e))
            return 0

    def mark_as_read(self, user_id: str, notification_id: str) -> bool:
        try:
            return self.history_repo.mark_read(user_id, notification_id)
        except RepositoryError as e:
            logger.error("mark_as_read_failed", notification_id=notification_id, error=str(e))
            return False

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of a user as read. Returns the number updated."""
        try:
            updated = self.history_repo.mark_all_read(user_id)
        except RepositoryError as e:
            logger.error("mark_all_as_read_failed", user_id=user_id, error=str(e))
            return 0
        logger.info("notifications_marked_read", user_id=user_id, count=updated)
        return updated

    def delete_notification(self, user_id: str, notification_id: str) -> bool:
        try:
            return self.history_repo.delete(user_id, notification_id)
        except RepositoryError as e:
            logger.error("delete_notification_failed", notification_id=notification_id, error=str(e))
            return False

    def delete_all_read(self, user_id: str) -> int:
        try:
            deleted = self.history_repo.delete_read(user_id)
        except RepositoryError as e:
            logger.error("delete_all_read_failed", user_id=user_id, error=str(e))
            return 0
        logger.info("read_notifications_deleted", user_id=user_id, count=deleted)
        return deleted
