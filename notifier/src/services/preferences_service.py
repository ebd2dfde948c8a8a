"""
User notification preferences and the delivery filter built on them.

The filter decides, per notification, whether it may be delivered now:
critical-only mode, enabled types, category switches, quiet hours and the
daily ceiling. Critical notifications bypass quiet hours and the ceiling.
When preferences cannot be read the notification is sent.
"""

import json
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from pydantic import ValidationError

from ..catalog.notification_types import (
    CATEGORY_PREFERENCE_COLUMNS,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    get_notification_config,
)
from ..models.notification import NotificationPreferences, validate_hhmm
from ..repositories.base import RepositoryError
from ..repositories.notification_repo import DailyCountRepository, PreferencesRepository

logger = structlog.get_logger(__name__)

# Columns an import may not overwrite
PROTECTED_COLUMNS = {"id", "user_id", "created_at", "updated_at"}

SUPPRESS_CRITICAL_ONLY = "critical_only"
SUPPRESS_TYPE_DISABLED = "type_disabled"
SUPPRESS_CATEGORY_DISABLED = "category_disabled"
SUPPRESS_QUIET_HOURS = "quiet_hours"
SUPPRESS_DAILY_LIMIT = "daily_limit"


def is_in_quiet_hours(current: str, start: str, end: str) -> bool:
    """
    Check whether a "HH:MM" time falls inside a quiet-hours window.

    When start > end the window crosses midnight.

    Args:
        current: Current local time as "HH:MM"
        start: Window start as "HH:MM"
        end: Window end as "HH:MM"

    Returns:
        True if current is inside [start, end)
    """
    if start > end:
        return current >= start or current < end
    return start <= current < end


def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown_timezone", timezone=tz_name)
        return ZoneInfo("UTC")


class PreferencesService:
    """Reads and updates preferences, and filters notifications against them."""

    def __init__(
        self,
        preferences_repo: PreferencesRepository,
        daily_count_repo: DailyCountRepository,
        default_timezone: str = "Europe/Athens",
    ):
        """
        Initialize preferences service.

        Args:
            preferences_repo: Repository for ``notification_preferences``
            daily_count_repo: Repository for ``notification_daily_count``
            default_timezone: Timezone for users without preferences
        """
        self.preferences_repo = preferences_repo
        self.daily_count_repo = daily_count_repo
        self.default_timezone = default_timezone
        self._user_timezones: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Preferences CRUD
    # ------------------------------------------------------------------

    def get_preferences(self, user_id: str) -> Optional[NotificationPreferences]:
        """
        Get the preferences of a user, creating defaults if none exist.

        Args:
            user_id: User ID

        Returns:
            Preferences, or None if the backend failed
        """
        try:
            row = self.preferences_repo.get(user_id)
            if row is None:
                return self.create_default_preferences(user_id)
            preferences = NotificationPreferences.from_row(row)
        except RepositoryError as e:
            logger.error("get_preferences_failed", user_id=user_id, error=str(e))
            return None
        except ValidationError as e:
            logger.error("invalid_preferences_row", user_id=user_id, error=str(e))
            return None

        self._user_timezones[user_id] = preferences.timezone
        return preferences

    def create_default_preferences(self, user_id: str) -> Optional[NotificationPreferences]:
        """Insert a default preference row for a user."""
        defaults = NotificationPreferences(user_id=user_id)
        try:
            row = self.preferences_repo.insert(defaults.to_row())
        except RepositoryError as e:
            logger.error("create_default_preferences_failed", user_id=user_id, error=str(e))
            return None

        logger.info("default_preferences_created", user_id=user_id)
        return NotificationPreferences.from_row(row) if row else defaults

    def update_preferences(self, user_id: str, updates: Dict[str, Any]) -> bool:
        """
        Update preference columns of a user.

        Args:
            user_id: User ID
            updates: Column values to change

        Returns:
            True if the update was stored
        """
        try:
            row = self.preferences_repo.update(user_id, updates)
        except RepositoryError as e:
            logger.error("update_preferences_failed", user_id=user_id, error=str(e))
            return False

        if row is None:
            logger.warning("preferences_not_found_for_update", user_id=user_id)
            return False

        if "timezone" in updates:
            self._user_timezones[user_id] = updates["timezone"]
        logger.info("preferences_updated", user_id=user_id, columns=sorted(updates))
        return True

    def toggle_notification_type(self, user_id: str, notification_type: NotificationType, enabled: bool) -> bool:
        """Enable or disable a single notification type."""
        preferences = self.get_preferences(user_id)
        if preferences is None:
            return False

        type_value = NotificationType(notification_type).value
        enabled_types = [t for t in preferences.enabled_types if t != type_value]
        if enabled:
            enabled_types.append(type_value)

        return self.update_preferences(user_id, {"enabled_types": enabled_types})

    def toggle_category(self, user_id: str, category: NotificationCategory, enabled: bool) -> bool:
        """
        Enable or disable a whole category.

        Raises:
            ValueError: For categories without a switch (alerts)
        """
        column = CATEGORY_PREFERENCE_COLUMNS.get(NotificationCategory(category))
        if column is None:
            raise ValueError(f"category '{NotificationCategory(category).value}' cannot be disabled")
        return self.update_preferences(user_id, {column: enabled})

    def set_quiet_hours(
        self,
        user_id: str,
        enabled: bool,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> bool:
        """
        Configure quiet hours. Bounds left as None keep their stored value.

        Raises:
            ValueError: If a bound is not "HH:MM"
        """
        updates: Dict[str, Any] = {"quiet_hours_enabled": enabled}
        if start:
            updates["quiet_hours_start"] = validate_hhmm(start)
        if end:
            updates["quiet_hours_end"] = validate_hhmm(end)
        return self.update_preferences(user_id, updates)

    # ------------------------------------------------------------------
    # Delivery filter
    # ------------------------------------------------------------------

    def check_notification(
        self,
        user_id: str,
        notification_type: NotificationType,
        priority: NotificationPriority,
        now: Optional[datetime] = None,
    ) -> Optional[str]:
        """
        Decide whether a notification may be delivered.

        Args:
            user_id: Recipient user ID
            notification_type: Notification type
            priority: Notification priority
            now: Current instant (defaults to now, UTC)

        Returns:
            None if the notification may be sent, otherwise the suppression reason
        """
        preferences = self.get_preferences(user_id)
        if preferences is None:
            return None

        type_value = NotificationType(notification_type).value
        is_critical = NotificationPriority(priority) == NotificationPriority.CRITICAL

        if preferences.critical_only_mode and not is_critical:
            return SUPPRESS_CRITICAL_ONLY

        if type_value not in preferences.enabled_types:
            return SUPPRESS_TYPE_DISABLED

        column = CATEGORY_PREFERENCE_COLUMNS.get(get_notification_config(type_value).category)
        if column is not None and not getattr(preferences, column):
            return SUPPRESS_CATEGORY_DISABLED

        local_now = (now or datetime.now(timezone.utc)).astimezone(_zone(preferences.timezone))

        if preferences.quiet_hours_enabled and not is_critical:
            start = preferences.quiet_hours_start
            end = preferences.quiet_hours_end
            if start and end and is_in_quiet_hours(local_now.strftime("%H:%M"), start, end):
                return SUPPRESS_QUIET_HOURS

        if not is_critical and preferences.max_daily_notifications > 0:
            count = self._count_for_day(user_id, local_now.date())
            if count >= preferences.max_daily_notifications:
                return SUPPRESS_DAILY_LIMIT

        return None

    def should_send_notification(
        self,
        user_id: str,
        notification_type: NotificationType,
        priority: NotificationPriority,
        now: Optional[datetime] = None,
    ) -> bool:
        """Return True if the notification passes the user's preferences."""
        return self.check_notification(user_id, notification_type, priority, now) is None

    # ------------------------------------------------------------------
    # Daily count
    # ------------------------------------------------------------------

    def _local_date(self, user_id: str, now: Optional[datetime] = None) -> date:
        tz_name = self._user_timezones.get(user_id, self.default_timezone)
        return (now or datetime.now(timezone.utc)).astimezone(_zone(tz_name)).date()

    def _count_for_day(self, user_id: str, day: date) -> int:
        try:
            row = self.daily_count_repo.get(user_id, day)
        except RepositoryError as e:
            logger.error("get_daily_count_failed", user_id=user_id, error=str(e))
            return 0
        return (row or {}).get("count") or 0

    def get_daily_count(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Number of notifications delivered to a user today."""
        return self._count_for_day(user_id, self._local_date(user_id, now))

    def increment_daily_count(self, user_id: str, now: Optional[datetime] = None) -> None:
        try:
            self.daily_count_repo.increment(user_id, self._local_date(user_id, now))
        except RepositoryError as e:
            logger.error("increment_daily_count_failed", user_id=user_id, error=str(e))

    def reset_daily_count(self, user_id: str, now: Optional[datetime] = None) -> None:
        """Delete count rows of every date other than today."""
        try:
            deleted = self.daily_count_repo.delete_except(user_id, self._local_date(user_id, now))
        except RepositoryError as e:
            logger.error("reset_daily_count_failed", user_id=user_id, error=str(e))
            return
        logger.info("daily_count_reset", user_id=user_id, rows_deleted=deleted)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_preferences(self, user_id: str) -> Optional[str]:
        """Export the preference row of a user as indented JSON."""
        preferences = self.get_preferences(user_id)
        if preferences is None:
            return None
        return json.dumps(preferences.model_dump(mode="json"), indent=2, ensure_ascii=False)

    def import_preferences(self, user_id: str, payload: str) -> bool:
        """
        Apply exported preferences to a user.

        Identity and timestamp columns in the payload are ignored, as are
        keys that are not preference columns.

        Returns:
            True if the preferences were stored
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning("invalid_preferences_import", user_id=user_id, error=str(e))
            return False

        if not isinstance(data, dict):
            logger.warning("invalid_preferences_import", user_id=user_id, error="not an object")
            return False

        columns = set(NotificationPreferences.model_fields) - PROTECTED_COLUMNS
        updates = {k: v for k, v in data.items() if k in columns}

        try:
            # Validate against the model before writing
            NotificationPreferences(user_id=user_id, **updates)
        except ValidationError as e:
            logger.warning("invalid_preferences_import", user_id=user_id, error=str(e))
            return False

        return self.update_preferences(user_id, updates)
