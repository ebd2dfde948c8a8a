"""
Repositories for notification bookkeeping tables.

- ``notification_preferences``: one row per user
- ``notification_history``: delivered notifications
- ``notification_daily_count``: per-user delivery count per calendar date
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .base import SupabaseRepository


class PreferencesRepository(SupabaseRepository):
    """Repository for notification preferences."""

    table_name = "notification_preferences"

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the preference row of a user.

        Returns:
            Row dict or None if the user has no preferences yet
        """
        query = self._table().select("*").eq("user_id", user_id).limit(1)
        rows = self._execute("get_preferences", query, read=True)
        return rows[0] if rows else None

    def insert(self, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self._execute("insert_preferences", self._table().insert(row))
        return rows[0] if rows else None

    def update(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update the preference row of a user.

        Args:
            user_id: Owner user ID
            updates: Columns to change

        Returns:
            Updated row or None if the user has no row
        """
        payload = {**updates, "updated_at": datetime.now(timezone.utc).isoformat()}
        query = self._table().update(payload).eq("user_id", user_id)
        rows = self._execute("update_preferences", query)
        return rows[0] if rows else None


class HistoryRepository(SupabaseRepository):
    """Repository for delivered notifications."""

    table_name = "notification_history"

    def insert(self, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self._execute("insert_history", self._table().insert(row))
        return rows[0] if rows else None

    def list_for_user(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Get delivered notifications of a user, newest first."""
        query = self._table().select("*").eq("user_id", user_id).order("sent_at", desc=True)
        if limit:
            query = query.limit(limit)
        return self._execute("list_history", query, read=True)

    def count_unread(self, user_id: str) -> int:
        query = self._table().select("id").eq("user_id", user_id).eq("is_read", False)
        return len(self._execute("count_unread", query, read=True))

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        payload = {"is_read": True, "read_at": datetime.now(timezone.utc).isoformat()}
        query = self._table().update(payload).eq("id", notification_id).eq("user_id", user_id)
        return bool(self._execute("mark_read", query))

    def mark_all_read(self, user_id: str) -> int:
        payload = {"is_read": True, "read_at": datetime.now(timezone.utc).isoformat()}
        query = self._table().update(payload).eq("user_id", user_id).eq("is_read", False)
        return len(self._execute("mark_all_read", query))

    def delete(self, user_id: str, notification_id: str) -> bool:
        query = self._table().delete().eq("id", notification_id).eq("user_id", user_id)
        return bool(self._execute("delete_history", query))

    def delete_read(self, user_id: str) -> int:
        query = self._table().delete().eq("user_id", user_id).eq("is_read", True)
        return len(self._execute("delete_read_history", query))


class DailyCountRepository(SupabaseRepository):
    """Repository for per-day delivery counts."""

    table_name = "notification_daily_count"

    def get(self, user_id: str, day: date) -> Optional[Dict[str, Any]]:
        query = (
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .eq("notification_date", day.isoformat())
            .limit(1)
        )
        rows = self._execute("get_daily_count", query, read=True)
        return rows[0] if rows else None

    def increment(self, user_id: str, day: date) -> int:
        """
        Increment the count of a user for a date, creating the row if needed.

        Returns:
            New count
        """
        existing = self.get(user_id, day)
        if existing:
            new_count = (existing.get("count") or 0) + 1
            query = self._table().update({"count": new_count}).eq("id", existing["id"])
            self._execute("update_daily_count", query)
            return new_count

        row = {"user_id": user_id, "notification_date": day.isoformat(), "count": 1}
        self._execute("insert_daily_count", self._table().insert(row))
        return 1

    def delete_except(self, user_id: str, day: date) -> int:
        """Delete all count rows of a user other than the given date."""
        query = self._table().delete().eq("user_id", user_id).neq("notification_date", day.isoformat())
        return len(self._execute("reset_daily_count", query))
