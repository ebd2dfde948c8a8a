"""Notification records: preferences, content, scheduled items and history."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..catalog.notification_types import (
    ALL_NOTIFICATION_TYPES,
    DEFAULT_NOTIFICATION_PREFERENCES,
    NotificationType,
)
from .fleet import parse_timestamp


def validate_hhmm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    parts = value.split(":")
    if len(parts) < 2 or not all(p.isdigit() for p in parts[:2]):
        raise ValueError(f"time must be HH:MM, got: {value}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"time must be HH:MM, got: {value}")
    # Postgres TIME columns come back as HH:MM:SS
    return f"{hours:02d}:{minutes:02d}"


class NotificationPreferences(BaseModel):
    """A user's delivery preferences, one row in ``notification_preferences``."""

    id: Optional[str] = None
    user_id: str
    enabled_types: List[str] = Field(default_factory=lambda: list(ALL_NOTIFICATION_TYPES))
    quiet_hours_enabled: bool = DEFAULT_NOTIFICATION_PREFERENCES["quiet_hours_enabled"]
    quiet_hours_start: Optional[str] = DEFAULT_NOTIFICATION_PREFERENCES["quiet_hours_start"]
    quiet_hours_end: Optional[str] = DEFAULT_NOTIFICATION_PREFERENCES["quiet_hours_end"]
    critical_only_mode: bool = DEFAULT_NOTIFICATION_PREFERENCES["critical_only_mode"]
    max_daily_notifications: int = DEFAULT_NOTIFICATION_PREFERENCES["max_daily_notifications"]
    timezone: str = DEFAULT_NOTIFICATION_PREFERENCES["timezone"]

    enable_contract_notifications: bool = True
    enable_maintenance_notifications: bool = True
    enable_financial_notifications: bool = True
    enable_operational_notifications: bool = True
    enable_milestone_notifications: bool = True

    enable_sound: bool = True
    enable_vibration: bool = True
    enable_email_notifications: bool = False
    email_daily_summary: bool = False
    email_weekly_summary: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def validate_quiet_hours(cls, v: Optional[str]) -> Optional[str]:
        return validate_hhmm(v)

    @field_validator("enabled_types", mode="before")
    @classmethod
    def default_enabled_types(cls, v: Any) -> Any:
        return list(ALL_NOTIFICATION_TYPES) if v is None else v

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "NotificationPreferences":
        data = {k: v for k, v in row.items() if v is not None or k in ("quiet_hours_start", "quiet_hours_end")}
        if data.get("id") is not None:
            data["id"] = str(data["id"])
        return cls(**data)

    def to_row(self) -> Dict[str, Any]:
        """Serialize the writable columns."""
        return self.model_dump(exclude={"id", "created_at", "updated_at"})


class NotificationContent(BaseModel):
    """Body text plus the data payload delivered with a notification."""

    body: str
    data: Dict[str, Any] = Field(default_factory=dict)


class ScheduledNotification(BaseModel):
    """A notification waiting in the local schedule for its trigger time."""

    identifier: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: Optional[str] = None
    type: NotificationType
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    trigger_at: datetime

    model_config = ConfigDict(use_enum_values=True)

    @property
    def contract_id(self) -> Optional[str]:
        return self.data.get("contractId")

    @property
    def vehicle_id(self) -> Optional[str]:
        return self.data.get("vehicleId")


class NotificationHistoryEntry(BaseModel):
    """A delivered notification, one row in ``notification_history``."""

    id: str
    user_id: str
    notification_type: str
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    sent_at: datetime
    read_at: Optional[datetime] = None
    is_read: bool = False
    contract_id: Optional[str] = None
    vehicle_id: Optional[str] = None

    # Display fields filled in from the catalog
    emoji: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "NotificationHistoryEntry":
        return cls(
            id=str(row["id"]),
            user_id=row["user_id"],
            notification_type=row["notification_type"],
            title=row.get("title") or "",
            body=row.get("body") or "",
            data=row.get("data") or {},
            sent_at=parse_timestamp(row.get("sent_at")),
            read_at=parse_timestamp(row.get("read_at")),
            is_read=bool(row.get("is_read")),
            contract_id=row.get("contract_id"),
            vehicle_id=row.get("vehicle_id"),
        )
