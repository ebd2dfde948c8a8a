"""
Request and response schemas of the notification endpoints.

Engine records (preferences, history entries) are returned as the
notifier models themselves; this module only holds the API-specific
envelopes.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notifier.src.models.notification import validate_hhmm


# ============================================================================
# Preferences
# ============================================================================


class PreferencesUpdate(BaseModel):
    """Partial update of notification preferences. Unset fields are left unchanged."""

    enabled_types: Optional[List[str]] = None
    quiet_hours_enabled: Optional[bool] = None
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    critical_only_mode: Optional[bool] = None
    max_daily_notifications: Optional[int] = Field(None, ge=0)
    timezone: Optional[str] = None

    enable_contract_notifications: Optional[bool] = None
    enable_maintenance_notifications: Optional[bool] = None
    enable_financial_notifications: Optional[bool] = None
    enable_operational_notifications: Optional[bool] = None
    enable_milestone_notifications: Optional[bool] = None

    enable_sound: Optional[bool] = None
    enable_vibration: Optional[bool] = None
    enable_email_notifications: Optional[bool] = None
    email_daily_summary: Optional[bool] = None
    email_weekly_summary: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return validate_hhmm(v)

    def to_updates(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ToggleRequest(BaseModel):
    """Switch a notification type or category on or off."""

    enabled: bool


class QuietHoursRequest(BaseModel):
    """Quiet hours configuration. Omitted bounds keep their stored value."""

    enabled: bool
    start: Optional[str] = Field(None, description="Start time, HH:MM")
    end: Optional[str] = Field(None, description="End time, HH:MM")

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return validate_hhmm(v)

    model_config = ConfigDict(
        json_schema_extra={"example": {"enabled": True, "start": "22:00", "end": "08:00"}}
    )


class PreferencesImportRequest(BaseModel):
    """Preferences previously produced by the export endpoint."""

    data: str = Field(..., description="Exported preferences JSON")


class OperationResult(BaseModel):
    success: bool


# ============================================================================
# History
# ============================================================================


class UnreadCountResponse(BaseModel):
    count: int


class BulkResult(BaseModel):
    """Number of history entries a bulk operation touched."""

    count: int


# ============================================================================
# Scheduled notifications
# ============================================================================


class ScheduledNotificationResponse(BaseModel):
    identifier: str
    type: str
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    trigger_at: datetime


class ReminderResult(BaseModel):
    """Outcome of scheduling or cancelling the reminders of a contract or vehicle."""

    scheduled: int = 0
    cancelled: int = 0


# ============================================================================
# Jobs
# ============================================================================


class JobResult(BaseModel):
    """Outcome of a manually triggered job."""

    job: str
    success: bool
    sent: Optional[List[str]] = Field(None, description="Types sent by the milestone check")
