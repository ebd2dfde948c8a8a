"""Fleet and notification records."""

from .fleet import CarCondition, CarInfo, Contract, DamagePoint, RentalPeriod, RenterInfo, Vehicle
from .notification import (
    NotificationContent,
    NotificationHistoryEntry,
    NotificationPreferences,
    ScheduledNotification,
)

__all__ = [
    "CarCondition",
    "CarInfo",
    "Contract",
    "DamagePoint",
    "RentalPeriod",
    "RenterInfo",
    "Vehicle",
    "NotificationContent",
    "NotificationHistoryEntry",
    "NotificationPreferences",
    "ScheduledNotification",
]
