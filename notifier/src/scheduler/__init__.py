"""Reminder scheduling and fleet checks."""

from .fleet_checks import FleetChecks
from .reminder_scheduler import ReminderScheduler

__all__ = ["FleetChecks", "ReminderScheduler"]
