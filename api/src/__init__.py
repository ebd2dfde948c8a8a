"""FastAPI service for FleetOS notifications.

This package provides REST API endpoints for managing notification
preferences, history and reminders, and hosts the periodic fleet checks.
"""

__version__ = "0.1.0"
