"""Prometheus metrics definitions and helpers.

Provides metric definitions for the notification scheduler, the delivery
pipeline and the periodic fleet checks.
"""

from typing import Callable, Optional

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    REGISTRY,
    CollectorRegistry,
)


class NotificationMetrics:
    """Notification pipeline metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize notification metrics.

        Args:
            registry: Prometheus registry to use
        """
        # Reminders registered for later delivery
        self.notifications_scheduled = Counter(
            "fleetos_notifications_scheduled_total",
            "Total number of notifications scheduled for later delivery",
            ["type"],
            registry=registry,
        )

        # Scheduled reminders removed before delivery
        self.notifications_cancelled = Counter(
            "fleetos_notifications_cancelled_total",
            "Total number of scheduled notifications cancelled",
            ["type"],
            registry=registry,
        )

        # Notifications handed to the delivery channels
        self.notifications_sent = Counter(
            "fleetos_notifications_sent_total",
            "Total number of notifications delivered",
            ["type", "priority"],
            registry=registry,
        )

        # Notifications dropped by user preferences
        self.notifications_suppressed = Counter(
            "fleetos_notifications_suppressed_total",
            "Total number of notifications suppressed by preferences",
            ["type", "reason"],
            registry=registry,
        )

        # Scheduled reminders that reached their trigger time
        self.notifications_dispatched = Counter(
            "fleetos_notifications_dispatched_total",
            "Total number of scheduled notifications that became due",
            ["type"],
            registry=registry,
        )

        # Pending scheduled reminders
        self.scheduled_queue_size = Gauge(
            "fleetos_scheduled_notifications",
            "Number of notifications currently scheduled",
            registry=registry,
        )

        # Background check runs
        self.background_runs = Counter(
            "fleetos_background_check_runs_total",
            "Total number of background check runs",
            ["status"],
            registry=registry,
        )

        self.background_run_duration = Histogram(
            "fleetos_background_check_duration_seconds",
            "Time spent running the periodic fleet checks",
            buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
            registry=registry,
        )

        # Fleet conditions found by the checks
        self.fleet_alerts_detected = Counter(
            "fleetos_fleet_alerts_detected_total",
            "Fleet conditions detected by the periodic checks",
            ["alert"],
            registry=registry,
        )


_metrics_instance: Optional[NotificationMetrics] = None


def get_metrics() -> NotificationMetrics:
    """Get the process-wide metrics instance, creating it on first use.

    Returns:
        NotificationMetrics bound to the default registry
    """
    global _metrics_instance
    if _metrics_instance is None:
        _metrics_instance = NotificationMetrics()
    return _metrics_instance


def get_metrics_handler() -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(REGISTRY)

    return metrics_handler
