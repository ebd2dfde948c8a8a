"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    NotificationMetrics,
    get_metrics,
    get_metrics_handler,
)

__all__ = [
    "NotificationMetrics",
    "get_metrics",
    "get_metrics_handler",
]
