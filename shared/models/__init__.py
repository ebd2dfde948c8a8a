"""Shared Pydantic models for the FleetOS notification services."""

from .common import ComponentStatus, ReadinessReport, ServiceInfo

__all__ = [
    "ComponentStatus",
    "ReadinessReport",
    "ServiceInfo",
]
