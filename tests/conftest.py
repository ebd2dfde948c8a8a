"""Shared fixtures for notification engine tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import Mock
from zoneinfo import ZoneInfo

import pytest
from prometheus_client import CollectorRegistry

from notifier.src.models.fleet import CarInfo, Contract, RentalPeriod, RenterInfo, Vehicle
from notifier.src.services.history_service import HistoryService
from notifier.src.services.notification_service import NotificationService
from notifier.src.services.preferences_service import PreferencesService
from shared.metrics import NotificationMetrics

ATHENS = ZoneInfo("Europe/Athens")


def make_contract(
    contract_id: str = "c-1",
    plate: str = "ΑΒΓ-1234",
    customer: str = "Maria Papadopoulou",
    pickup: Optional[datetime] = None,
    dropoff: Optional[datetime] = None,
    status: str = "upcoming",
    created_at: Optional[datetime] = None,
    total_cost: float = 0.0,
    user_id: Optional[str] = "user-1",
) -> Contract:
    pickup = pickup or datetime(2025, 6, 10, 10, 0, tzinfo=ATHENS)
    dropoff = dropoff or pickup + timedelta(days=3)
    return Contract(
        id=contract_id,
        user_id=user_id,
        renter=RenterInfo(full_name=customer),
        rental_period=RentalPeriod(pickup_date=pickup, dropoff_date=dropoff, total_cost=total_cost),
        car_info=CarInfo(license_plate=plate),
        status=status,
        created_at=created_at,
    )


def make_vehicle(vehicle_id: str = "v-1", plate: str = "ΑΒΓ-1234", **fields) -> Vehicle:
    return Vehicle(id=vehicle_id, user_id="user-1", license_plate=plate, **fields)


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    """Metrics registered in a private registry"""
    return NotificationMetrics(registry=registry)


@pytest.fixture
def preferences_service():
    """Preference filter that lets everything through"""
    service = Mock(spec=PreferencesService)
    service.check_notification.return_value = None
    return service


@pytest.fixture
def history_service():
    return Mock(spec=HistoryService)


@pytest.fixture
def notification_service(preferences_service, history_service, metrics):
    """Real scheduled store with mocked preferences and history"""
    return NotificationService(preferences_service, history_service, metrics, language="en")


@pytest.fixture
def utc_now():
    return datetime(2025, 6, 1, 6, 0, tzinfo=timezone.utc)


@pytest.fixture
def contract_factory():
    """Builds contracts with sensible defaults"""
    return make_contract


@pytest.fixture
def vehicle_factory():
    return make_vehicle
