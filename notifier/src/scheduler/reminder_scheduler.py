"""
Reminder scheduling relative to contract and vehicle dates.

Each reminder is a fixed lead time before an event. The trigger is computed
by plain subtraction and registered only if it is still in the future.
Hour and minute leads are absolute durations. Day leads keep the local time
of day of the event.
Vehicle calendar dates (KTEO, insurance, tires) are anchored at the
configured reminder hour in the business timezone.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

import structlog

from ..catalog.messages import render_message
from ..catalog.notification_types import NotificationType
from ..models.fleet import Contract, Vehicle
from ..models.notification import NotificationContent
from ..services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

_T = NotificationType

PICKUP_LEAD_TIMES: List[Tuple[timedelta, NotificationType]] = [
    (timedelta(hours=24), _T.PICKUP_24H),
    (timedelta(hours=3), _T.PICKUP_3H),
    (timedelta(minutes=30), _T.PICKUP_30MIN),
]

# Day leads keep the local time of day across DST changes
RETURN_LEAD_DAYS: List[Tuple[int, NotificationType]] = [
    (7, _T.RETURN_7D),
    (3, _T.RETURN_3D),
    (1, _T.RETURN_1D),
]

RETURN_LEAD_TIMES: List[Tuple[timedelta, NotificationType]] = [
    (timedelta(hours=3), _T.RETURN_3H),
]

# Reminder fired this long after the dropoff if the car is still out
RETURN_OVERDUE_DELAY = timedelta(hours=1)

KTEO_LEAD_DAYS: List[Tuple[int, NotificationType]] = [
    (60, _T.KTEO_60D),
    (30, _T.KTEO_30D),
    (14, _T.KTEO_14D),
    (7, _T.KTEO_7D),
    (3, _T.KTEO_3D),
    (1, _T.KTEO_1D),
]

INSURANCE_LEAD_DAYS: List[Tuple[int, NotificationType]] = [
    (60, _T.INSURANCE_60D),
    (30, _T.INSURANCE_30D),
    (14, _T.INSURANCE_14D),
    (7, _T.INSURANCE_7D),
    (3, _T.INSURANCE_3D),
    (1, _T.INSURANCE_1D),
]

TIRE_LEAD_DAYS: List[Tuple[int, NotificationType]] = [
    (30, _T.TIRES_30D),
    (14, _T.TIRES_14D),
    (7, _T.TIRES_7D),
]

SERVICE_DUE_THRESHOLD_KM = 500


class ReminderScheduler:
    """Registers and cancels date-relative reminders for contracts and vehicles."""

    def __init__(
        self,
        notification_service: NotificationService,
        business_timezone: str = "Europe/Athens",
        reminder_hour: int = 9,
        language: str = "el",
    ):
        """
        Initialize reminder scheduler.

        Args:
            notification_service: Store the reminders are registered in
            business_timezone: Timezone calendar dates are interpreted in
            reminder_hour: Local hour at which date-based reminders fire
            language: Body language, "el" or "en"
        """
        self.notification_service = notification_service
        self.tz = ZoneInfo(business_timezone)
        self.reminder_hour = reminder_hour
        self.language = language

    def _anchor(self, day: date) -> datetime:
        return datetime.combine(day, time(self.reminder_hour, 0), tzinfo=self.tz)

    def _elapsed(self, instant: datetime, offset: timedelta) -> datetime:
        # Hour and minute offsets are absolute durations, so they run in UTC
        return instant.astimezone(timezone.utc) + offset

    def _days_from(self, instant: datetime, days: int) -> datetime:
        return instant.astimezone(self.tz) + timedelta(days=days)

    def _local_time(self, instant: datetime) -> str:
        return instant.astimezone(self.tz).strftime("%H:%M")

    def _schedule_if_future(
        self,
        user_id: Optional[str],
        notification_type: NotificationType,
        trigger_at: datetime,
        now: datetime,
        data: dict,
        **params,
    ) -> int:
        if trigger_at <= now:
            return 0
        body = render_message(notification_type, self.language, **params)
        self.notification_service.schedule_notification_by_type(
            user_id, notification_type, NotificationContent(body=body, data=data), trigger_at
        )
        return 1

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def schedule_contract_notifications(
        self, user_id: Optional[str], contract: Contract, now: Optional[datetime] = None
    ) -> int:
        """
        Schedule pickup and return reminders of a contract.

        Earlier reminders of the same contract are cancelled first.

        Args:
            user_id: Recipient user ID
            contract: Contract to schedule for
            now: Current instant (defaults to now, UTC)

        Returns:
            Number of reminders registered
        """
        now = now or datetime.now(timezone.utc)
        try:
            self.cancel_contract_notifications(contract.id)
            scheduled = self._schedule_pickup(user_id, contract, now)
            scheduled += self._schedule_return(user_id, contract, now)
        except Exception as e:
            logger.error("schedule_contract_notifications_failed", contract_id=contract.id, error=str(e))
            return 0

        logger.info("contract_notifications_scheduled", contract_id=contract.id, count=scheduled)
        return scheduled

    def _schedule_pickup(self, user_id: Optional[str], contract: Contract, now: datetime) -> int:
        pickup = contract.pickup_at
        data = {
            "contractId": contract.id,
            "licensePlate": contract.license_plate,
            "customerName": contract.customer_name,
        }
        params = {
            "plate": contract.license_plate,
            "customer": contract.customer_name,
            "time": self._local_time(pickup),
        }

        scheduled = 0
        for lead, notification_type in PICKUP_LEAD_TIMES:
            scheduled += self._schedule_if_future(
                user_id, notification_type, self._elapsed(pickup, -lead), now, data, **params
            )
        return scheduled

    def _schedule_return(self, user_id: Optional[str], contract: Contract, now: datetime) -> int:
        dropoff = contract.dropoff_at
        data = {
            "contractId": contract.id,
            "licensePlate": contract.license_plate,
            "customerName": contract.customer_name,
        }
        params = {
            "plate": contract.license_plate,
            "customer": contract.customer_name,
            "time": self._local_time(dropoff),
        }

        scheduled = 0
        for days, notification_type in RETURN_LEAD_DAYS:
            scheduled += self._schedule_if_future(
                user_id, notification_type, self._days_from(dropoff, -days), now, data, **params
            )
        for lead, notification_type in RETURN_LEAD_TIMES:
            scheduled += self._schedule_if_future(
                user_id, notification_type, self._elapsed(dropoff, -lead), now, data, **params
            )
        scheduled += self._schedule_if_future(
            user_id, _T.RETURN_OVERDUE, self._elapsed(dropoff, RETURN_OVERDUE_DELAY), now, data, **params
        )
        return scheduled

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def schedule_vehicle_maintenance_notifications(
        self, user_id: Optional[str], vehicle: Vehicle, now: Optional[datetime] = None
    ) -> int:
        """
        Schedule KTEO, insurance, tire and service reminders of a vehicle.

        Earlier reminders of the same vehicle are cancelled first. Service
        reminders depend on mileage, not on a date, and are registered for
        immediate delivery.

        Args:
            user_id: Recipient user ID
            vehicle: Vehicle to schedule for
            now: Current instant (defaults to now, UTC)

        Returns:
            Number of reminders registered
        """
        now = now or datetime.now(timezone.utc)
        try:
            self.cancel_vehicle_notifications(vehicle.id)
            scheduled = 0
            if vehicle.kteo_expiry_date:
                scheduled += self._schedule_expiry(
                    user_id, vehicle, vehicle.kteo_expiry_date, KTEO_LEAD_DAYS, _T.KTEO_EXPIRED, now
                )
            if vehicle.insurance_expiry_date:
                scheduled += self._schedule_expiry(
                    user_id, vehicle, vehicle.insurance_expiry_date, INSURANCE_LEAD_DAYS, _T.INSURANCE_EXPIRED, now
                )
            if vehicle.tires_next_change_date:
                scheduled += self._schedule_tires(user_id, vehicle, now)
            scheduled += self._schedule_service(user_id, vehicle, now)
        except Exception as e:
            logger.error("schedule_vehicle_notifications_failed", vehicle_id=vehicle.id, error=str(e))
            return 0

        logger.info(
            "vehicle_notifications_scheduled",
            vehicle_id=vehicle.id,
            license_plate=vehicle.license_plate,
            count=scheduled,
        )
        return scheduled

    def _schedule_expiry(
        self,
        user_id: Optional[str],
        vehicle: Vehicle,
        expiry: date,
        lead_days: List[Tuple[int, NotificationType]],
        expired_type: NotificationType,
        now: datetime,
    ) -> int:
        anchor = self._anchor(expiry)
        data = {"vehicleId": vehicle.id, "licensePlate": vehicle.license_plate, "expiryDate": expiry.isoformat()}
        params = {"plate": vehicle.license_plate, "date": expiry.strftime("%d/%m/%Y")}

        scheduled = 0
        for days, notification_type in lead_days:
            scheduled += self._schedule_if_future(
                user_id, notification_type, anchor - timedelta(days=days), now, data, **params
            )
        scheduled += self._schedule_if_future(user_id, expired_type, anchor, now, data, **params)
        return scheduled

    def _schedule_tires(self, user_id: Optional[str], vehicle: Vehicle, now: datetime) -> int:
        change = vehicle.tires_next_change_date
        anchor = self._anchor(change)
        data = {"vehicleId": vehicle.id, "licensePlate": vehicle.license_plate, "changeDate": change.isoformat()}

        scheduled = 0
        for days, notification_type in TIRE_LEAD_DAYS:
            scheduled += self._schedule_if_future(
                user_id, notification_type, anchor - timedelta(days=days), now, data, plate=vehicle.license_plate
            )
        return scheduled

    def _schedule_service(self, user_id: Optional[str], vehicle: Vehicle, now: datetime) -> int:
        if not vehicle.next_service_mileage or not vehicle.current_mileage:
            return 0

        remaining_km = vehicle.next_service_mileage - vehicle.current_mileage
        if 0 < remaining_km <= SERVICE_DUE_THRESHOLD_KM:
            notification_type = _T.SERVICE_DUE
        elif remaining_km <= 0:
            notification_type = _T.SERVICE_OVERDUE
        else:
            return 0

        data = {
            "vehicleId": vehicle.id,
            "licensePlate": vehicle.license_plate,
            "currentMileage": vehicle.current_mileage,
            "nextServiceMileage": vehicle.next_service_mileage,
        }
        body = render_message(notification_type, self.language, plate=vehicle.license_plate, km=abs(remaining_km))
        self.notification_service.schedule_notification_by_type(
            user_id, notification_type, NotificationContent(body=body, data=data), now
        )
        return 1

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel_contract_notifications(self, contract_id: str) -> int:
        """Cancel every scheduled reminder of a contract."""
        cancelled = self.notification_service.cancel_by_data("contractId", contract_id)
        logger.info("contract_notifications_cancelled", contract_id=contract_id, count=cancelled)
        return cancelled

    def cancel_vehicle_notifications(self, vehicle_id: str) -> int:
        """Cancel every scheduled reminder of a vehicle."""
        cancelled = self.notification_service.cancel_by_data("vehicleId", vehicle_id)
        logger.info("vehicle_notifications_cancelled", vehicle_id=vehicle_id, count=cancelled)
        return cancelled
