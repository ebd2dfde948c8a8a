"""
Fleet-wide checks run by the background jobs.

The ``find_*`` functions are pure scans over in-memory contract and vehicle
lists. ``FleetChecks`` turns their findings into notifications and also
implements the operational summaries and milestone checks.
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

import structlog

from shared.metrics import NotificationMetrics

from ..catalog.messages import (
    INSURANCE_EXPIRED_DAYS,
    MAINTENANCE_ITEMS,
    RETURN_OVERDUE_HOURS,
    render_message,
)
from ..catalog.notification_types import NotificationType
from ..models.fleet import Contract, Vehicle
from ..models.notification import NotificationContent
from ..services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

_T = NotificationType

OVERDUE_GRACE = timedelta(hours=1)
GAP_OPPORTUNITY_DAYS = 3
SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class DoubleBooking:
    license_plate: str
    first: Contract
    second: Contract


@dataclass
class GapOpportunity:
    license_plate: str
    gap_days: int
    from_date: datetime
    to_date: datetime


@dataclass
class OverdueReturn:
    contract: Contract
    hours_overdue: int


@dataclass
class ExpiredMaintenance:
    vehicle: Vehicle
    item: str  # "kteo" or "insurance"
    days_overdue: int


@dataclass
class RentalMaintenanceConflict:
    contract: Contract
    vehicle: Vehicle
    item: str  # "kteo" or "insurance"


def _by_plate(contracts: Sequence[Contract]) -> Dict[str, List[Contract]]:
    grouped: Dict[str, List[Contract]] = defaultdict(list)
    for contract in contracts:
        if contract.status == "cancelled":
            continue
        grouped[contract.license_plate].append(contract)
    return grouped


def _start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=tz)


def find_double_bookings(contracts: Sequence[Contract]) -> List[DoubleBooking]:
    """
    Find pairs of contracts of the same car with overlapping rental periods.

    Periods are half-open, so a return and a pickup at the same instant do
    not overlap. Cancelled contracts are ignored.
    """
    conflicts = []
    for plate, plate_contracts in _by_plate(contracts).items():
        for i, first in enumerate(plate_contracts):
            for second in plate_contracts[i + 1:]:
                if first.pickup_at < second.dropoff_at and first.dropoff_at > second.pickup_at:
                    conflicts.append(DoubleBooking(plate, first, second))
    return conflicts


def find_gap_opportunities(
    contracts: Sequence[Contract], min_gap_days: int = GAP_OPPORTUNITY_DAYS
) -> List[GapOpportunity]:
    """
    Find idle periods of at least ``min_gap_days`` whole days between consecutive bookings.

    Args:
        contracts: Contracts to scan
        min_gap_days: Minimum idle whole days

    Returns:
        List of gap opportunities
    """
    gaps = []
    for plate, plate_contracts in _by_plate(contracts).items():
        ordered = sorted(plate_contracts, key=lambda c: c.pickup_at)
        for current, following in zip(ordered, ordered[1:]):
            gap_days = (following.pickup_at - current.dropoff_at).days
            if gap_days >= min_gap_days:
                gaps.append(GapOpportunity(plate, gap_days, current.dropoff_at, following.pickup_at))
    return gaps


def find_overdue_returns(contracts: Sequence[Contract], now: datetime) -> List[OverdueReturn]:
    """Active contracts whose dropoff passed more than an hour ago."""
    overdue = []
    for contract in contracts:
        if contract.status != "active":
            continue
        elapsed = now - contract.dropoff_at
        if elapsed > OVERDUE_GRACE:
            overdue.append(OverdueReturn(contract, int(elapsed.total_seconds() // 3600)))
    return overdue


def find_expired_maintenance(
    vehicles: Sequence[Vehicle], now: datetime, tz: ZoneInfo
) -> List[ExpiredMaintenance]:
    """
    Vehicles whose KTEO or insurance has already expired.

    Days are counted from the start of the expiry date in the business
    timezone and floored, so any moment of the expiry day itself already
    counts as one day overdue.
    """
    expired = []
    for vehicle in vehicles:
        for item, expiry in (("kteo", vehicle.kteo_expiry_date), ("insurance", vehicle.insurance_expiry_date)):
            if expiry is None:
                continue
            days_until = math.floor((_start_of_day(expiry, tz) - now).total_seconds() / SECONDS_PER_DAY)
            if days_until < 0:
                expired.append(ExpiredMaintenance(vehicle, item, abs(days_until)))
    return expired


def find_maintenance_during_rental(
    contracts: Sequence[Contract], vehicles: Sequence[Vehicle], tz: ZoneInfo
) -> List[RentalMaintenanceConflict]:
    """Active rentals during which the car's KTEO or insurance expires."""
    vehicles_by_plate = {v.license_plate: v for v in vehicles}
    conflicts = []
    for contract in contracts:
        if contract.status != "active":
            continue
        vehicle = vehicles_by_plate.get(contract.license_plate)
        if vehicle is None:
            continue
        for item, expiry in (("kteo", vehicle.kteo_expiry_date), ("insurance", vehicle.insurance_expiry_date)):
            if expiry is None:
                continue
            expires_at = _start_of_day(expiry, tz)
            if contract.pickup_at <= expires_at < contract.dropoff_at:
                conflicts.append(RentalMaintenanceConflict(contract, vehicle, item))
    return conflicts


class FleetChecks:
    """Sends notifications for the conditions found in the fleet."""

    def __init__(
        self,
        notification_service: NotificationService,
        metrics: NotificationMetrics,
        business_timezone: str = "Europe/Athens",
        language: str = "el",
        morning_briefing_hour: int = 8,
        end_of_day_hour: int = 20,
        weekend_planning_hour: int = 15,
        milestone_contract_count: int = 100,
    ):
        self.notification_service = notification_service
        self.metrics = metrics
        self.tz = ZoneInfo(business_timezone)
        self.language = language
        self.morning_briefing_hour = morning_briefing_hour
        self.end_of_day_hour = end_of_day_hour
        self.weekend_planning_hour = weekend_planning_hour
        self.milestone_contract_count = milestone_contract_count

    def _send(self, user_id: Optional[str], notification_type: NotificationType, body: str, data: dict, now: datetime) -> bool:
        return self.notification_service.send_notification_by_type(
            user_id, notification_type, NotificationContent(body=body, data=data), now
        )

    def _record(self, alert: str, count: int) -> None:
        if count:
            self.metrics.fleet_alerts_detected.labels(alert=alert).inc(count)

    # ------------------------------------------------------------------
    # Operational
    # ------------------------------------------------------------------

    def check_operational_notifications(
        self,
        user_id: Optional[str],
        contracts: Sequence[Contract],
        vehicles: Sequence[Vehicle],
        now: Optional[datetime] = None,
    ) -> None:
        """
        Send the summaries that belong to the current local hour.

        Morning briefing and end-of-day summary fire at their configured
        hours; weekend planning fires on Friday at its configured hour.
        """
        now = now or datetime.now(timezone.utc)
        local_now = now.astimezone(self.tz)

        if local_now.hour == self.morning_briefing_hour:
            self.send_daily_briefing(user_id, contracts, now)

        if local_now.hour == self.end_of_day_hour:
            self.send_end_of_day_summary(user_id, contracts, vehicles, now)

        if local_now.weekday() == 4 and local_now.hour == self.weekend_planning_hour:
            self.send_weekend_planning(user_id, contracts, now)

    def send_daily_briefing(
        self, user_id: Optional[str], contracts: Sequence[Contract], now: Optional[datetime] = None
    ) -> bool:
        """Send today's pickup and return counts, if there are any."""
        now = now or datetime.now(timezone.utc)
        today = now.astimezone(self.tz).date()
        pickups = sum(1 for c in contracts if c.pickup_at.astimezone(self.tz).date() == today)
        returns = sum(1 for c in contracts if c.dropoff_at.astimezone(self.tz).date() == today)

        if pickups == 0 and returns == 0:
            logger.debug("daily_briefing_skipped", date=today.isoformat())
            return False

        body = render_message(_T.MORNING_BRIEFING, self.language, pickups=pickups, returns=returns)
        data = {"pickups": pickups, "returns": returns, "date": now.isoformat()}
        return self._send(user_id, _T.MORNING_BRIEFING, body, data, now)

    def send_end_of_day_summary(
        self,
        user_id: Optional[str],
        contracts: Sequence[Contract],
        vehicles: Sequence[Vehicle],
        now: Optional[datetime] = None,
    ) -> bool:
        now = now or datetime.now(timezone.utc)
        active = sum(1 for c in contracts if c.status == "active")
        available = sum(1 for v in vehicles if v.status == "available")

        body = render_message(_T.END_OF_DAY_SUMMARY, self.language, active=active, available=available)
        data = {"activeContracts": active, "availableVehicles": available, "date": now.isoformat()}
        return self._send(user_id, _T.END_OF_DAY_SUMMARY, body, data, now)

    def send_weekend_planning(
        self, user_id: Optional[str], contracts: Sequence[Contract], now: Optional[datetime] = None
    ) -> bool:
        """Send the number of bookings starting on the coming Saturday or Sunday."""
        now = now or datetime.now(timezone.utc)
        today = now.astimezone(self.tz).date()
        saturday = today + timedelta(days=(5 - today.weekday()) % 7)
        weekend_days = {saturday, saturday + timedelta(days=1)}

        count = sum(
            1
            for c in contracts
            if c.status != "cancelled" and c.pickup_at.astimezone(self.tz).date() in weekend_days
        )
        if count == 0:
            return False

        body = render_message(_T.WEEKEND_PLANNING, self.language, count=count)
        return self._send(user_id, _T.WEEKEND_PLANNING, body, {"weekendBookings": count}, now)

    # ------------------------------------------------------------------
    # Smart alerts
    # ------------------------------------------------------------------

    def check_smart_alerts(
        self,
        user_id: Optional[str],
        contracts: Sequence[Contract],
        vehicles: Sequence[Vehicle],
        now: Optional[datetime] = None,
    ) -> None:
        """Double bookings, maintenance expiring during a rental, and service gaps."""
        now = now or datetime.now(timezone.utc)
        self.check_double_bookings(user_id, contracts, now)
        self.check_maintenance_during_rental(user_id, contracts, vehicles, now)
        self.check_gap_opportunities(user_id, contracts, now)

    def check_double_bookings(self, user_id: Optional[str], contracts: Sequence[Contract], now: datetime) -> int:
        conflicts = find_double_bookings(contracts)
        for conflict in conflicts:
            body = render_message(_T.DOUBLE_BOOKING, self.language, plate=conflict.license_plate)
            data = {
                "licensePlate": conflict.license_plate,
                "contract1": conflict.first.id,
                "contract2": conflict.second.id,
            }
            logger.warning(
                "double_booking_detected",
                license_plate=conflict.license_plate,
                contract1=conflict.first.id,
                contract2=conflict.second.id,
            )
            self._send(user_id, _T.DOUBLE_BOOKING, body, data, now)
        self._record("double_booking", len(conflicts))
        return len(conflicts)

    def check_maintenance_during_rental(
        self,
        user_id: Optional[str],
        contracts: Sequence[Contract],
        vehicles: Sequence[Vehicle],
        now: datetime,
    ) -> int:
        conflicts = find_maintenance_during_rental(contracts, vehicles, self.tz)
        items = MAINTENANCE_ITEMS.get(self.language, MAINTENANCE_ITEMS["el"])
        for conflict in conflicts:
            body = render_message(
                _T.MAINTENANCE_DURING_RENTAL,
                self.language,
                item=items[conflict.item],
                plate=conflict.vehicle.license_plate,
            )
            data = {
                "vehicleId": conflict.vehicle.id,
                "contractId": conflict.contract.id,
                "maintenanceType": conflict.item,
            }
            self._send(user_id, _T.MAINTENANCE_DURING_RENTAL, body, data, now)
        self._record("maintenance_during_rental", len(conflicts))
        return len(conflicts)

    def check_gap_opportunities(self, user_id: Optional[str], contracts: Sequence[Contract], now: datetime) -> int:
        gaps = find_gap_opportunities(contracts)
        for gap in gaps:
            body = render_message(_T.GAP_OPPORTUNITY, self.language, plate=gap.license_plate, days=gap.gap_days)
            data = {
                "licensePlate": gap.license_plate,
                "gapDays": gap.gap_days,
                "fromDate": gap.from_date.isoformat(),
                "toDate": gap.to_date.isoformat(),
            }
            self._send(user_id, _T.GAP_OPPORTUNITY, body, data, now)
        self._record("gap_opportunity", len(gaps))
        return len(gaps)

    # ------------------------------------------------------------------
    # Overdue returns and expired maintenance
    # ------------------------------------------------------------------

    def check_overdue_returns(
        self, user_id: Optional[str], contracts: Sequence[Contract], now: Optional[datetime] = None
    ) -> int:
        now = now or datetime.now(timezone.utc)
        overdue = find_overdue_returns(contracts, now)
        for item in overdue:
            contract = item.contract
            body = render_message(
                RETURN_OVERDUE_HOURS, self.language, plate=contract.license_plate, hours=item.hours_overdue
            )
            data = {
                "contractId": contract.id,
                "licensePlate": contract.license_plate,
                "customerName": contract.customer_name,
                "hoursOverdue": item.hours_overdue,
            }
            self._send(user_id, _T.RETURN_OVERDUE, body, data, now)
        self._record("return_overdue", len(overdue))
        return len(overdue)

    def check_critical_maintenance(
        self, user_id: Optional[str], vehicles: Sequence[Vehicle], now: Optional[datetime] = None
    ) -> int:
        now = now or datetime.now(timezone.utc)
        expired = find_expired_maintenance(vehicles, now, self.tz)
        for item in expired:
            plate = item.vehicle.license_plate
            if item.item == "kteo":
                notification_type = _T.KTEO_OVERDUE
                body = render_message(_T.KTEO_OVERDUE, self.language, plate=plate, days=item.days_overdue)
            else:
                notification_type = _T.INSURANCE_EXPIRED
                body = render_message(INSURANCE_EXPIRED_DAYS, self.language, plate=plate, days=item.days_overdue)
            data = {"vehicleId": item.vehicle.id, "licensePlate": plate, "daysOverdue": item.days_overdue}
            self._send(user_id, notification_type, body, data, now)
        self._record("maintenance_expired", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Summaries and milestones
    # ------------------------------------------------------------------

    def send_weekly_summary(
        self, user_id: Optional[str], contracts: Sequence[Contract], now: Optional[datetime] = None
    ) -> bool:
        """Send the number of contracts created in the last 7 days and their revenue."""
        now = now or datetime.now(timezone.utc)
        week_ago = now - timedelta(days=7)
        week_contracts = [c for c in contracts if c.created_at and week_ago <= c.created_at <= now]
        revenue = sum(c.rental_period.total_cost or 0 for c in week_contracts)

        body = render_message(
            _T.WEEKLY_REVENUE_SUMMARY, self.language, count=len(week_contracts), revenue=f"{revenue:,.2f}"
        )
        data = {
            "contracts": len(week_contracts),
            "revenue": revenue,
            "weekStart": week_ago.isoformat(),
            "weekEnd": now.isoformat(),
        }
        return self._send(user_id, _T.WEEKLY_REVENUE_SUMMARY, body, data, now)

    def check_milestones(
        self, user_id: Optional[str], contracts: Sequence[Contract], now: Optional[datetime] = None
    ) -> List[NotificationType]:
        """
        Send milestone notifications.

        - the configured contract count was reached exactly
        - perfect week: contracts were created in the last 7 days and none of
          them was cancelled or is still active past its dropoff

        Returns:
            Types of the milestone notifications sent
        """
        now = now or datetime.now(timezone.utc)
        sent: List[NotificationType] = []

        if len(contracts) == self.milestone_contract_count:
            body = render_message(_T.MILESTONE_ACHIEVED, self.language, count=self.milestone_contract_count)
            data = {
                "milestone": f"{self.milestone_contract_count}_contracts",
                "count": self.milestone_contract_count,
            }
            if self._send(user_id, _T.MILESTONE_ACHIEVED, body, data, now):
                sent.append(_T.MILESTONE_ACHIEVED)

        week_ago = now - timedelta(days=7)
        recent = [c for c in contracts if c.created_at and c.created_at >= week_ago]
        has_issues = any(
            c.status == "cancelled" or (c.status == "active" and c.dropoff_at < now) for c in recent
        )
        if recent and not has_issues:
            body = render_message(_T.PERFECT_WEEK, self.language)
            if self._send(user_id, _T.PERFECT_WEEK, body, {"contracts": len(recent)}, now):
                sent.append(_T.PERFECT_WEEK)

        return sent
