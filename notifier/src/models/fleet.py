"""Fleet records read from the hosted database: rental contracts and vehicles."""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TIMEZONE = "Europe/Athens"
DEFAULT_PICKUP_TIME = "00:00"
DEFAULT_DROPOFF_TIME = "23:59"

CONTRACT_STATUSES = ("pending", "upcoming", "active", "completed", "cancelled")


def parse_date(value: Any) -> Optional[date]:
    """Parse a date column that may hold a plain date or a full timestamp."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp column into an aware datetime (UTC if naive)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo("UTC"))
    return parsed


def combine_local(day: date, hhmm: Optional[str], tz_name: str, default: str) -> datetime:
    """Combine a calendar date with an "HH:MM" wall-clock time in a timezone."""
    hours, minutes = (hhmm or default).split(":")[:2]
    return datetime.combine(day, time(int(hours), int(minutes)), tzinfo=ZoneInfo(tz_name))


class RenterInfo(BaseModel):
    """Renter details."""

    full_name: str
    phone_number: Optional[str] = None
    email: Optional[str] = None
    id_number: Optional[str] = None
    tax_id: Optional[str] = None
    driver_license_number: Optional[str] = None
    address: Optional[str] = None


class RentalPeriod(BaseModel):
    """Pickup and dropoff instants plus pricing."""

    pickup_date: datetime
    dropoff_date: datetime
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    total_cost: float = 0.0
    deposit_amount: Optional[float] = None
    insurance_cost: Optional[float] = None


class CarInfo(BaseModel):
    """The rented car as recorded on the contract."""

    license_plate: str
    make_model: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    mileage: Optional[int] = None
    category: Optional[str] = None
    color: Optional[str] = None


class CarCondition(BaseModel):
    """Condition of the car at pickup."""

    fuel_level: Optional[int] = None
    insurance_type: Optional[str] = None
    exterior_condition: Optional[str] = None
    interior_condition: Optional[str] = None
    mechanical_condition: Optional[str] = None
    notes: Optional[str] = None
    mileage: Optional[int] = None


class DamagePoint(BaseModel):
    """A damage marker placed on the car diagram."""

    id: Optional[str] = None
    x: float
    y: float
    view: str = "front"
    severity: str = "minor"
    description: Optional[str] = None
    marker_type: Optional[str] = None

    @field_validator("view")
    @classmethod
    def validate_view(cls, v: str) -> str:
        allowed = ["front", "rear", "left", "right"]
        if v not in allowed:
            raise ValueError(f"view must be one of {allowed}, got: {v}")
        return v

    @field_validator("severity")
    @classmethod
    def validate_severity(cls, v: str) -> str:
        allowed = ["minor", "moderate", "major"]
        if v not in allowed:
            raise ValueError(f"severity must be one of {allowed}, got: {v}")
        return v


class Contract(BaseModel):
    """A rental contract."""

    id: str
    user_id: Optional[str] = None
    renter: RenterInfo
    rental_period: RentalPeriod
    car_info: CarInfo
    car_condition: CarCondition = Field(default_factory=CarCondition)
    damage_points: List[DamagePoint] = Field(default_factory=list)
    status: str = "pending"
    aade_status: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        """Validate status is a known contract status."""
        v_lower = v.lower()
        if v_lower not in CONTRACT_STATUSES:
            raise ValueError(f"status must be one of {list(CONTRACT_STATUSES)}, got: {v}")
        return v_lower

    @property
    def license_plate(self) -> str:
        return self.car_info.license_plate

    @property
    def customer_name(self) -> str:
        return self.renter.full_name

    @property
    def pickup_at(self) -> datetime:
        return self.rental_period.pickup_date

    @property
    def dropoff_at(self) -> datetime:
        return self.rental_period.dropoff_date

    @classmethod
    def from_row(cls, row: Dict[str, Any], tz_name: str = DEFAULT_TIMEZONE) -> "Contract":
        """
        Build a contract from a ``contracts`` table row.

        The separate date and "HH:MM" time columns are combined in the
        business timezone.

        Args:
            row: Row as returned by the REST client
            tz_name: Business timezone

        Returns:
            Contract instance
        """
        pickup_day = parse_date(row.get("pickup_date"))
        dropoff_day = parse_date(row.get("dropoff_date"))
        if pickup_day is None or dropoff_day is None:
            raise ValueError(f"contract {row.get('id')} has no rental dates")

        return cls(
            id=str(row["id"]),
            user_id=row.get("user_id"),
            renter=RenterInfo(
                full_name=row.get("renter_full_name") or "",
                phone_number=row.get("renter_phone_number"),
                email=row.get("renter_email"),
                id_number=row.get("renter_id_number"),
                tax_id=row.get("renter_tax_id"),
                driver_license_number=row.get("renter_driver_license_number"),
                address=row.get("renter_address"),
            ),
            rental_period=RentalPeriod(
                pickup_date=combine_local(pickup_day, row.get("pickup_time"), tz_name, DEFAULT_PICKUP_TIME),
                dropoff_date=combine_local(dropoff_day, row.get("dropoff_time"), tz_name, DEFAULT_DROPOFF_TIME),
                pickup_location=row.get("pickup_location"),
                dropoff_location=row.get("dropoff_location"),
                total_cost=float(row.get("total_cost") or 0),
                deposit_amount=row.get("deposit_amount"),
                insurance_cost=row.get("insurance_cost"),
            ),
            car_info=CarInfo(
                license_plate=row.get("car_license_plate") or "",
                make_model=row.get("car_make_model"),
                year=row.get("car_year"),
                mileage=row.get("car_mileage"),
                category=row.get("car_category"),
                color=row.get("car_color"),
            ),
            car_condition=CarCondition(
                fuel_level=row.get("fuel_level"),
                insurance_type=row.get("insurance_type"),
                exterior_condition=row.get("exterior_condition"),
                interior_condition=row.get("interior_condition"),
                mechanical_condition=row.get("mechanical_condition"),
                notes=row.get("condition_notes"),
                mileage=row.get("car_mileage"),
            ),
            damage_points=[DamagePoint(**point) for point in (row.get("damage_points") or [])],
            status=row.get("status") or "pending",
            aade_status=row.get("aade_status"),
            created_at=parse_timestamp(row.get("created_at")),
        )


class Vehicle(BaseModel):
    """A fleet vehicle with its maintenance calendar."""

    id: str
    user_id: Optional[str] = None
    license_plate: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    category: Optional[str] = None
    status: str = "available"
    current_mileage: Optional[int] = None
    has_gps: bool = False
    kteo_last_date: Optional[date] = None
    kteo_expiry_date: Optional[date] = None
    insurance_type: Optional[str] = None
    insurance_expiry_date: Optional[date] = None
    insurance_company: Optional[str] = None
    insurance_policy_number: Optional[str] = None
    tires_front_date: Optional[date] = None
    tires_rear_date: Optional[date] = None
    tires_next_change_date: Optional[date] = None
    last_service_date: Optional[date] = None
    last_service_mileage: Optional[int] = None
    next_service_mileage: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Vehicle":
        """Build a vehicle from a ``cars`` table row."""
        data = dict(row)
        data["id"] = str(row["id"])
        data["has_gps"] = bool(row.get("has_gps") or False)
        for column in (
            "kteo_last_date",
            "kteo_expiry_date",
            "insurance_expiry_date",
            "tires_front_date",
            "tires_rear_date",
            "tires_next_change_date",
            "last_service_date",
        ):
            data[column] = parse_date(row.get(column))
        for column in ("created_at", "updated_at"):
            data[column] = parse_timestamp(row.get(column))
        data["status"] = row.get("status") or "available"
        return cls(**data)
