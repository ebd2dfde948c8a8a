"""Read access to the ``contracts`` and ``cars`` tables."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from ..models.fleet import DEFAULT_TIMEZONE, Contract, Vehicle
from .base import SupabaseRepository

logger = structlog.get_logger(__name__)


class ContractRepository(SupabaseRepository):
    """Repository for rental contracts."""

    table_name = "contracts"

    def __init__(self, client, retry_attempts: int = 3, tz_name: str = DEFAULT_TIMEZONE):
        super().__init__(client, retry_attempts)
        self.tz_name = tz_name

    def _to_contracts(self, rows: List[Dict[str, Any]]) -> List[Contract]:
        contracts = []
        for row in rows:
            try:
                contracts.append(Contract.from_row(row, self.tz_name))
            except (ValidationError, ValueError) as e:
                # One malformed row must not hide the rest of the fleet
                logger.warning("contract_row_skipped", contract_id=row.get("id"), error=str(e))
        return contracts

    def list_for_user(self, user_id: str) -> List[Contract]:
        """
        Get all contracts of a user, ordered by pickup date.

        Args:
            user_id: Owner user ID

        Returns:
            List of contracts
        """
        query = self._table().select("*").eq("user_id", user_id).order("pickup_date")
        return self._to_contracts(self._execute("list_contracts", query, read=True))

    def list_created_since(self, user_id: str, since: datetime) -> List[Contract]:
        """Get contracts of a user created at or after ``since``."""
        query = (
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .gte("created_at", since.isoformat())
            .order("created_at", desc=True)
        )
        return self._to_contracts(self._execute("list_recent_contracts", query, read=True))

    def get(self, contract_id: str) -> Optional[Contract]:
        """
        Get a contract by ID.

        Returns:
            Contract or None if not found
        """
        query = self._table().select("*").eq("id", contract_id).limit(1)
        contracts = self._to_contracts(self._execute("get_contract", query, read=True))
        return contracts[0] if contracts else None


class VehicleRepository(SupabaseRepository):
    """Repository for fleet vehicles."""

    table_name = "cars"

    def _to_vehicles(self, rows: List[Dict[str, Any]]) -> List[Vehicle]:
        vehicles = []
        for row in rows:
            try:
                vehicles.append(Vehicle.from_row(row))
            except (ValidationError, ValueError) as e:
                logger.warning("vehicle_row_skipped", vehicle_id=row.get("id"), error=str(e))
        return vehicles

    def list_for_user(self, user_id: str) -> List[Vehicle]:
        query = self._table().select("*").eq("user_id", user_id).order("license_plate")
        return self._to_vehicles(self._execute("list_vehicles", query, read=True))

    def get(self, vehicle_id: str) -> Optional[Vehicle]:
        """Get a vehicle by ID. Unreadable rows are reported as missing."""
        query = self._table().select("*").eq("id", vehicle_id).limit(1)
        vehicles = self._to_vehicles(self._execute("get_vehicle", query, read=True))
        return vehicles[0] if vehicles else None
