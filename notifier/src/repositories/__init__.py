"""Supabase table repositories."""

from .base import RepositoryError, SupabaseRepository, create_supabase_client
from .fleet_repo import ContractRepository, VehicleRepository
from .notification_repo import DailyCountRepository, HistoryRepository, PreferencesRepository

__all__ = [
    "RepositoryError",
    "SupabaseRepository",
    "create_supabase_client",
    "ContractRepository",
    "VehicleRepository",
    "DailyCountRepository",
    "HistoryRepository",
    "PreferencesRepository",
]
