"""Background job runner."""

from .background_jobs import BackgroundJobs
from .session import SupabaseSessionUser

__all__ = ["BackgroundJobs", "SupabaseSessionUser"]
