"""
Supabase client factory and the common repository base.

All table access goes through ``SupabaseRepository._execute`` so that
transport and PostgREST failures surface as a single ``RepositoryError``.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..config import SupabaseConfig
from ..utils.error_handler import RetryConfig, retry_with_backoff

logger = structlog.get_logger(__name__)


class RepositoryError(Exception):
    """Raised when the hosted database cannot serve a request."""

    def __init__(self, operation: str, message: str, code: Optional[str] = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.code = code


def create_supabase_client(config: SupabaseConfig) -> Client:
    """
    Create a Supabase client from configuration.

    Args:
        config: Supabase connection settings

    Returns:
        Supabase client
    """
    client = create_client(config.url, config.key)
    logger.info("supabase_client_created", url=config.url)
    return client


class SupabaseRepository:
    """Base class for repositories backed by one Supabase table."""

    table_name: str = ""

    def __init__(self, client: Client, retry_attempts: int = 3):
        """
        Initialize repository.

        Args:
            client: Supabase client
            retry_attempts: Attempts for read queries on transient failures
        """
        self.client = client
        self._execute_read = retry_with_backoff(RetryConfig(max_attempts=retry_attempts))(
            self._execute_raw
        )

    def _table(self):
        return self.client.table(self.table_name)

    @staticmethod
    def _execute_raw(query: Any) -> Any:
        return query.execute()

    def _execute(self, operation: str, query: Any, read: bool = False) -> List[Dict[str, Any]]:
        """
        Execute a query builder and return its rows.

        Args:
            operation: Name used in logs and errors
            query: PostgREST request builder
            read: Retry transient failures (reads only)

        Returns:
            Rows returned by the query

        Raises:
            RepositoryError: On any backend failure
        """
        try:
            response = self._execute_read(query) if read else self._execute_raw(query)
        except APIError as e:
            logger.error(
                "repository_query_failed",
                table=self.table_name,
                operation=operation,
                code=e.code,
                error=e.message,
            )
            raise RepositoryError(operation, str(e.message), code=e.code) from e
        except httpx.HTTPError as e:
            logger.error(
                "repository_transport_failed",
                table=self.table_name,
                operation=operation,
                error=str(e),
            )
            raise RepositoryError(operation, str(e)) from e

        return response.data or []
