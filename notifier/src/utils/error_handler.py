"""
Error handling utilities with exponential backoff retry logic.

Provides a retry decorator and error classification for transient vs
permanent failures when talking to the Supabase REST and auth endpoints.
"""

import functools
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Tuple, Type

import httpx
import structlog


logger = structlog.get_logger(__name__)


class ErrorCategory(Enum):
    """Error category classification"""
    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"
    RATE_LIMITED = "rate_limited"


@dataclass
class RetryConfig:
    """Configuration for retry behavior"""
    max_attempts: int = 3
    initial_delay: float = 0.2  # seconds
    max_delay: float = 10.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.2  # +/- 20%


@dataclass
class RetryMetrics:
    """Counters for retry operations"""
    total_attempts: int = 0
    successful_attempts: int = 0
    failed_attempts: int = 0
    retry_count: int = 0
    last_error: Optional[str] = None
    last_error_timestamp: Optional[datetime] = None


# Transport-level failures worth another attempt
RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
)

NON_RETRYABLE_EXCEPTIONS = (
    ValueError,
    TypeError,
    KeyError,
    AttributeError,
)

RETRYABLE_STATUS_CODES = {408, 500, 502, 503, 504}


def _status_code(exception: Exception) -> Optional[int]:
    """Extract an HTTP status code from httpx or postgrest errors."""
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code

    # postgrest APIError carries the status as a string code
    code = getattr(exception, "code", None)
    if isinstance(code, int):
        return code
    if isinstance(code, str) and code.isdigit():
        return int(code)
    return None


def classify_error(exception: Exception) -> ErrorCategory:
    """
    Classify an exception as retryable or non-retryable.

    Args:
        exception: The exception to classify

    Returns:
        ErrorCategory indicating retry behavior
    """
    status_code = _status_code(exception)
    if status_code is not None:
        if status_code == 429:
            return ErrorCategory.RATE_LIMITED
        if status_code in RETRYABLE_STATUS_CODES:
            return ErrorCategory.RETRYABLE
        if 400 <= status_code < 500:
            return ErrorCategory.NON_RETRYABLE

    if isinstance(exception, RETRYABLE_EXCEPTIONS):
        return ErrorCategory.RETRYABLE

    if isinstance(exception, NON_RETRYABLE_EXCEPTIONS):
        return ErrorCategory.NON_RETRYABLE

    error_msg = str(exception).lower()
    retryable_patterns = [
        "connection",
        "timeout",
        "timed out",
        "unavailable",
        "temporary",
    ]

    if any(pattern in error_msg for pattern in retryable_patterns):
        return ErrorCategory.RETRYABLE

    return ErrorCategory.NON_RETRYABLE


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay for retry attempt with exponential backoff and jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay = config.initial_delay * (config.exponential_base ** attempt)
    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter = random.uniform(-config.jitter_range, config.jitter_range)
        delay = delay * (1 + jitter)

    return max(0, delay)


def retry_after_seconds(exception: Exception) -> Optional[float]:
    """Seconds requested by the ``Retry-After`` header of an HTTP error response, if any."""
    if not isinstance(exception, httpx.HTTPStatusError):
        return None
    value = exception.response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        # HTTP-date form is not used by Supabase
        return None


def retry_with_backoff(
    config: Optional[RetryConfig] = None,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    on_retry: Optional[Callable] = None,
    metrics: Optional[RetryMetrics] = None,
):
    """
    Decorator for retrying operations with exponential backoff.

    Rate-limited responses wait for their ``Retry-After`` hint (capped at
    ``max_delay``) instead of the computed backoff.

    Args:
        config: Retry configuration (uses defaults if None)
        retryable_exceptions: Extra exception types that are always retried
        on_retry: Optional callback called as ``on_retry(attempt, error, delay)``
        metrics: Optional metrics object to track retry stats

    Returns:
        Decorated function with retry logic

    Example:
        @retry_with_backoff(RetryConfig(max_attempts=5))
        def fetch_contracts(user_id):
            return client.table("contracts").select("*").execute()
    """
    config = config or RetryConfig()
    metrics = metrics or RetryMetrics()
    forced_retry = retryable_exceptions or ()

    def categorize(error: Exception) -> ErrorCategory:
        return ErrorCategory.RETRYABLE if isinstance(error, forced_retry) else classify_error(error)

    def next_delay(attempt: int, error: Exception, category: ErrorCategory) -> float:
        hinted = retry_after_seconds(error) if category == ErrorCategory.RATE_LIMITED else None
        if hinted is not None:
            return min(hinted, config.max_delay)
        return calculate_delay(attempt, config)

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                metrics.total_attempts += 1
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    category = categorize(e)
                    metrics.last_error = str(e)
                    metrics.last_error_timestamp = datetime.now(timezone.utc)

                    exhausted = attempt + 1 >= config.max_attempts
                    if category == ErrorCategory.NON_RETRYABLE or exhausted:
                        metrics.failed_attempts += 1
                        logger.error(
                            "retry_gave_up" if exhausted else "non_retryable_error",
                            function=func.__name__,
                            attempts=attempt + 1,
                            error_type=type(e).__name__,
                            error=str(e),
                        )
                        raise

                    delay = next_delay(attempt, e, category)
                    metrics.retry_count += 1
                    logger.warning(
                        "retrying_operation",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_attempts=config.max_attempts,
                        delay_seconds=round(delay, 3),
                        error_category=category.value,
                    )
                    if on_retry:
                        on_retry(attempt, e, delay)

                    time.sleep(delay)
                    attempt += 1
                    continue

                metrics.successful_attempts += 1
                return result

        return wrapper

    return decorator
