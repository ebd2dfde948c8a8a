"""
Unit tests for exponential backoff retry logic.

Tests the retry decorator and error classification used for transient
failures of the Supabase REST and auth endpoints.
"""

from unittest.mock import Mock, patch

import httpx
import pytest
from postgrest.exceptions import APIError

from notifier.src.utils.error_handler import (
    ErrorCategory,
    RetryConfig,
    RetryMetrics,
    calculate_delay,
    classify_error,
    retry_after_seconds,
    retry_with_backoff,
)


def status_error(status_code):
    request = httpx.Request("GET", "https://example.supabase.co/rest/v1/contracts")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("failed", request=request, response=response)


class TestErrorClassification:
    """Test retryable vs non-retryable classification"""

    @pytest.mark.parametrize("status_code,expected", [
        (429, ErrorCategory.RATE_LIMITED),
        (503, ErrorCategory.RETRYABLE),
        (504, ErrorCategory.RETRYABLE),
        (401, ErrorCategory.NON_RETRYABLE),
        (404, ErrorCategory.NON_RETRYABLE),
    ])
    def test_http_status(self, status_code, expected):
        assert classify_error(status_error(status_code)) == expected

    def test_postgrest_string_code(self):
        """Test that PostgREST errors with numeric string codes are classified by status"""
        error = APIError({"message": "upstream unavailable", "code": "503"})
        assert classify_error(error) == ErrorCategory.RETRYABLE

    def test_postgrest_sql_state_is_not_retried(self):
        error = APIError({"message": "duplicate key value", "code": "23505"})
        assert classify_error(error) == ErrorCategory.NON_RETRYABLE

    def test_transport_errors_retryable(self):
        assert classify_error(httpx.ConnectError("refused")) == ErrorCategory.RETRYABLE
        assert classify_error(TimeoutError()) == ErrorCategory.RETRYABLE

    def test_programming_errors_not_retryable(self):
        assert classify_error(ValueError("bad")) == ErrorCategory.NON_RETRYABLE
        assert classify_error(KeyError("id")) == ErrorCategory.NON_RETRYABLE

    def test_message_patterns(self):
        assert classify_error(RuntimeError("service temporarily unavailable")) == ErrorCategory.RETRYABLE
        assert classify_error(RuntimeError("something odd")) == ErrorCategory.NON_RETRYABLE


class TestExponentialBackoff:
    """Test exponential backoff retry logic"""

    @pytest.fixture
    def retry_config(self):
        # Disable jitter for deterministic tests
        return RetryConfig(max_attempts=3, initial_delay=0.1, max_delay=1.0, exponential_base=2, jitter=False)

    def test_delay_grows_exponentially(self, retry_config):
        assert calculate_delay(0, retry_config) == pytest.approx(0.1)
        assert calculate_delay(1, retry_config) == pytest.approx(0.2)
        assert calculate_delay(2, retry_config) == pytest.approx(0.4)

    def test_delay_capped(self, retry_config):
        assert calculate_delay(10, retry_config) == 1.0

    def test_jitter_within_range(self):
        config = RetryConfig(initial_delay=1.0, jitter=True, jitter_range=0.2)
        for _ in range(20):
            assert 0.8 <= calculate_delay(0, config) <= 1.2

    @patch("notifier.src.utils.error_handler.time.sleep")
    def test_successful_operation_no_retry(self, mock_sleep, retry_config):
        operation = Mock(return_value="success")

        assert retry_with_backoff(retry_config)(operation)() == "success"
        assert operation.call_count == 1
        mock_sleep.assert_not_called()

    @patch("notifier.src.utils.error_handler.time.sleep")
    def test_transient_failure_then_success(self, mock_sleep, retry_config):
        operation = Mock(side_effect=[httpx.ConnectError("refused"), "success"])
        operation.__name__ = "fetch"
        metrics = RetryMetrics()

        result = retry_with_backoff(retry_config, metrics=metrics)(operation)()

        assert result == "success"
        assert operation.call_count == 2
        mock_sleep.assert_called_once_with(pytest.approx(0.1))
        assert metrics.retry_count == 1
        assert metrics.successful_attempts == 1

    @patch("notifier.src.utils.error_handler.time.sleep")
    def test_max_attempts_exhausted(self, mock_sleep, retry_config):
        operation = Mock(side_effect=httpx.ReadTimeout("slow"))
        operation.__name__ = "fetch"

        with pytest.raises(httpx.ReadTimeout):
            retry_with_backoff(retry_config)(operation)()

        assert operation.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("notifier.src.utils.error_handler.time.sleep")
    def test_non_retryable_raises_immediately(self, mock_sleep, retry_config):
        operation = Mock(side_effect=status_error(400))
        operation.__name__ = "fetch"

        with pytest.raises(httpx.HTTPStatusError):
            retry_with_backoff(retry_config)(operation)()

        assert operation.call_count == 1
        mock_sleep.assert_not_called()

    @patch("notifier.src.utils.error_handler.time.sleep")
    def test_forced_retry_and_callback(self, mock_sleep, retry_config):
        class FlakyError(Exception):
            pass

        on_retry = Mock()
        operation = Mock(side_effect=[FlakyError("x"), "ok"])
        operation.__name__ = "fetch"

        decorated = retry_with_backoff(retry_config, retryable_exceptions=(FlakyError,), on_retry=on_retry)(operation)

        assert decorated() == "ok"
        on_retry.assert_called_once()
        assert on_retry.call_args.args[0] == 0


class TestRetryAfter:
    """Test rate-limit hints from the REST gateway"""

    def rate_limited(self, retry_after):
        request = httpx.Request("GET", "https://example.supabase.co/rest/v1/cars")
        response = httpx.Response(429, request=request, headers={"Retry-After": retry_after})
        return httpx.HTTPStatusError("rate limited", request=request, response=response)

    def test_parse_header(self):
        assert retry_after_seconds(self.rate_limited("3")) == 3.0
        assert retry_after_seconds(self.rate_limited("Wed, 21 Oct 2015 07:28:00 GMT")) is None
        assert retry_after_seconds(ValueError("x")) is None

    @patch("notifier.src.utils.error_handler.time.sleep")
    def test_hint_replaces_backoff(self, mock_sleep):
        operation = Mock(side_effect=[self.rate_limited("2"), "ok"])
        operation.__name__ = "fetch"

        assert retry_with_backoff(RetryConfig(jitter=False))(operation)() == "ok"
        mock_sleep.assert_called_once_with(2.0)

    @patch("notifier.src.utils.error_handler.time.sleep")
    def test_hint_capped_at_max_delay(self, mock_sleep):
        operation = Mock(side_effect=[self.rate_limited("120"), "ok"])
        operation.__name__ = "fetch"

        retry_with_backoff(RetryConfig(max_delay=10.0))(operation)()
        mock_sleep.assert_called_once_with(10.0)
