"""Tests for retry with backoff."""

from unittest.mock import AsyncMock, call, patch

import pytest

from dndbeyond.exceptions import (
    HttpError,
    NotAuthenticatedError,
    ServiceError,
    TokenExchangeError,
)
from dndbeyond.services.retry import calculate_backoff, is_retryable, with_retry


class TestCalculateBackoff:
    """Test backoff calculation."""

    def test_exponential_backoff(self):
        assert calculate_backoff(0, 1.0) == 1.0
        assert calculate_backoff(1, 1.0) == 2.0
        assert calculate_backoff(2, 1.0) == 4.0

    def test_scales_with_base_delay(self):
        assert calculate_backoff(3, 0.5) == 4.0


class TestIsRetryable:
    """Test failure classification."""

    @pytest.mark.parametrize("status", [401, 403, 404])
    def test_client_errors_are_not_retryable(self, status):
        assert is_retryable(HttpError(status)) is False

    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    def test_transient_statuses_are_retryable(self, status):
        assert is_retryable(HttpError(status)) is True

    def test_other_statuses_are_retryable(self):
        assert is_retryable(HttpError(418)) is True

    def test_generic_errors_are_retryable(self):
        assert is_retryable(ServiceError("connection reset")) is True
        assert is_retryable(RuntimeError("boom")) is True

    def test_not_authenticated_is_not_retryable(self):
        assert is_retryable(NotAuthenticatedError()) is False

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_token_exchange_is_not_retryable(self, status):
        assert is_retryable(TokenExchangeError("rejected", status_code=status)) is False

    @pytest.mark.parametrize("status", [500, None])
    def test_other_token_exchange_failures_are_retryable(self, status):
        assert is_retryable(TokenExchangeError("failed", status_code=status)) is True


class TestWithRetry:
    """Test the retry loop."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self):
        operation = AsyncMock(return_value="ok")

        assert await with_retry(operation) == "ok"
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_500_then_succeeds_with_backoff(self):
        """Two 500s then success: waits base*1 then base*2."""
        operation = AsyncMock(side_effect=[HttpError(500), HttpError(500), "ok"])

        with patch(
            "dndbeyond.services.retry.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            result = await with_retry(operation, max_retries=3, base_delay=1.0)

        assert result == "ok"
        assert operation.await_count == 3
        assert mock_sleep.await_args_list == [call(1.0), call(2.0)]

    @pytest.mark.asyncio
    async def test_404_is_never_retried(self):
        operation = AsyncMock(side_effect=HttpError(404))

        with patch(
            "dndbeyond.services.retry.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            with pytest.raises(HttpError) as exc_info:
                await with_retry(operation)

        assert exc_info.value.status_code == 404
        assert operation.await_count == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self):
        """max_retries=3 means four attempts in total."""
        errors = [HttpError(503), HttpError(502), HttpError(500), HttpError(429)]
        operation = AsyncMock(side_effect=errors)

        with patch(
            "dndbeyond.services.retry.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            with pytest.raises(HttpError) as exc_info:
                await with_retry(operation, max_retries=3, base_delay=0.5)

        assert exc_info.value is errors[-1]
        assert operation.await_count == 4
        assert mock_sleep.await_args_list == [call(0.5), call(1.0), call(2.0)]

    @pytest.mark.asyncio
    async def test_zero_retries_makes_single_attempt(self):
        operation = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await with_retry(operation, max_retries=0)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_generic_errors_are_retried(self):
        operation = AsyncMock(side_effect=[ServiceError("reset"), "ok"])

        with patch("dndbeyond.services.retry.asyncio.sleep", new_callable=AsyncMock):
            assert await with_retry(operation) == "ok"

        assert operation.await_count == 2
