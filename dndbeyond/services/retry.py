"""
Retry with exponential backoff.

Client and auth errors (401/403/404, missing credentials) will not resolve by
retrying and are re-raised at once. Everything else, including 429/5xx and
transport failures, is retried with delays of base_delay * 2**attempt.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from dndbeyond.exceptions import HttpError, NotAuthenticatedError, TokenExchangeError

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503})
NON_RETRYABLE_STATUS_CODES = frozenset({401, 403, 404})


def is_retryable(error: BaseException) -> bool:
    """Decide whether a failure is worth another attempt."""
    if isinstance(error, NotAuthenticatedError):
        return False
    if isinstance(error, (HttpError, TokenExchangeError)):
        return error.status_code not in NON_RETRYABLE_STATUS_CODES
    return True


def calculate_backoff(attempt: int, base_delay: float) -> float:
    """Delay in seconds before retrying after a zero-indexed attempt."""
    return base_delay * (2**attempt)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> T:
    """
    Run operation, retrying transient failures.

    Args:
        operation: Async callable to run; invoked once per attempt
        max_retries: Retries after the initial attempt
        base_delay: Delay in seconds before the first retry

    Returns:
        The first successful result

    Raises:
        The last underlying error once retries are exhausted, or the first
        non-retryable error.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise

            if attempt >= max_retries:
                logger.error(f"All {max_retries + 1} attempts failed: {e}")
                raise

            delay = calculate_backoff(attempt, base_delay)
            logger.warning(
                f"Attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)
            attempt += 1
