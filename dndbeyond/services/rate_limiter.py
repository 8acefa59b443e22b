"""
RateLimiter - Token bucket limiter gating outbound call rate.

The bucket holds up to max_tokens tokens and regains max_tokens tokens per
whole refill_interval elapsed. Refills are computed lazily on acquire, never
by a background timer.
"""

import asyncio
import math
import time
from typing import Any

from loguru import logger


class RateLimiter:
    """
    Token bucket rate limiter.

    Usage:
        limiter = RateLimiter(max_tokens=2, refill_interval=1.0)

        await limiter.acquire()  # suspends until a token is available
        response = await http_client.get(url)
    """

    def __init__(self, max_tokens: int = 2, refill_interval: float = 1.0):
        if max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if refill_interval <= 0:
            raise ValueError("refill_interval must be positive")

        self.max_tokens = max_tokens
        self.refill_interval = refill_interval

        self._tokens = max_tokens
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        """Add tokens for every whole interval elapsed since the last refill."""
        now = time.monotonic()
        intervals = math.floor((now - self._last_refill) / self.refill_interval)
        if intervals > 0:
            self._tokens = min(
                self.max_tokens, self._tokens + intervals * self.max_tokens
            )
            self._last_refill += intervals * self.refill_interval

    async def acquire(self) -> None:
        """Suspend until a token is available, then consume it."""
        async with self._lock:
            self._refill()
            while self._tokens < 1:
                wait = self._last_refill + self.refill_interval - time.monotonic()
                logger.debug(f"Rate limited, waiting {max(0.0, wait):.3f}s")
                await asyncio.sleep(max(0.0, wait))
                self._refill()
            self._tokens -= 1

    @property
    def available_tokens(self) -> int:
        """Tokens available right now."""
        self._refill()
        return self._tokens

    def reset(self) -> None:
        """Reset the bucket to full."""
        self._tokens = self.max_tokens
        self._last_refill = time.monotonic()

    def get_status(self) -> dict[str, Any]:
        """Get current status as dictionary."""
        return {
            "available_tokens": self.available_tokens,
            "max_tokens": self.max_tokens,
            "refill_interval": self.refill_interval,
        }
