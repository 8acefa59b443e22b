"""
CircuitBreaker - Prevents cascading failures by stopping requests to a failing upstream.

States:
- CLOSED: Normal operation, requests pass through
- OPEN: Upstream is failing, requests are rejected without being attempted
- HALF_OPEN: A single trial request decides whether to close or reopen

Transitions (driven only by calls passed through execute):
- CLOSED → OPEN: When failure_threshold consecutive failures are reached
- OPEN → HALF_OPEN: On the first call after cooldown since the last failure
- HALF_OPEN → CLOSED: On successful request
- HALF_OPEN → OPEN: On failed request
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

from dndbeyond.exceptions import CircuitOpenError

T = TypeVar("T")


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "CLOSED"  # Normal operation
    OPEN = "OPEN"  # Blocking requests
    HALF_OPEN = "HALF_OPEN"  # Trial request in flight


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    failure_threshold: int = 5  # Failures before opening
    cooldown: timedelta = timedelta(seconds=30)  # Time before a trial request


class CircuitBreaker:
    """
    Circuit breaker guarding a single upstream.

    Usage:
        cb = CircuitBreaker("dndbeyond")

        result = await cb.execute(lambda: fetch_character(1))
    """

    def __init__(
        self,
        service_id: str = "dndbeyond",
        config: CircuitBreakerConfig | None = None,
    ):
        self.service_id = service_id
        self.config = config or CircuitBreakerConfig()

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: datetime | None = None

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run operation through the breaker.

        Raises:
            CircuitOpenError: If the circuit is open and still cooling down.
                The operation is not invoked.
        """
        if self._state == CircuitState.OPEN:
            if self._cooldown_elapsed():
                self._state = CircuitState.HALF_OPEN
                logger.info(
                    f"Circuit breaker '{self.service_id}' transitioned to HALF_OPEN"
                )
            else:
                raise CircuitOpenError(
                    self.service_id, self.get_time_until_reset() or 0
                )

        try:
            result = await operation()
        except Exception:
            self.record_failure()
            raise

        self.record_success()
        return result

    def record_success(self) -> None:
        """Record a successful request."""
        if self._state == CircuitState.HALF_OPEN:
            logger.info(f"Circuit breaker '{self.service_id}' CLOSED (recovered)")
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Record a failed request."""
        self._failure_count += 1
        self._last_failure_time = datetime.now()

        if (
            self._state == CircuitState.HALF_OPEN
            or self._failure_count >= self.config.failure_threshold
        ):
            self._open()

    def _open(self) -> None:
        """Transition to OPEN state."""
        self._state = CircuitState.OPEN
        logger.warning(
            f"Circuit breaker '{self.service_id}' OPENED after {self._failure_count} failures"
        )

    def _cooldown_elapsed(self) -> bool:
        if self._last_failure_time is None:
            return True
        return datetime.now() - self._last_failure_time >= self.config.cooldown

    def reset(self) -> None:
        """Manually reset the circuit breaker."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time = None
        logger.info(f"Circuit breaker '{self.service_id}' manually reset")

    def get_time_until_reset(self) -> float | None:
        """Get seconds until a trial request is allowed."""
        if self._state != CircuitState.OPEN or not self._last_failure_time:
            return None

        reset_at = self._last_failure_time + self.config.cooldown
        remaining = (reset_at - datetime.now()).total_seconds()
        return max(0, remaining)

    def get_status(self) -> dict[str, Any]:
        """Get current status as dictionary."""
        return {
            "service_id": self.service_id,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "last_failure": (
                self._last_failure_time.isoformat() if self._last_failure_time else None
            ),
            "time_until_reset": self.get_time_until_reset(),
        }
