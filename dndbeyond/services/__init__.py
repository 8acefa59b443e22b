"""
Service layer infrastructure - resilience patterns for D&D Beyond API calls.

Provides:
- TtlCache: In-memory cache with per-entry expiry
- RateLimiter: Token bucket limiter for outbound calls
- CircuitBreaker: Prevents hammering a failing upstream
- with_retry: Exponential backoff for transient failures
- DdbClient: Request pipeline combining all patterns
"""

from dndbeyond.exceptions import (
    ServiceError,
    NotAuthenticatedError,
    TokenExchangeError,
    HttpError,
    CircuitOpenError,
    RequestTimeoutError,
)
from dndbeyond.services.cache import MISSING, TtlCache, CacheEntry, CacheStats
from dndbeyond.services.rate_limiter import RateLimiter
from dndbeyond.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from dndbeyond.services.retry import (
    RETRYABLE_STATUS_CODES,
    NON_RETRYABLE_STATUS_CODES,
    is_retryable,
    with_retry,
)
from dndbeyond.services.client import DdbClient, unwrap_envelope

__all__ = [
    # Errors
    "ServiceError",
    "NotAuthenticatedError",
    "TokenExchangeError",
    "HttpError",
    "CircuitOpenError",
    "RequestTimeoutError",
    # Cache
    "MISSING",
    "TtlCache",
    "CacheEntry",
    "CacheStats",
    # Rate Limiter
    "RateLimiter",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    # Retry
    "RETRYABLE_STATUS_CODES",
    "NON_RETRYABLE_STATUS_CODES",
    "is_retryable",
    "with_retry",
    # Client
    "DdbClient",
    "unwrap_envelope",
]
