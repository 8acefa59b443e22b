"""
DdbClient - Async HTTP client for D&D Beyond with resilience patterns.

Every non-cached request runs through the same pipeline, in this order:
- RateLimiter.acquire()
- CircuitBreaker.execute()
- with_retry() around the actual HTTP call

GET responses are cached by caller-supplied key; PUT requests bypass the
cache and invalidate the keys they affect.
"""

from datetime import timedelta
from typing import Any

import httpx
from loguru import logger

from dndbeyond.api.auth import CobaltTokenProvider, CredentialStore
from dndbeyond.exceptions import (
    HttpError,
    NotAuthenticatedError,
    RequestTimeoutError,
    ServiceError,
    TokenExchangeError,
)
from dndbeyond.services.cache import MISSING, TtlCache
from dndbeyond.services.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from dndbeyond.services.rate_limiter import RateLimiter
from dndbeyond.services.retry import with_retry
from dndbeyond.settings import Settings, global_settings

SERVICE_ID = "dndbeyond"
CHARACTER_SERVICE_HOST = "character-service.dndbeyond.com"


def unwrap_envelope(payload: Any) -> Any:
    """Extract data from a {success, message, data} envelope; pass other shapes through."""
    if isinstance(payload, dict) and "success" in payload and "data" in payload:
        return payload["data"]
    return payload


class DdbClient:
    """
    D&D Beyond client with caching, rate limiting, circuit breaker and retry.

    Usage:
        async with DdbClient(cache, breaker, limiter) as client:
            character = await client.get(
                endpoints.character_get(42), "character:42", ttl=CHARACTER_TTL
            )
            await client.put(
                endpoints.character_update_hp(), {...}, ["character:42"]
            )
    """

    def __init__(
        self,
        cache: TtlCache,
        circuit_breaker: CircuitBreaker,
        rate_limiter: RateLimiter,
        store: CredentialStore | None = None,
        token_provider: CobaltTokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        timeout: float = 30.0,
    ):
        self._cache = cache
        self._circuit_breaker = circuit_breaker
        self._rate_limiter = rate_limiter
        self._store = store or CredentialStore()
        self._token_provider = token_provider or CobaltTokenProvider(
            self._store, http_client
        )
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._timeout = timeout
        self._auth_expired = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        store: CredentialStore | None = None,
        **kwargs: Any,
    ) -> "DdbClient":
        """Build a client with fresh cache, limiter and breaker from settings."""
        settings = settings or global_settings
        return cls(
            cache=TtlCache(
                default_ttl=settings.cache_ttl,
                max_size=settings.cache_max_size,
                debug=settings.debug,
            ),
            circuit_breaker=CircuitBreaker(
                SERVICE_ID,
                CircuitBreakerConfig(
                    failure_threshold=settings.circuit_threshold,
                    cooldown=timedelta(seconds=settings.circuit_cooldown),
                ),
            ),
            rate_limiter=RateLimiter(
                max_tokens=settings.rate_limit_max_tokens,
                refill_interval=settings.rate_limit_refill_interval,
            ),
            store=store or CredentialStore(settings.config_dir),
            max_retries=settings.max_retries,
            retry_base_delay=settings.retry_base_delay,
            timeout=settings.request_timeout,
            **kwargs,
        )

    @property
    def is_auth_expired(self) -> bool:
        """True once a 401 was seen, until the next successful request."""
        return self._auth_expired

    def reset_auth_expired(self) -> None:
        self._auth_expired = False

    @property
    def cache(self) -> TtlCache:
        return self._cache

    @property
    def store(self) -> CredentialStore:
        return self._store

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
            self._owns_http_client = True
            self._token_provider.set_http_client(self._http_client)
        return self._http_client

    async def get(self, url: str, cache_key: str, ttl: timedelta | None = None) -> Any:
        """
        Fetch a resource, serving it from cache when possible.

        Args:
            url: Full URL to request
            cache_key: Key the unwrapped payload is cached under
            ttl: Cache TTL (uses the cache default if not specified)

        Returns:
            The unwrapped response payload

        Raises:
            NotAuthenticatedError: No stored credentials
            CircuitOpenError: Circuit breaker is open
            HttpError: Non-2xx response (after retries where retryable)
        """
        cached = await self._cache.get(cache_key, MISSING)
        if cached is not MISSING:
            return cached

        result = await self._request("GET", url)
        await self._cache.set(cache_key, result, ttl)
        return result

    async def put(
        self,
        url: str,
        body: Any,
        invalidate_cache_keys: list[str] | None = None,
    ) -> Any:
        """
        Send a mutation. Never served from cache.

        Args:
            url: Full URL to request
            body: JSON-serialisable request body
            invalidate_cache_keys: Keys to drop from the cache on success

        Returns:
            The unwrapped response payload
        """
        result = await self._request("PUT", url, json_data=body)
        for key in invalidate_cache_keys or []:
            await self._cache.invalidate(key)
        return result

    async def _request(
        self, method: str, url: str, json_data: Any | None = None
    ) -> Any:
        # Missing credentials never reach the limiter or the breaker
        if not self._store.has_credentials():
            raise NotAuthenticatedError()

        await self._rate_limiter.acquire()

        async def attempt() -> Any:
            return await self._execute_request(method, url, json_data)

        payload = await self._circuit_breaker.execute(
            lambda: with_retry(
                attempt,
                max_retries=self._max_retries,
                base_delay=self._retry_base_delay,
            )
        )
        return unwrap_envelope(payload)

    async def _execute_request(
        self, method: str, url: str, json_data: Any | None
    ) -> Any:
        """Execute the actual HTTP request."""
        client = await self._get_http_client()
        try:
            headers = await self._build_headers(url)
        except TokenExchangeError as e:
            if e.status_code == 401:
                self._auth_expired = True
                logger.warning("D&D Beyond session rejected by token exchange")
            raise

        try:
            response = await client.request(
                method=method,
                url=url,
                headers=headers,
                json=json_data,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(SERVICE_ID, self._timeout) from e
        except httpx.RequestError as e:
            raise ServiceError(str(e), service_id=SERVICE_ID) from e

        if not response.is_success:
            if response.status_code == 401:
                self._auth_expired = True
                self._token_provider.invalidate()
                logger.warning("D&D Beyond session rejected with 401")
            raise HttpError(
                response.status_code, response.reason_phrase, service_id=SERVICE_ID
            )

        self._auth_expired = False
        if not response.content:
            return None
        return response.json()

    async def _build_headers(self, url: str) -> dict[str, str]:
        token = await self._token_provider.get_bearer_token()

        # character-service accepts the bearer token alone
        if CHARACTER_SERVICE_HOST in url:
            return {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }

        headers = self._store.get_session_headers()
        headers["Authorization"] = f"Bearer {token}"
        return headers

    async def close(self) -> None:
        """Close the HTTP clients this client or its token provider created."""
        if self._http_client and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
        await self._token_provider.aclose()
        logger.debug("DdbClient closed")

    async def __aenter__(self) -> "DdbClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def get_health_status(self) -> dict[str, Any]:
        """Get health status of the pipeline components."""
        return {
            "cache": self._cache.get_stats().to_dict(),
            "circuit_breaker": self._circuit_breaker.get_status(),
            "rate_limiter": self._rate_limiter.get_status(),
            "auth_expired": self._auth_expired,
        }


# Global client instance
_global_client: DdbClient | None = None


def get_ddb_client() -> DdbClient:
    """Get the global client instance."""
    global _global_client
    if _global_client is None:
        _global_client = DdbClient.from_settings()
    return _global_client


async def close_ddb_client() -> None:
    """Close the global client."""
    global _global_client
    if _global_client:
        await _global_client.close()
        _global_client = None
