"""Pytest configuration and fixtures for dndbeyond tests."""

from datetime import timedelta
from typing import Callable

import httpx
import pytest

from dndbeyond.api.auth import COBALT_TOKEN_URL, CookieEntry, CredentialStore
from dndbeyond.services.cache import TtlCache
from dndbeyond.services.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from dndbeyond.services.client import DdbClient
from dndbeyond.services.rate_limiter import RateLimiter

CHARACTER_URL = "https://character-service.dndbeyond.com/character/v5/character/1"
CAMPAIGN_URL = "https://www.dndbeyond.com/api/campaign/stt/active-campaigns"


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.dndbeyond-mcp."""
    monkeypatch.setattr(
        "dndbeyond.settings.global_settings.config_dir", tmp_path / "default-config"
    )


@pytest.fixture
def store(tmp_path) -> CredentialStore:
    """Credential store holding a CobaltSession and a User.ID cookie."""
    store = CredentialStore(tmp_path / "creds")
    store.save_cookies(
        [
            CookieEntry(name="CobaltSession", value="cobalt-abc"),
            CookieEntry(name="User.ID", value="12345"),
        ]
    )
    return store


@pytest.fixture
def empty_store(tmp_path) -> CredentialStore:
    """Credential store with no saved file."""
    return CredentialStore(tmp_path / "empty")


class FakeUpstream:
    """Routes MockTransport requests and records what was sent."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.token_requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []
        self.default: Callable[[httpx.Request], httpx.Response] = lambda r: httpx.Response(
            200, json={"success": True, "message": "", "data": {"id": 1}}
        )
        self.token_payload = {"token": "bearer-xyz", "ttl": 300}
        self.token_status = 200

    def queue(self, *responses: httpx.Response) -> None:
        self.responses.extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == COBALT_TOKEN_URL:
            self.token_requests.append(request)
            return httpx.Response(self.token_status, json=self.token_payload)
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return self.default(request)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def http_client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def make_client(store, http_client):
    """Build a DdbClient with fresh components and no backoff delay."""

    def _make(**overrides) -> DdbClient:
        params = {
            "cache": TtlCache(default_ttl=timedelta(seconds=60)),
            "circuit_breaker": CircuitBreaker(
                "test", CircuitBreakerConfig(failure_threshold=5)
            ),
            "rate_limiter": RateLimiter(max_tokens=10, refill_interval=1.0),
            "store": store,
            "http_client": http_client,
            "max_retries": 3,
            "retry_base_delay": 0.0,
        }
        params.update(overrides)
        return DdbClient(**params)

    return _make
