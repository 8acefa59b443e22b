"""
D&D Beyond credentials.

The browser login flow stores the session cookies in
~/.dndbeyond-mcp/config.json. CredentialStore reads and writes that file;
CobaltTokenProvider exchanges the cookies for a short-lived bearer token.
"""

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dndbeyond.exceptions import NotAuthenticatedError, TokenExchangeError

if TYPE_CHECKING:
    from dndbeyond.services.client import DdbClient

COBALT_TOKEN_URL = "https://auth-service.dndbeyond.com/v1/cobalt-token"
CONFIG_FILE_NAME = "config.json"

# Refresh the bearer token this many seconds before the upstream TTL runs out
TOKEN_EXPIRY_MARGIN = 30


class CookieEntry(BaseModel):
    """A single stored cookie."""

    name: str
    value: str


class AuthConfig(BaseModel):
    """On-disk credential file."""

    model_config = ConfigDict(populate_by_name=True)

    cobalt_session: str = Field(default="", alias="cobaltSession")
    cookies: list[CookieEntry] = Field(default_factory=list)
    saved_at: str | None = Field(default=None, alias="savedAt")


def build_cookie_header(cookies: list[CookieEntry]) -> str:
    return "; ".join(f"{c.name}={c.value}" for c in cookies)


class CredentialStore:
    """
    File-backed store for the D&D Beyond session cookies.

    A missing or unreadable file reads as "no credentials". The parsed file is
    kept in memory and only re-read when its modification time changes.
    """

    def __init__(self, config_dir: Path | str | None = None):
        if config_dir is None:
            from dndbeyond.settings import global_settings

            config_dir = global_settings.config_dir
        self.config_dir = Path(config_dir)
        self._config: AuthConfig | None = None
        self._loaded_mtime: float | None = None

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    def load(self) -> AuthConfig | None:
        """Credential file contents, or None if absent or invalid."""
        try:
            mtime = self.config_file.stat().st_mtime
        except FileNotFoundError:
            self._config = None
            self._loaded_mtime = None
            return None
        except OSError as e:
            logger.warning(f"Cannot stat credentials at {self.config_file}: {e}")
            return None

        if mtime != self._loaded_mtime:
            self._config = self._read()
            self._loaded_mtime = mtime
        return self._config

    def reload(self) -> AuthConfig | None:
        """Force a re-read of the credential file."""
        self._loaded_mtime = None
        return self.load()

    def _read(self) -> AuthConfig | None:
        try:
            raw = self.config_file.read_text(encoding="utf-8")
            return AuthConfig.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable credentials at {self.config_file}: {e}")
            return None

    def get_cookies(self) -> list[CookieEntry]:
        config = self.load()
        return config.cookies if config else []

    def get_cobalt_session(self) -> str | None:
        config = self.load()
        return (config.cobalt_session or None) if config else None

    def has_credentials(self) -> bool:
        return bool(self.get_cookies())

    def is_authenticated(self) -> bool:
        """True if a CobaltSession cookie is stored."""
        return self.get_cobalt_session() is not None

    def get_user_id(self) -> int | None:
        """Numeric user id from the User.ID cookie."""
        for cookie in self.get_cookies():
            if cookie.name == "User.ID":
                try:
                    return int(cookie.value)
                except ValueError:
                    return None
        return None

    def save_cookies(self, cookies: list[CookieEntry]) -> None:
        """Persist cookies, extracting the CobaltSession value."""
        cobalt = next((c.value for c in cookies if c.name == "CobaltSession"), "")
        config = AuthConfig(
            cobalt_session=cobalt,
            cookies=cookies,
            saved_at=datetime.now(timezone.utc).isoformat(),
        )
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(
            json.dumps(config.model_dump(by_alias=True), indent=2),
            encoding="utf-8",
        )
        self._config = config
        self._loaded_mtime = self.config_file.stat().st_mtime
        logger.info(f"Saved {len(cookies)} cookies to {self.config_file}")

    def save_cobalt_session(self, value: str) -> None:
        self.save_cookies([CookieEntry(name="CobaltSession", value=value)])

    def get_session_headers(self) -> dict[str, str]:
        """Cookie-based headers for www.dndbeyond.com endpoints."""
        cookies = self.get_cookies()
        if not cookies:
            raise NotAuthenticatedError()
        return {
            "Cookie": build_cookie_header(cookies),
            "Accept": "application/json",
            "Content-Type": "application/json",
        }


class CobaltTokenProvider:
    """
    Exchanges stored cookies for a bearer token, cached until shortly
    before the upstream TTL expires.
    """

    def __init__(
        self,
        store: CredentialStore,
        http_client: httpx.AsyncClient | None = None,
        token_url: str = COBALT_TOKEN_URL,
    ):
        self.store = store
        self.token_url = token_url
        self._http_client = http_client
        self._owns_http_client = False
        self._token: str | None = None
        self._expires_at = 0.0

    def set_http_client(self, http_client: httpx.AsyncClient) -> None:
        """Use a client owned by the caller."""
        self._http_client = http_client
        self._owns_http_client = False

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
            self._owns_http_client = True
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._http_client and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_http_client = False

    def invalidate(self) -> None:
        """Drop the cached token."""
        self._token = None
        self._expires_at = 0.0

    async def get_bearer_token(self) -> str:
        """
        Get a valid bearer token, exchanging cookies if the cached one expired.

        Raises:
            NotAuthenticatedError: No stored cookies
            TokenExchangeError: Exchange failed or returned no token
        """
        if self._token and time.monotonic() < self._expires_at:
            return self._token

        cookies = self.store.get_cookies()
        if not cookies:
            raise NotAuthenticatedError()

        try:
            response = await self._get_http_client().post(
                self.token_url,
                headers={
                    "Cookie": build_cookie_header(cookies),
                    "Content-Type": "application/json",
                },
                content="{}",
            )
        except httpx.RequestError as e:
            raise TokenExchangeError(f"Cobalt token exchange failed: {e}") from e

        if not response.is_success:
            raise TokenExchangeError(
                f"Cobalt token exchange failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TokenExchangeError("Cobalt token exchange returned invalid JSON") from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise TokenExchangeError("Cobalt token exchange returned no token")

        ttl = float(data.get("ttl") or 0)
        self._token = token
        self._expires_at = time.monotonic() + ttl - TOKEN_EXPIRY_MARGIN
        logger.debug(f"Obtained cobalt token (ttl={ttl:.0f}s)")
        return token


class AuthStatus(BaseModel):
    """Result of an auth check."""

    authenticated: bool
    expired: bool
    message: str


def check_auth(client: "DdbClient", store: CredentialStore) -> AuthStatus:
    """Report whether credentials exist and whether a 401 has been observed."""
    if not store.is_authenticated():
        return AuthStatus(
            authenticated=False,
            expired=False,
            message="Not authenticated - run setup to log in via browser.",
        )

    if client.is_auth_expired:
        return AuthStatus(
            authenticated=True,
            expired=True,
            message=(
                "Session expired (received 401 from API) - "
                "run setup to refresh your credentials."
            ),
        )

    return AuthStatus(
        authenticated=True,
        expired=False,
        message="Authenticated - CobaltSession cookie found and no 401 errors detected.",
    )
