import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

# Suggested TTLs per resource family
CHARACTER_TTL = timedelta(seconds=60)
CAMPAIGN_TTL = timedelta(minutes=5)
REFERENCE_TTL = timedelta(hours=24)


class Settings(BaseModel):
    # Credentials
    config_dir: Path = Field(
        default=Path.home() / ".dndbeyond-mcp", alias="DDB_CONFIG_DIR"
    )

    # HTTP
    request_timeout: float = Field(default=30.0, alias="DDB_REQUEST_TIMEOUT")

    # Cache (seconds; 0 means entries never expire)
    cache_default_ttl: float = Field(default=60.0, alias="DDB_CACHE_DEFAULT_TTL")
    cache_max_size: int = Field(default=1000, alias="DDB_CACHE_MAX_SIZE")

    # Rate limiter: max_tokens per refill interval
    rate_limit_max_tokens: int = Field(default=2, alias="DDB_RATE_LIMIT_MAX_TOKENS")
    rate_limit_refill_interval: float = Field(
        default=1.0, alias="DDB_RATE_LIMIT_REFILL_INTERVAL"
    )

    # Circuit breaker
    circuit_threshold: int = Field(default=5, alias="DDB_CIRCUIT_THRESHOLD")
    circuit_cooldown: float = Field(default=30.0, alias="DDB_CIRCUIT_COOLDOWN")

    # Retry
    max_retries: int = Field(default=3, alias="DDB_MAX_RETRIES")
    retry_base_delay: float = Field(default=1.0, alias="DDB_RETRY_BASE_DELAY")

    debug: bool = Field(default=False, alias="DDB_DEBUG")

    @property
    def cache_ttl(self) -> timedelta | None:
        """Cache-wide default TTL, or None when entries never expire."""
        if self.cache_default_ttl <= 0:
            return None
        return timedelta(seconds=self.cache_default_ttl)


global_settings = Settings.model_validate(dict(os.environ))
