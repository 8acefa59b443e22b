"""
TtlCache - Async-compatible in-memory cache with per-entry expiry.

Features:
- Absolute expiry per entry (now + ttl)
- Explicit cache-wide default TTL, where None means "never expires"
- Lazy eviction of expired entries on read, plus an explicit sweep
- Optional size bound evicting the oldest insertion
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

from loguru import logger

T = TypeVar("T")

# Pass as the default to TtlCache.get to tell a miss from a stored None
MISSING: Any = object()


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with its absolute expiry."""

    value: T
    expires_at: datetime | None  # None: never expires

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if entry has reached its expiry."""
        if self.expires_at is None:
            return False
        return (now or datetime.now()) >= self.expires_at


class TtlCache:
    """
    In-memory key/value store with per-entry TTL.

    Usage:
        cache = TtlCache(default_ttl=timedelta(seconds=60))

        value = await cache.get("character:1")
        if value is None:
            value = await fetch_character(1)
            await cache.set("character:1", value, ttl=timedelta(minutes=5))
    """

    def __init__(
        self,
        default_ttl: timedelta | None = timedelta(seconds=60),
        max_size: int | None = None,
        debug: bool = False,
    ):
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._debug = debug
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    @property
    def default_ttl(self) -> timedelta | None:
        return self._default_ttl

    async def get(self, key: str, default: Any = None) -> Any:
        """
        Get value from cache.

        Returns the stored value if present and not expired, default otherwise.
        A stored None is returned as None, so callers caching None should pass
        MISSING as the default.
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {key}")
                return default

            if entry.is_expired():
                del self._entries[key]
                self._stats.misses += 1
                self._log(f"EXPIRED: {key}")
                return default

            self._stats.hits += 1
            self._log(f"HIT: {key}")
            return entry.value

    async def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live (uses the cache default if not specified)
        """
        ttl = ttl if ttl is not None else self._default_ttl
        expires_at = datetime.now() + ttl if ttl is not None else None

        async with self._lock:
            if (
                self._max_size is not None
                and len(self._entries) >= self._max_size
                and key not in self._entries
            ):
                self._evict_oldest()

            # Re-insert so insertion order tracks the latest write
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)
            self._log(
                f"SET: {key} "
                f"(TTL: {ttl.total_seconds() if ttl is not None else 'never'}s)"
            )

    async def invalidate(self, key: str) -> bool:
        """Remove a key. Returns whether anything was removed."""
        async with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._log(f"INVALIDATE: {key}")
            return True

    async def clear(self) -> None:
        """Clear all cache entries."""
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._log(f"CLEAR: {count} entries removed")

    async def cleanup_expired(self) -> int:
        """Remove all expired entries. Returns count of removed entries."""
        async with self._lock:
            now = datetime.now()
            expired_keys = [k for k, v in self._entries.items() if v.is_expired(now)]
            for key in expired_keys:
                del self._entries[key]

            if expired_keys:
                self._log(f"CLEANUP: {len(expired_keys)} expired entries removed")

            return len(expired_keys)

    def _evict_oldest(self) -> None:
        """Evict the oldest insertion."""
        if not self._entries:
            return

        oldest_key = next(iter(self._entries))
        del self._entries[oldest_key]
        self._stats.evictions += 1
        self._log(f"EVICT: {oldest_key}")

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = len(self._entries)
        self._stats.max_size = self._max_size
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[TtlCache] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int | None = None

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
