"""In-process TTL cache for derived rankings.

Entries are (value, inserted_at) pairs. Validity is checked lazily on read:
an entry is live while now - inserted_at < ttl. There is no capacity bound
and no delete API; the key space is a handful of fixed queries.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import time
from typing import Any

logger = logging.getLogger("uvicorn.error")

# Keys
KEY_TOP_USERS = "topUsers"
PREFIX_POSTS = "posts_"


def posts_cache_key(query_type: str) -> str:
    """Cache key for a post ranking query."""
    return f"{PREFIX_POSTS}{query_type}"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    inserted_at: float


class RankCache:
    """Time-to-live cache mapping query keys to computed rankings."""

    def __init__(self, ttl: float, clock: Callable[[], float] | None = None):
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl!r}")
        self.ttl = ttl
        self._clock = clock or time.time
        self._entries: dict[str, CacheEntry] = {}

    def now(self) -> float:
        return self._clock()

    def entry(self, key: str) -> CacheEntry | None:
        """Live entry for key, dropping it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.now() - entry.inserted_at >= self.ttl:
            # Expired entries are indistinguishable from absent ones.
            del self._entries[key]
            logger.info(f"Rank cache EXPIRED for {key}")
            return None
        return entry

    def get(self, key: str) -> Any | None:
        """Get a cached value.

        Args:
            key: Cache key.

        Returns:
            Cached value, or None if never set or expired.
        """
        entry = self.entry(key)
        return None if entry is None else entry.value

    def set(self, key: str, value: Any) -> CacheEntry:
        """Store a value stamped with the current time, replacing any previous entry."""
        entry = CacheEntry(key=key, value=value, inserted_at=self.now())
        self._entries[key] = entry
        return entry

    def expires_at(self, key: str) -> float | None:
        """Clock reading at which a live entry expires, or None."""
        entry = self.entry(key)
        return None if entry is None else entry.inserted_at + self.ttl
