"""
Local memory cache with per-entry TTL.

Entries are kept in insertion order; when the cache is full the oldest
tenth of the entries is evicted in one pass.
"""

import time
import asyncio
import logging
from typing import Any, Callable, Dict, Hashable, Optional
from collections import OrderedDict

logger = logging.getLogger(__name__)


class TTLCache:
    """Async-safe TTL cache with bulk eviction of the oldest entries."""

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: int = 60,
        evict_fraction: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.evict_fraction = evict_fraction
        self.clock = clock
        self.cache: "OrderedDict[Hashable, tuple[Any, float]]" = OrderedDict()
        self.lock = asyncio.Lock()
        self.stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
            "invalidations": 0,
        }

    async def get(self, key: Hashable) -> Optional[Any]:
        """Get value from cache."""
        async with self.lock:
            if key not in self.cache:
                self.stats["misses"] += 1
                return None

            value, expiry_time = self.cache[key]

            if self.clock() >= expiry_time:
                del self.cache[key]
                self.stats["expirations"] += 1
                self.stats["misses"] += 1
                return None

            self.stats["hits"] += 1
            return value

    async def set(self, key: Hashable, value: Any, ttl: Optional[int] = None) -> None:
        """Set value in cache."""
        async with self.lock:
            ttl = ttl or self.ttl_seconds
            expiry_time = self.clock() + ttl

            if key in self.cache:
                del self.cache[key]
            elif len(self.cache) >= self.max_size:
                self._evict_oldest()

            self.cache[key] = (value, expiry_time)

    def _evict_oldest(self) -> None:
        count = max(1, int(self.max_size * self.evict_fraction))
        for _ in range(min(count, len(self.cache))):
            self.cache.popitem(last=False)
            self.stats["evictions"] += 1

    async def delete(self, key: Hashable) -> bool:
        """Delete key from cache."""
        async with self.lock:
            if key in self.cache:
                del self.cache[key]
                return True
            return False

    async def delete_where(self, predicate: Callable[[Hashable], bool]) -> int:
        """Delete every key matching the predicate; returns the count removed."""
        async with self.lock:
            doomed = [key for key in self.cache if predicate(key)]
            for key in doomed:
                del self.cache[key]
            self.stats["invalidations"] += len(doomed)
            return len(doomed)

    async def purge_expired(self) -> int:
        async with self.lock:
            now = self.clock()
            expired = [key for key, (_, expiry) in self.cache.items() if now >= expiry]
            for key in expired:
                del self.cache[key]
            self.stats["expirations"] += len(expired)
            return len(expired)

    async def clear(self) -> None:
        """Clear all cache entries."""
        async with self.lock:
            self.cache.clear()

    def __len__(self) -> int:
        return len(self.cache)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self.stats["hits"] + self.stats["misses"]
        hit_rate = (
            (self.stats["hits"] / total_requests * 100)
            if total_requests > 0
            else 0
        )

        return {
            **self.stats,
            "size": len(self.cache),
            "max_size": self.max_size,
            "hit_rate": f"{hit_rate:.2f}%"
        }


__all__ = ["TTLCache"]
