"""Response cache for API calls"""

import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..pkg.logger import logger


@dataclass
class CacheEntry:
    """Cached response with expiry and access tracking"""

    data: Any
    expires_at: float
    cached_at: float
    access_count: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class ResponseCache:
    """In-memory cache with LRU eviction and per-entry TTL"""

    def __init__(
        self,
        max_size: int = 200,
        default_ttl: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0}

    @staticmethod
    def make_key(endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
        return f"{endpoint}:{json.dumps(params or {}, sort_keys=True)}"

    def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None

        if entry.is_expired(self._clock()):
            logger.debug(f"Cache expired: {key}")
            del self._cache[key]
            self._stats["misses"] += 1
            return None

        self._cache.move_to_end(key)
        entry.access_count += 1
        self._stats["hits"] += 1
        return entry.data

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        now = self._clock()
        if key in self._cache:
            del self._cache[key]

        while len(self._cache) >= self.max_size:
            evicted, _ = self._cache.popitem(last=False)
            self._stats["evictions"] += 1
            logger.debug(f"Cache evicted: {evicted}")

        self._cache[key] = CacheEntry(
            data=data,
            expires_at=now + (self.default_ttl if ttl is None else ttl),
            cached_at=now,
        )

    def invalidate(self, pattern: str) -> int:
        """Drop every entry whose key contains pattern"""
        keys = [key for key in self._cache if pattern in key]
        for key in keys:
            del self._cache[key]
        return len(keys)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        total = self._stats["hits"] + self._stats["misses"]
        return {
            "size": len(self._cache),
            "max_size": self.max_size,
            "hit_rate": (self._stats["hits"] / total) if total else 0.0,
            **self._stats,
        }
