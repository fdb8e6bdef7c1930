"""In-memory response cache with TTL and a total size bound."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from waybackmcp.domain.interfaces.cache import CachedResponse, ResponseCache
from waybackmcp.domain.models.common import CacheKey
from waybackmcp.domain.models.fetch import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_MAX_CACHE_SIZE

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Internal representation of a cache entry with expiry."""
    value: CachedResponse
    expiry_time: float


class MemoryResponseCache(ResponseCache):
    """Dictionary-backed cache; entries are evicted on expiry or when over size."""

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_CACHE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._total_size = 0
        logger.info(f"Memory cache initialized (ttl={ttl}s, max_size={max_size} bytes)")

    def __len__(self) -> int:
        return len(self._entries)

    def _remove(self, key: CacheKey) -> None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._total_size -= entry.value.size

    def _prune(self) -> None:
        """Removes expired items, then evicts the oldest until within the size limit."""
        now = self._clock()
        for key in [k for k, v in self._entries.items() if now > v.expiry_time]:
            self._remove(key)

        # Insertion order is age order for plain dicts
        while self._entries and self._total_size > self.max_size:
            oldest_key = next(iter(self._entries))
            logger.debug(f"Memory cache evicting key: {oldest_key[:10]}...")
            self._remove(oldest_key)

    async def get(self, key: CacheKey) -> Optional[CachedResponse]:
        self._prune()
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Memory cache miss for key: {key[:10]}...")
            return None
        logger.debug(f"Memory cache hit for key: {key[:10]}...")
        return entry.value

    async def set(self, key: CacheKey, value: CachedResponse, ttl: Optional[float] = None) -> None:
        if value.size > self.max_size:
            logger.debug(f"Response of {value.size} bytes exceeds memory cache size, not stored.")
            return
        self._remove(key)
        expiry = self._clock() + (ttl if ttl is not None else self.ttl)
        self._entries[key] = CacheEntry(value=value, expiry_time=expiry)
        self._total_size += value.size
        self._prune()

    async def clear(self) -> None:
        self._entries.clear()
        self._total_size = 0
        logger.info("Cleared in-memory response cache.")

    def stats(self) -> dict:
        return {
            "enabled": True,
            "type": "in-memory",
            "entries": len(self._entries),
            "size_bytes": self._total_size,
        }
