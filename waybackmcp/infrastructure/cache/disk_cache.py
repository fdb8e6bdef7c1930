"""Disk-backed response cache using diskcache.

diskcache is synchronous (SQLite + files), so every call is pushed to a
worker thread to keep the event loop responsive.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import diskcache as dc

from waybackmcp.domain.interfaces.cache import CachedResponse, ResponseCache
from waybackmcp.domain.models.common import CacheKey
from waybackmcp.domain.models.fetch import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_MAX_CACHE_SIZE

logger = logging.getLogger(__name__)


class DiskResponseCache(ResponseCache):
    """Persistent cache surviving restarts."""

    def __init__(
        self,
        cache_dir: str,
        ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_CACHE_SIZE,
    ):
        """Opens (or creates) the cache directory.

        Raises:
            Whatever diskcache raises when the directory or its database cannot
            be created; callers treat that as "disk cache unavailable".
        """
        self.ttl = ttl
        self.directory = Path(cache_dir).expanduser()
        self._cache = dc.Cache(str(self.directory), size_limit=max_size)
        logger.info(f"Disk cache initialized at: {self._cache.directory} (ttl={ttl}s, max_size={max_size} bytes)")

    async def get(self, key: CacheKey) -> Optional[CachedResponse]:
        value = await asyncio.to_thread(self._cache.get, key)
        if value is None:
            logger.debug(f"Disk cache miss for key: {key[:10]}...")
            return None
        logger.debug(f"Disk cache hit for key: {key[:10]}...")
        return value

    async def set(self, key: CacheKey, value: CachedResponse, ttl: Optional[float] = None) -> None:
        expire = ttl if ttl is not None else self.ttl
        await asyncio.to_thread(self._cache.set, key, value, expire)
        logger.debug(f"Stored response in disk cache: key={key[:10]}...")

    async def clear(self) -> None:
        removed = await asyncio.to_thread(self._cache.clear)
        logger.info(f"Cleared disk cache at {self.directory} ({removed} entries).")

    def stats(self) -> dict:
        return {
            "enabled": True,
            "type": "file-system",
            "cache_directory": str(self.directory),
            "entries": len(self._cache),
            "size_bytes": self._cache.volume(),
        }

    def close(self) -> None:
        self._cache.close()
