"""Request execution strategies.

A closed set of interchangeable strategies, one per FetchBackend, all
exposing a single `send` coroutine. Cached strategies only differ by the
ResponseCache they are given.
"""

import abc
import hashlib
import logging
from typing import Optional

import httpx

from waybackmcp.domain.interfaces.cache import CachedResponse, ResponseCache
from waybackmcp.domain.models.common import CacheKey
from waybackmcp.domain.models.fetch import FetchBackend

logger = logging.getLogger(__name__)

# The stored body is already decoded, so these would describe the wrong bytes
_UNREPLAYABLE_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}


def cache_key_for(request: httpx.Request) -> CacheKey:
    """Generates a consistent cache key from method, full URL and User-Agent.

    A reply fetched with one User-Agent is never replayed for another.
    """
    key_string = f"{request.method}|{request.url}|{request.headers.get('user-agent', '')}"
    return CacheKey(hashlib.sha256(key_string.encode("utf-8")).hexdigest())


def to_cached_response(response: httpx.Response) -> CachedResponse:
    return CachedResponse(
        status_code=response.status_code,
        url=str(response.url),
        content=response.content,
        headers=[
            (key, value)
            for key, value in response.headers.multi_items()
            if key.lower() not in _UNREPLAYABLE_HEADERS
        ],
    )


def to_response(cached: CachedResponse, request: httpx.Request) -> httpx.Response:
    """Builds a fresh response from a cache entry; each hit gets its own object."""
    return httpx.Response(
        status_code=cached.status_code,
        headers=cached.headers,
        content=cached.content,
        request=request,
        extensions={"from_cache": True},
    )


class FetchStrategy(abc.ABC):
    """One way of executing a request."""

    backend: FetchBackend

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @abc.abstractmethod
    async def send(
        self,
        request: httpx.Request,
        follow_redirects: bool = False,
        cache_ttl: Optional[float] = None,
    ) -> httpx.Response:
        """Executes the request and returns a fully read response."""
        pass


class DirectFetch(FetchStrategy):
    """No caching: every call goes to the network."""

    backend = FetchBackend.BUILT_IN

    async def send(self, request, follow_redirects=False, cache_ttl=None):
        return await self.client.send(request, follow_redirects=follow_redirects)


class CachedFetch(FetchStrategy):
    """Serves successful GET responses from a cache, filling it on a miss.

    Cache read/write failures are logged and the request proceeds uncached.
    """

    def __init__(self, client: httpx.AsyncClient, cache: ResponseCache):
        super().__init__(client)
        self.cache = cache

    async def send(self, request, follow_redirects=False, cache_ttl=None):
        if request.method != "GET":
            return await self.client.send(request, follow_redirects=follow_redirects)

        key = cache_key_for(request)
        try:
            cached = await self.cache.get(key)
        except Exception as e:
            logger.warning(f"{self.backend.value} cache read failed, fetching directly: {e}")
            cached = None
        if cached is not None:
            return to_response(cached, request)

        response = await self.client.send(request, follow_redirects=follow_redirects)
        if response.is_success:
            try:
                await self.cache.set(key, to_cached_response(response), ttl=cache_ttl)
            except Exception as e:
                logger.warning(f"{self.backend.value} cache write failed: {e}")
        return response


class MemoryCachedFetch(CachedFetch):
    backend = FetchBackend.CACHE_MEMORY


class DiskCachedFetch(CachedFetch):
    backend = FetchBackend.CACHE_DISK
