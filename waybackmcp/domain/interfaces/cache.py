"""Interface for response caches.

Defines the contract for storing, retrieving, and clearing cached HTTP
responses. Implementations must never raise from a failed initialization;
they are simply absent instead.
"""

import abc
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from waybackmcp.domain.models.common import CacheKey


@dataclass
class CachedResponse:
    """A successful response captured in a form that can be stored and replayed."""
    status_code: int
    url: str
    content: bytes
    headers: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.content)


class ResponseCache(abc.ABC):
    """Abstract Base Class for response cache backends."""

    @abc.abstractmethod
    async def get(self, key: CacheKey) -> Optional[CachedResponse]:
        """Retrieves a response from the cache asynchronously.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached response if found and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def set(self, key: CacheKey, value: CachedResponse, ttl: Optional[float] = None) -> None:
        """Stores a response in the cache asynchronously.

        Args:
            key: The cache key to store the response under.
            value: The response to store.
            ttl: Time-to-live in seconds (uses the backend default if None).
        """
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Removes every entry from the cache."""
        pass

    @abc.abstractmethod
    def stats(self) -> dict:
        """Returns a small description of the backend for status output."""
        pass
