"""Configurable fetch utility with multiple backends and caching options.

`ConfigurableFetch` owns one httpx client and up to two response caches.
Each call picks a strategy (per-call override, else the configured default),
merges the default headers with the caller's, and returns a fully read
response. Cache problems never fail a call: an unavailable cache degrades to
a direct fetch.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import httpx
from pydantic import ValidationError

from waybackmcp.domain.events.api_events import CacheFallbackTriggered, dispatch_event
from waybackmcp.domain.models.fetch import FetchBackend, FetchConfig, StrategySelection
from waybackmcp.infrastructure.cache.disk_cache import DiskResponseCache
from waybackmcp.infrastructure.cache.memory_cache import MemoryResponseCache
from waybackmcp.infrastructure.http.strategies import (
    DirectFetch,
    DiskCachedFetch,
    FetchStrategy,
    MemoryCachedFetch,
)

logger = logging.getLogger(__name__)

HeadersInput = Union[Mapping[str, str], Sequence[Tuple[str, str]], httpx.Headers, None]


class FetchConfigError(ValueError):
    """Raised when a configuration update does not validate."""


@dataclass
class RequestOptions:
    """Per-request options that can override the global configuration."""
    method: str = "GET"
    headers: HeadersInput = None
    content: Optional[Union[str, bytes]] = None
    data: Optional[Mapping[str, Any]] = None
    params: Optional[Mapping[str, Any]] = None
    # Override the fetch backend for this specific request
    backend: Optional[FetchBackend] = None
    # Override cache TTL (seconds) for this specific request
    cache_ttl: Optional[float] = None
    # Force a fresh fetch, bypassing cache
    no_cache: bool = False
    follow_redirects: bool = True


def _iter_headers(headers: HeadersInput) -> Iterable[Tuple[str, str]]:
    if headers is None:
        return []
    if isinstance(headers, httpx.Headers):
        # .raw keeps the caller's spelling; items() would lower-case keys
        return [(k.decode(headers.encoding), v.decode(headers.encoding)) for k, v in headers.raw]
    if isinstance(headers, Mapping):
        return list(headers.items())
    return [(key, value) for key, value in headers]


class ConfigurableFetch:
    """HTTP fetch with selectable direct / memory-cached / disk-cached execution."""

    def __init__(self, config: Optional[FetchConfig] = None, client: Optional[httpx.AsyncClient] = None):
        """Creates the fetch utility.

        Args:
            config: Initial configuration (defaults to built-in fetch, no headers).
            client: httpx client to send requests with; one is created if omitted.
        """
        self._config = config or FetchConfig()
        # No client-side timeout: callers bound each request with fetch_with_timeout
        self._client = client or httpx.AsyncClient(timeout=None)
        self.memory_cache: Optional[MemoryResponseCache] = None
        self.disk_cache: Optional[DiskResponseCache] = None
        self._strategies: Dict[FetchBackend, FetchStrategy] = {}
        self._initialize_caches()

    # --- Configuration ---

    def _initialize_caches(self) -> None:
        """Creates both cache backends for the current configuration.

        A backend that fails to initialize is left as None; calls selecting it
        fall back to the built-in strategy.
        """
        self._initialize_memory_cache()
        self._initialize_disk_cache()
        self._build_strategies()

    def _initialize_memory_cache(self) -> None:
        config = self._config
        try:
            self.memory_cache = MemoryResponseCache(ttl=config.cache_ttl, max_size=config.max_cache_size)
        except Exception as e:
            logger.warning(f"Failed to initialize memory cache: {e}")
            self.memory_cache = None

    def _initialize_disk_cache(self) -> None:
        self._close_disk_cache()
        config = self._config
        try:
            self.disk_cache = DiskResponseCache(
                cache_dir=config.cache_dir, ttl=config.cache_ttl, max_size=config.max_cache_size
            )
        except Exception as e:
            logger.warning(f"Failed to initialize disk cache at {config.cache_dir}: {e}")
            self.disk_cache = None

    def _build_strategies(self) -> None:
        self._strategies = {FetchBackend.BUILT_IN: DirectFetch(self._client)}
        if self.memory_cache is not None:
            self._strategies[FetchBackend.CACHE_MEMORY] = MemoryCachedFetch(self._client, self.memory_cache)
        if self.disk_cache is not None:
            self._strategies[FetchBackend.CACHE_DISK] = DiskCachedFetch(self._client, self.disk_cache)

    def update_config(self, **changes: Any) -> FetchConfig:
        """Merges `changes` into the configuration.

        The merged configuration only replaces the current one if it validates.

        Raises:
            FetchConfigError: if the merged configuration is invalid; the
                previous configuration stays in effect.
        """
        merged = {**self._config.model_dump(), **changes}
        try:
            new_config = FetchConfig.model_validate(merged)
        except ValidationError as e:
            logger.error(f"Rejected fetch configuration update {changes}: {e}")
            raise FetchConfigError(f"Invalid fetch configuration: {e}") from e

        previous, self._config = self._config, new_config

        # Only the tiers whose own settings changed are rebuilt; the others keep their entries
        memory_changed = (previous.cache_ttl, previous.max_cache_size) != (new_config.cache_ttl, new_config.max_cache_size)
        disk_changed = memory_changed or previous.cache_dir != new_config.cache_dir
        if memory_changed or self.memory_cache is None:
            self._initialize_memory_cache()
        if disk_changed or self.disk_cache is None:
            self._initialize_disk_cache()
        self._build_strategies()
        logger.info(f"Fetch configuration updated: backend={new_config.backend.value}")
        return new_config

    def get_config(self) -> FetchConfig:
        """Returns a copy of the current configuration."""
        return self._config.model_copy()

    # --- Request pipeline ---

    def merge_headers(self, request_headers: HeadersInput = None) -> Dict[str, str]:
        """Merges default headers, the configured user agent and request headers.

        Later sources win. Keys collide case-insensitively; the winning key
        keeps its own spelling.
        """
        merged: Dict[str, str] = {}

        def put(key: str, value: str) -> None:
            for existing in [k for k in merged if k.lower() == key.lower()]:
                del merged[existing]
            merged[key] = value

        for key, value in self._config.default_headers.items():
            put(key, value)
        if self._config.user_agent:
            put("User-Agent", self._config.user_agent)
        for key, value in _iter_headers(request_headers):
            put(key, value)
        return merged

    def resolve_strategy(
        self, backend: Optional[Union[FetchBackend, str]] = None, no_cache: bool = False
    ) -> StrategySelection:
        """Decides which strategy serves a call."""
        if backend is None:
            requested = self._config.backend
        else:
            try:
                requested = FetchBackend(backend)
            except ValueError:
                raise ValueError(f"Unsupported fetch backend: {backend}") from None

        if no_cache and requested.is_cached:
            return StrategySelection(requested, FetchBackend.BUILT_IN, reason="cache bypass requested")

        if requested not in self._strategies:
            reason = f"{requested.value} backend not available"
            logger.warning(f"{reason}, falling back to built-in fetch")
            dispatch_event(CacheFallbackTriggered(requested_backend=requested.value, reason=reason))
            return StrategySelection(requested, FetchBackend.BUILT_IN, degraded=True, reason=reason)

        return StrategySelection(requested, requested)

    async def fetch(self, url: Union[str, httpx.URL], options: Optional[RequestOptions] = None) -> httpx.Response:
        """Performs an HTTP request with the configured backend and caching.

        The returned response is fully read, so its body can be consumed any
        number of times. The strategy decision is available as
        `response.extensions["fetch_selection"]`.
        """
        options = options or RequestOptions()
        selection = self.resolve_strategy(options.backend, options.no_cache)
        request = self._client.build_request(
            options.method,
            url,
            headers=self.merge_headers(options.headers),
            content=options.content,
            data=options.data,
            params=options.params,
        )

        strategy = self._strategies[selection.used]
        try:
            response = await strategy.send(
                request, follow_redirects=options.follow_redirects, cache_ttl=options.cache_ttl
            )
        except httpx.HTTPError as e:
            logger.error(f"Fetch failed (backend: {selection.used.value}): {e}")
            raise

        response.extensions["fetch_selection"] = selection
        return response

    # --- Cache management ---

    async def clear_caches(self) -> None:
        """Clears all initialized caches. Failures are logged, never raised."""
        for name, cache in (("memory", self.memory_cache), ("disk", self.disk_cache)):
            if cache is None:
                continue
            try:
                await cache.clear()
            except Exception as e:
                logger.warning(f"Failed to clear {name} cache: {e}")

    def get_cache_stats(self) -> Dict[str, Any]:
        """Describes which caches are available."""
        stats: Dict[str, Any] = {}
        for name, cache in (("memory", self.memory_cache), ("disk", self.disk_cache)):
            if cache is None:
                stats[name] = {"enabled": False}
                continue
            try:
                stats[name] = cache.stats()
            except Exception as e:
                logger.warning(f"Could not read {name} cache stats: {e}")
                stats[name] = {"enabled": True, "error": str(e)}
        return stats

    def _close_disk_cache(self) -> None:
        if self.disk_cache is not None:
            self.disk_cache.close()
            self.disk_cache = None

    async def aclose(self) -> None:
        """Closes the HTTP client and the disk cache."""
        self._close_disk_cache()
        await self._client.aclose()


def create_fetch(client: Optional[httpx.AsyncClient] = None, **config: Any) -> ConfigurableFetch:
    """Convenience function to create a fetch instance with specific configuration.

    Raises:
        FetchConfigError: if the configuration does not validate.
    """
    try:
        fetch_config = FetchConfig.model_validate(config)
    except ValidationError as e:
        raise FetchConfigError(f"Invalid fetch configuration: {e}") from e
    return ConfigurableFetch(fetch_config, client=client)
