"""Core service exposing the configurable fetch directly.

`fetch_url` performs an arbitrary GET through the fetch (useful to inspect
caching behaviour) and `configure_fetch` changes its process-wide settings.
Neither goes through the Wayback rate limiter.
"""

import json
import logging
import time
from typing import Optional

from waybackmcp.domain.models.archive import FetchConfigReport, FetchReport
from waybackmcp.domain.models.fetch import FetchBackend
from waybackmcp.infrastructure.http.configurable_fetch import ConfigurableFetch, RequestOptions
from waybackmcp.infrastructure.resilience.http import DEFAULT_TIMEOUT_SECONDS, fetch_with_timeout
from waybackmcp.utils.validation import validate_url

logger = logging.getLogger(__name__)


class FetchService:
    """Orchestrates the fetch inspection and configuration tools."""

    def __init__(self, fetcher: ConfigurableFetch, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.fetcher = fetcher
        self.timeout = timeout

    async def fetch_url(
        self,
        url: str,
        backend: Optional[FetchBackend] = None,
        no_cache: bool = False,
        user_agent: Optional[str] = None,
    ) -> FetchReport:
        """Fetches `url` and reports how it was served.

        The body is read once and decoded as JSON when possible, text otherwise.

        Raises:
            InvalidInputError: for a malformed URL.
            ValueError: for an unknown backend.
            HttpError: for any request failure.
        """
        validated_url = validate_url(url)
        headers = {"User-Agent": user_agent} if user_agent else None
        options = RequestOptions(backend=backend, no_cache=no_cache, headers=headers)

        start = time.perf_counter()
        response = await fetch_with_timeout(self.fetcher, validated_url, options, timeout=self.timeout)
        duration_ms = int((time.perf_counter() - start) * 1000)

        text = response.text
        try:
            data = json.loads(text)
            parsed_as = "json"
        except ValueError:
            data = text
            parsed_as = "text"

        selection = response.extensions["fetch_selection"]
        config = self.fetcher.get_config()
        logger.info(
            f"Fetched {validated_url} via {selection.used.value} in {duration_ms}ms "
            f"(status={response.status_code}, parsed_as={parsed_as})"
        )
        return FetchReport(
            url=validated_url,
            backend=selection.requested.value,
            used_backend=selection.used.value,
            degraded=selection.degraded,
            cache_bypassed=selection.cache_bypassed,
            user_agent=user_agent,
            duration_ms=duration_ms,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            content_type=response.headers.get("content-type"),
            parsed_as=parsed_as,
            data=data,
            config=config.model_dump(mode="json"),
        )

    async def configure_fetch(
        self,
        backend: Optional[FetchBackend] = None,
        cache_ttl: Optional[float] = None,
        cache_dir: Optional[str] = None,
        user_agent: Optional[str] = None,
        clear_cache: bool = False,
    ) -> FetchConfigReport:
        """Optionally clears the caches, then applies the given settings.

        Raises:
            FetchConfigError: if the resulting configuration is invalid.
        """
        if clear_cache:
            await self.fetcher.clear_caches()

        changes = {
            key: value
            for key, value in (
                ("backend", backend),
                ("cache_ttl", cache_ttl),
                ("cache_dir", cache_dir),
                ("user_agent", user_agent),
            )
            if value is not None
        }
        if changes:
            self.fetcher.update_config(**changes)

        return FetchConfigReport(
            config=self.fetcher.get_config().model_dump(mode="json"),
            cache_stats=self.fetcher.get_cache_stats(),
            caches_cleared=clear_cache,
        )
