"""Shared request pipeline for the Wayback operations.

Every outbound call made by an operation goes through `WaybackService._request`:
wait for a rate limit slot, record the admission, then issue the request
through the configurable fetch under the resilient-fetch timeout.
"""

import logging
import time
from typing import Any, Mapping, Optional

import httpx

from waybackmcp import DEFAULT_USER_AGENT
from waybackmcp.domain.events.api_events import (
    RequestAdmitted,
    RequestDeferred,
    RequestFailed,
    RequestSucceeded,
    dispatch_event,
)
from waybackmcp.domain.models.fetch import FetchBackend
from waybackmcp.infrastructure.http.configurable_fetch import ConfigurableFetch, RequestOptions
from waybackmcp.infrastructure.resilience.http import DEFAULT_TIMEOUT_SECONDS, HttpError, fetch_with_timeout
from waybackmcp.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class WaybackService:
    """Base class for services talking to the Wayback Machine."""

    def __init__(
        self,
        fetcher: ConfigurableFetch,
        rate_limiter: RateLimiter,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initializes the service with its collaborators.

        Args:
            fetcher: Configurable fetch used for every request.
            rate_limiter: Limiter shared by all Wayback services of the process.
            user_agent: User-Agent sent with every archive request.
            timeout: Default per-request timeout in seconds.
        """
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter
        self.user_agent = user_agent
        self.timeout = timeout

    async def _request(
        self,
        url: str,
        method: str = "GET",
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """Issues one rate-limited request.

        Raises:
            HttpError: Propagated unchanged from the resilient fetch.
        """
        waited = await self.rate_limiter.wait_for_slot()
        if waited > 0:
            dispatch_event(RequestDeferred(endpoint=url, wait_time_seconds=waited))

        self.rate_limiter.record_request()
        dispatch_event(RequestAdmitted(endpoint=url, method=method))

        # Archive requests always reach the archive, whatever the default fetch backend
        options = RequestOptions(
            method=method,
            backend=FetchBackend.BUILT_IN,
            headers={"User-Agent": self.user_agent},
            params=params,
            data=data,
        )
        start = time.perf_counter()
        try:
            response = await fetch_with_timeout(self.fetcher, url, options, timeout=timeout or self.timeout)
        except HttpError as e:
            dispatch_event(RequestFailed(endpoint=url, error_kind=e.kind.value, error_message=e.message, status_code=e.status))
            raise

        latency_ms = (time.perf_counter() - start) * 1000
        dispatch_event(RequestSucceeded(endpoint=url, status_code=response.status_code, latency_ms=latency_ms))
        return response
