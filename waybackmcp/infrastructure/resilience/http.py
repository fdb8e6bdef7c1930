"""Resilient fetch: one request under a hard timeout, with typed errors.

Every failure mode of a single request (timeout, transport failure,
non-2xx status, unparsable body) surfaces as an `HttpError` carrying its
kind, so callers can tell "the archive said 404" apart from "the network
is down". There are no retries here.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Optional, Union

import httpx

from waybackmcp.infrastructure.http.configurable_fetch import ConfigurableFetch, RequestOptions

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpErrorKind(str, Enum):
    TIMEOUT = "timeout"
    TRANSPORT_FAILURE = "transport-failure"
    HTTP_STATUS_ERROR = "http-status-error"
    INVALID_RESPONSE = "invalid-response"


# --- Custom Exceptions ---
class HttpError(Exception):
    """A failed request to a remote endpoint."""

    def __init__(
        self,
        message: str,
        kind: HttpErrorKind,
        status: Optional[int] = None,
        response_text: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status = status
        self.response_text = response_text
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"HttpError(kind={self.kind.value!r}, status={self.status!r}, message={self.message!r})"


def _format_seconds(seconds: float) -> str:
    return f"{seconds:g}s"


async def fetch_with_timeout(
    fetcher: ConfigurableFetch,
    url: Union[str, httpx.URL],
    options: Optional[RequestOptions] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> httpx.Response:
    """Issues one request through `fetcher`, bounded by `timeout` seconds.

    Args:
        fetcher: The configurable fetch executing the request.
        url: Target URL.
        options: Per-request options (method, headers, backend override...).
        timeout: Hard upper bound in seconds; the in-flight request is
            cancelled when it expires.

    Returns:
        The 2xx response, unmodified.

    Raises:
        HttpError: `timeout`, `transport-failure` or `http-status-error`.
    """
    try:
        response = await asyncio.wait_for(fetcher.fetch(url, options), timeout=timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.warning(f"Request to {url} timed out after {_format_seconds(timeout)}")
        raise HttpError(
            f"Request timeout after {_format_seconds(timeout)}", HttpErrorKind.TIMEOUT, timeout=timeout
        ) from None
    except httpx.HTTPError as e:
        logger.warning(f"Request to {url} failed: {e}")
        raise HttpError(str(e) or e.__class__.__name__, HttpErrorKind.TRANSPORT_FAILURE) from e

    if not response.is_success:
        try:
            body = response.text
        except Exception as e:
            logger.debug(f"Could not read error body from {url}: {e}")
            body = ""
        reason = response.reason_phrase or "Unknown"
        logger.info(f"Request to {url} returned HTTP {response.status_code}")
        raise HttpError(
            f"HTTP {response.status_code}: {reason}",
            HttpErrorKind.HTTP_STATUS_ERROR,
            status=response.status_code,
            response_text=body,
        )

    return response


def parse_json_response(response: httpx.Response) -> Any:
    """Decodes a JSON body.

    Raises:
        HttpError: kind `invalid-response` if the body is not valid JSON.
    """
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug(f"Invalid JSON in HTTP {response.status_code} response: {e}")
        raise HttpError(
            "Failed to parse JSON response",
            HttpErrorKind.INVALID_RESPONSE,
            status=response.status_code,
            response_text=response.text,
        ) from e
