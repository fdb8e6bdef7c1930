"""Core service for submitting URLs to the Wayback Machine for archiving."""

import logging
import re
from typing import Optional
from urllib.parse import quote

import httpx

from waybackmcp.core.services.base import WaybackService
from waybackmcp.domain.models.archive import SaveResult
from waybackmcp.domain.models.common import SAVE_ENDPOINT, WAYBACK_BASE_URL
from waybackmcp.infrastructure.resilience.http import HttpError, parse_json_response
from waybackmcp.utils.validation import InvalidInputError, validate_url

logger = logging.getLogger(__name__)

SAVE_TIMEOUT_SECONDS = 60.0  # Saving a page can take a while on the archive side
ARCHIVED_TIMESTAMP_PATTERN = re.compile(r"/web/(\d{14})/")


def _find_archived_location(response: httpx.Response) -> Optional[str]:
    """Returns the /web/ location of the capture, made absolute, if any."""
    candidates = (
        response.headers.get("Location"),
        response.headers.get("Content-Location"),
        str(response.url),
    )
    for candidate in candidates:
        if candidate and "/web/" in candidate:
            if candidate.startswith("/"):
                return f"{WAYBACK_BASE_URL}{candidate}"
            return candidate
    return None


class SaveService(WaybackService):
    """Orchestrates the save-page-now functionality."""

    def __init__(self, *args, save_timeout: float = SAVE_TIMEOUT_SECONDS, **kwargs):
        super().__init__(*args, **kwargs)
        self.save_timeout = save_timeout

    async def save_url(self, url: str) -> SaveResult:
        """Submits `url` for archiving.

        Tries the save-page-now GET endpoint first and falls back to the form
        POST endpoint when the first response does not point at a capture.
        """
        try:
            validated_url = validate_url(url)
            logger.info(f"Submitting {validated_url} for archiving")
            success_message = f"Successfully submitted {validated_url} for archiving"

            response = await self._request(
                f"{SAVE_ENDPOINT}/{quote(validated_url, safe='')}", timeout=self.save_timeout
            )
            archived_url = _find_archived_location(response)
            if archived_url:
                match = ARCHIVED_TIMESTAMP_PATTERN.search(archived_url)
                return SaveResult(
                    success=True,
                    message=success_message,
                    archived_url=archived_url,
                    timestamp=match.group(1) if match else None,
                )

            logger.debug("No capture location in save response, trying the save API endpoint")
            response = await self._request(
                SAVE_ENDPOINT, method="POST", data={"url": validated_url}, timeout=self.save_timeout
            )
            try:
                payload = parse_json_response(response)
            except HttpError:
                payload = None

            if isinstance(payload, dict):
                return SaveResult(
                    success=True,
                    message=success_message,
                    job_id=payload.get("job_id"),
                    archived_url=payload.get("url"),
                    timestamp=payload.get("timestamp"),
                )
            return SaveResult(success=True, message=f"{success_message}. Check status in a few moments.")

        except HttpError as e:
            if e.status == 429:
                logger.warning(f"Archive rate limit hit while saving {url}")
                return SaveResult(success=False, message="Rate limit exceeded. Please try again later.")
            logger.error(f"Failed to save {url}: {e}")
            return SaveResult(success=False, message=f"Failed to save URL: {e}")
        except InvalidInputError as e:
            return SaveResult(success=False, message=f"Failed to save URL: {e}")
