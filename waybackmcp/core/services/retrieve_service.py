"""Core service for looking up archived copies of a URL."""

import logging
from typing import Any, Dict, Optional

from waybackmcp.core.services.base import WaybackService
from waybackmcp.domain.models.archive import RetrieveResult
from waybackmcp.domain.models.common import AVAILABILITY_ENDPOINT, build_archived_url
from waybackmcp.infrastructure.resilience.http import HttpError, parse_json_response
from waybackmcp.utils.validation import InvalidInputError, format_timestamp, validate_url

logger = logging.getLogger(__name__)


def closest_snapshot(payload: Any) -> Optional[Dict[str, Any]]:
    """Extracts the closest available snapshot from an availability API payload."""
    if not isinstance(payload, dict):
        return None
    closest = (payload.get("archived_snapshots") or {}).get("closest")
    if isinstance(closest, dict) and closest.get("available"):
        return closest
    return None


class RetrieveService(WaybackService):
    """Finds the archived version of a URL closest to a timestamp."""

    async def get_archived_url(self, url: str, timestamp: Optional[str] = None) -> RetrieveResult:
        try:
            validated_url = validate_url(url)
            formatted_timestamp = format_timestamp(timestamp)

            params = {"url": validated_url}
            if formatted_timestamp:
                params["timestamp"] = formatted_timestamp

            logger.info(f"Looking up archived version of {validated_url} (timestamp={formatted_timestamp or 'latest'})")
            response = await self._request(AVAILABILITY_ENDPOINT, params=params)
            snapshot = closest_snapshot(parse_json_response(response))

            if snapshot:
                return RetrieveResult(
                    success=True,
                    message=f"Found archived version of {validated_url}",
                    archived_url=snapshot.get("url"),
                    timestamp=snapshot.get("timestamp"),
                    available=True,
                )

            # The availability API can miss captures; give the caller a direct URL to try
            if formatted_timestamp:
                return RetrieveResult(
                    success=True,
                    message="No confirmed archive found. You can try this URL directly:",
                    archived_url=build_archived_url(formatted_timestamp, validated_url),
                    timestamp=formatted_timestamp,
                    available=False,
                )

            return RetrieveResult(
                success=False,
                message=f"No archived versions found for {validated_url}",
                available=False,
            )

        except (HttpError, InvalidInputError) as e:
            logger.error(f"Failed to retrieve archived URL for {url}: {e}")
            return RetrieveResult(success=False, message=f"Failed to retrieve archived URL: {e}")
