"""Core service reporting whether, and how often, a URL has been archived."""

import logging
from typing import Dict

from waybackmcp.core.services.base import WaybackService
from waybackmcp.core.services.retrieve_service import closest_snapshot
from waybackmcp.domain.models.archive import StatusResult
from waybackmcp.domain.models.common import AVAILABILITY_ENDPOINT, SPARKLINE_ENDPOINT
from waybackmcp.infrastructure.resilience.http import HttpError, parse_json_response
from waybackmcp.utils.validation import InvalidInputError, validate_url

logger = logging.getLogger(__name__)


def format_capture_day(timestamp: str) -> str:
    if len(timestamp) >= 8:
        return f"{timestamp[0:4]}-{timestamp[4:6]}-{timestamp[6:8]}"
    return timestamp


class StatusService(WaybackService):
    """Summarizes the capture history of a URL."""

    async def check_archive_status(self, url: str) -> StatusResult:
        """Checks capture statistics via the sparkline API.

        Falls back to the availability API when the sparkline has no data.
        """
        try:
            validated_url = validate_url(url)
            logger.info(f"Checking archive status of {validated_url}")

            response = await self._request(
                SPARKLINE_ENDPOINT,
                params={"url": validated_url, "collection": "web", "output": "json"},
            )
            sparkline = parse_json_response(response)

            if isinstance(sparkline, dict) and sparkline.get("first_ts"):
                yearly_captures: Dict[str, int] = {}
                for year, months in (sparkline.get("years") or {}).items():
                    yearly_captures[year] = sum(months)

                total = sparkline.get("captures") or 0
                last_ts = sparkline.get("last_ts")
                return StatusResult(
                    success=True,
                    message=f"{validated_url} has been archived {total} times",
                    is_archived=True,
                    first_capture=format_capture_day(sparkline["first_ts"]),
                    last_capture=format_capture_day(last_ts) if last_ts else None,
                    total_captures=total,
                    yearly_captures=yearly_captures,
                )

            logger.debug(f"No sparkline data for {validated_url}, checking availability API")
            response = await self._request(AVAILABILITY_ENDPOINT, params={"url": validated_url})
            snapshot = closest_snapshot(parse_json_response(response))
            if snapshot:
                return StatusResult(
                    success=True,
                    message=f"{validated_url} has been archived",
                    is_archived=True,
                    last_capture=snapshot.get("timestamp"),
                )

            return StatusResult(
                success=True,
                message=f"{validated_url} has not been archived",
                is_archived=False,
                total_captures=0,
            )

        except HttpError as e:
            if e.status == 404:
                return StatusResult(
                    success=True,
                    message=f"{url} has not been archived",
                    is_archived=False,
                    total_captures=0,
                )
            logger.error(f"Archive status check failed for {url}: {e}")
            return StatusResult(success=False, message=f"Failed to check archive status: {e}", is_archived=False)
        except InvalidInputError as e:
            return StatusResult(success=False, message=f"Failed to check archive status: {e}", is_archived=False)
