"""Core service for searching the CDX index of the Wayback Machine."""

import logging
from typing import List, Optional, Sequence

from waybackmcp.core.services.base import WaybackService
from waybackmcp.domain.models.archive import ArchiveSnapshot, SearchResult
from waybackmcp.domain.models.common import CDX_ENDPOINT, build_archived_url
from waybackmcp.infrastructure.resilience.http import HttpError, HttpErrorKind, parse_json_response
from waybackmcp.utils.validation import InvalidInputError, normalize_date, validate_url

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 10


def format_capture_date(timestamp: str) -> str:
    """YYYYMMDDhhmmss -> 'YYYY-MM-DD hh:mm:ss'; missing time parts become 00."""
    hour = timestamp[8:10] or "00"
    minute = timestamp[10:12] or "00"
    second = timestamp[12:14] or "00"
    return f"{timestamp[0:4]}-{timestamp[4:6]}-{timestamp[6:8]} {hour}:{minute}:{second}"


def snapshot_from_row(row: Sequence[str]) -> ArchiveSnapshot:
    """Maps one CDX row (urlkey, timestamp, original, mimetype, statuscode, ...)."""
    _urlkey, timestamp, original, mimetype, statuscode = row[:5]
    return ArchiveSnapshot(
        url=original,
        archived_url=build_archived_url(timestamp, original),
        timestamp=timestamp,
        date=format_capture_date(timestamp),
        status_code=statuscode,
        mime_type=mimetype,
    )


class SearchService(WaybackService):
    """Lists captures of a URL, optionally within a date range."""

    async def search_archives(
        self,
        url: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> SearchResult:
        """Searches the CDX index.

        Args:
            url: URL (or URL pattern) to search for.
            from_date: Optional start date, YYYY-MM-DD.
            to_date: Optional end date, YYYY-MM-DD.
            limit: Maximum number of captures to return.

        Returns:
            A SearchResult; a 404 from the index counts as "no captures".
        """
        try:
            validated_url = validate_url(url)
            cdx_from = normalize_date(from_date, "From")
            cdx_to = normalize_date(to_date, "To")

            params = {"url": validated_url, "output": "json", "limit": str(limit)}
            if cdx_from:
                params["from"] = cdx_from
            if cdx_to:
                params["to"] = cdx_to

            logger.info(f"Searching archives for {validated_url} (from={cdx_from}, to={cdx_to}, limit={limit})")
            response = await self._request(CDX_ENDPOINT, params=params)
            rows = parse_json_response(response)
            if not isinstance(rows, list):
                raise HttpError("Unexpected CDX response format", HttpErrorKind.INVALID_RESPONSE)

            # First row is the header
            if len(rows) <= 1:
                return SearchResult(
                    success=True,
                    message=f"No archived versions found for {validated_url}",
                    results=[],
                    total_results=0,
                )

            results: List[ArchiveSnapshot] = []
            for row in rows[1:]:
                if len(row) < 5:
                    logger.debug(f"Skipping malformed CDX row: {row}")
                    continue
                results.append(snapshot_from_row(row))

            return SearchResult(
                success=True,
                message=f"Found {len(results)} archived version(s) of {validated_url}",
                results=results,
                total_results=len(results),
            )

        except HttpError as e:
            if e.status == 404:
                return SearchResult(
                    success=True,
                    message=f"No archived versions found for {url}",
                    results=[],
                    total_results=0,
                )
            logger.error(f"Archive search failed for {url}: {e}")
            return SearchResult(success=False, message=f"Failed to search archives: {e}")
        except InvalidInputError as e:
            return SearchResult(success=False, message=f"Failed to search archives: {e}")
