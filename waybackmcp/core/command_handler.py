"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work to
the Wayback services and renders their results through the UserInterface.
Every handler returns whether the command succeeded so the CLI can set its
exit code.
"""

import logging
from typing import Optional

from waybackmcp.core.services.fetch_service import FetchService
from waybackmcp.core.services.retrieve_service import RetrieveService
from waybackmcp.core.services.save_service import SaveService
from waybackmcp.core.services.search_service import SearchService
from waybackmcp.core.services.status_service import StatusService
from waybackmcp.domain.interfaces.user_interface import UserInterface
from waybackmcp.domain.models.fetch import FetchBackend
from waybackmcp.utils.formatting import format_fetch_report

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        save_service: SaveService,
        retrieve_service: RetrieveService,
        search_service: SearchService,
        status_service: StatusService,
        fetch_service: FetchService,
        ui: UserInterface,
    ):
        """Initializes the CommandHandler with required services."""
        self.save_service = save_service
        self.retrieve_service = retrieve_service
        self.search_service = search_service
        self.status_service = status_service
        self.fetch_service = fetch_service
        self.ui = ui

    async def handle_save(self, url: str) -> bool:
        """Handles the 'save' command."""
        logger.info(f"Handling 'save' command for: {url}")
        try:
            with self.ui.status("Saving URL to Wayback Machine..."):
                result = await self.save_service.save_url(url)
        except Exception as e:
            logger.error(f"Save command failed: {e}", exc_info=True)
            self.ui.display_error(f"Error saving URL: {e}")
            return False

        if not result.success:
            self.ui.display_error(result.message)
            return False
        self.ui.display_info(result.message)
        self.ui.display_fields(
            "URL saved successfully!",
            {
                "Archived URL": result.archived_url,
                "Timestamp": result.timestamp,
                "Job ID": result.job_id,
            },
        )
        return True

    async def handle_get(self, url: str, timestamp: Optional[str] = None) -> bool:
        """Handles the 'get' command."""
        logger.info(f"Handling 'get' command for: {url} (timestamp={timestamp or 'latest'})")
        try:
            with self.ui.status("Retrieving archived URL..."):
                result = await self.retrieve_service.get_archived_url(url, timestamp)
        except Exception as e:
            logger.error(f"Get command failed: {e}", exc_info=True)
            self.ui.display_error(f"Error retrieving archive: {e}")
            return False

        if not result.success:
            self.ui.display_error(result.message)
            return False
        if not result.available:
            # Only a guessed URL; worth showing, but flagged as unconfirmed
            self.ui.display_warning(result.message)
            self.ui.display_fields("Unconfirmed archive", {"Archived URL": result.archived_url})
            return True
        self.ui.display_fields(
            "Archive found!",
            {"Archived URL": result.archived_url, "Timestamp": result.timestamp},
        )
        return True

    async def handle_search(
        self,
        url: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        limit: int = 10,
    ) -> bool:
        """Handles the 'search' command."""
        logger.info(f"Handling 'search' command for: {url} (from={from_date}, to={to_date}, limit={limit})")
        try:
            with self.ui.status("Searching archives..."):
                result = await self.search_service.search_archives(url, from_date, to_date, limit)
        except Exception as e:
            logger.error(f"Search command failed: {e}", exc_info=True)
            self.ui.display_error(f"Error searching archives: {e}")
            return False

        if not result.success:
            self.ui.display_error(result.message)
            return False
        if not result.results:
            self.ui.display_warning(result.message)
            return True
        self.ui.display_info(f"Found {result.total_results} archives")
        self.ui.display_snapshots(result.results)
        return True

    async def handle_status(self, url: str) -> bool:
        """Handles the 'status' command."""
        logger.info(f"Handling 'status' command for: {url}")
        try:
            with self.ui.status("Checking archive status..."):
                result = await self.status_service.check_archive_status(url)
        except Exception as e:
            logger.error(f"Status command failed: {e}", exc_info=True)
            self.ui.display_error(f"Error checking status: {e}")
            return False

        if not result.success:
            self.ui.display_error(result.message)
            return False
        if not result.is_archived:
            self.ui.display_warning("URL has not been archived")
            return True

        self.ui.display_fields(
            "URL is archived!",
            {
                "Total captures": result.total_captures,
                "First capture": result.first_capture,
                "Last capture": result.last_capture,
            },
        )
        if result.yearly_captures:
            self.ui.display_fields("Yearly captures", dict(result.yearly_captures))
        return True

    async def handle_fetch(
        self,
        url: str,
        backend: Optional[FetchBackend] = None,
        no_cache: bool = False,
        user_agent: Optional[str] = None,
    ) -> bool:
        """Handles the 'fetch' command."""
        logger.info(f"Handling 'fetch' command for: {url} (backend={backend}, no_cache={no_cache})")
        try:
            with self.ui.status(f"Fetching {url}..."):
                report = await self.fetch_service.fetch_url(url, backend, no_cache, user_agent)
        except Exception as e:
            logger.error(f"Fetch command failed: {e}", exc_info=True)
            self.ui.display_error(f"Fetch failed: {e}")
            return False

        if report.degraded:
            self.ui.display_warning(f"{report.backend} unavailable, fetched with {report.used_backend}")
        self.ui.display_output(format_fetch_report(report))
        return True

    async def handle_clear_cache(self) -> bool:
        """Handles the 'clear-cache' command."""
        logger.info("Handling 'clear-cache' command")
        try:
            await self.fetch_service.configure_fetch(clear_cache=True)
            self.ui.display_info("Response caches cleared successfully.")
            return True
        except Exception as e:
            logger.error(f"Failed to clear caches: {e}", exc_info=True)
            self.ui.display_error(f"Failed to clear cache: {e}")
            return False
