"""MCP tool server exposing the Wayback operations over stdio.

Tool calls are validated against the pydantic input models, dispatched to
the core services, and answered with a single text block rendered from the
service result.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from pydantic import BaseModel

from waybackmcp import __version__
from waybackmcp.core.services.fetch_service import FetchService
from waybackmcp.core.services.retrieve_service import RetrieveService
from waybackmcp.core.services.save_service import SaveService
from waybackmcp.core.services.search_service import SearchService
from waybackmcp.core.services.status_service import StatusService
from waybackmcp.domain.models.tool_inputs import (
    CheckArchiveStatusInput,
    ConfigureFetchInput,
    FetchUrlInput,
    GetArchivedUrlInput,
    SaveUrlInput,
    SearchArchivesInput,
)
from waybackmcp.infrastructure.resilience.http import HttpError
from waybackmcp.utils.formatting import (
    format_fetch_config_report,
    format_fetch_report,
    format_retrieve_result,
    format_save_result,
    format_search_result,
    format_status_result,
)
from waybackmcp.utils.validation import InvalidInputError, validate_input

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-wayback-machine"

# name -> (description, input model)
TOOL_DEFINITIONS: Dict[str, tuple] = {
    "save_url": ("Save a URL to the Wayback Machine", SaveUrlInput),
    "get_archived_url": ("Retrieve an archived version of a URL", GetArchivedUrlInput),
    "search_archives": ("Search the Wayback Machine archives for a URL", SearchArchivesInput),
    "check_archive_status": ("Check if a URL has been archived", CheckArchiveStatusInput),
    "fetch_url": (
        "Fetch a URL through the configurable fetch and report how it was served",
        FetchUrlInput,
    ),
    "configure_fetch": ("Configure the fetch backend, caching and User-Agent", ConfigureFetchInput),
}


def _mcp_error(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


def _format_tool_error(title: str, error: Exception, hint: str) -> str:
    return f"# {title}\n\n**Error**: {error}\n\n{hint}"


class WaybackMcpServer:
    """Binds the core services to an MCP low-level Server."""

    def __init__(
        self,
        save_service: SaveService,
        retrieve_service: RetrieveService,
        search_service: SearchService,
        status_service: StatusService,
        fetch_service: FetchService,
        name: str = SERVER_NAME,
        version: str = __version__,
    ):
        self.save_service = save_service
        self.retrieve_service = retrieve_service
        self.search_service = search_service
        self.status_service = status_service
        self.fetch_service = fetch_service
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[str]]] = {
            "save_url": self._save_url,
            "get_archived_url": self._get_archived_url,
            "search_archives": self._search_archives,
            "check_archive_status": self._check_archive_status,
            "fetch_url": self._fetch_url,
            "configure_fetch": self._configure_fetch,
        }
        self.server = Server(name, version=version)
        self._register_handlers()

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> List[types.Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
            return await self.call_tool(name, arguments)

    def list_tools(self) -> List[types.Tool]:
        """Describes every tool with the JSON schema of its input model."""
        return [
            types.Tool(name=name, description=description, inputSchema=model.model_json_schema(by_alias=True))
            for name, (description, model) in TOOL_DEFINITIONS.items()
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        """Runs one tool call.

        Raises:
            McpError: METHOD_NOT_FOUND for an unknown tool, INVALID_PARAMS for
                invalid arguments, INTERNAL_ERROR for anything unexpected.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise _mcp_error(types.METHOD_NOT_FOUND, f"Unknown tool: {name}")

        logger.info(f"Tool call: {name}")
        try:
            text = await handler(arguments or {})
        except McpError:
            raise
        except InvalidInputError as e:
            logger.info(f"Rejected arguments for {name}: {e}")
            raise _mcp_error(types.INVALID_PARAMS, str(e)) from e
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}", exc_info=True)
            raise _mcp_error(types.INTERNAL_ERROR, str(e) or "Unknown error occurred") from e

        return [types.TextContent(type="text", text=text)]

    # --- Tool handlers ---

    @staticmethod
    def _parse(model: Type[BaseModel], arguments: Dict[str, Any]) -> Any:
        return validate_input(model, arguments)

    async def _save_url(self, arguments: Dict[str, Any]) -> str:
        params = self._parse(SaveUrlInput, arguments)
        return format_save_result(await self.save_service.save_url(params.url))

    async def _get_archived_url(self, arguments: Dict[str, Any]) -> str:
        params = self._parse(GetArchivedUrlInput, arguments)
        result = await self.retrieve_service.get_archived_url(params.url, params.timestamp)
        return format_retrieve_result(result)

    async def _search_archives(self, arguments: Dict[str, Any]) -> str:
        params = self._parse(SearchArchivesInput, arguments)
        result = await self.search_service.search_archives(
            params.url, params.from_date, params.to_date, params.limit
        )
        return format_search_result(result)

    async def _check_archive_status(self, arguments: Dict[str, Any]) -> str:
        params = self._parse(CheckArchiveStatusInput, arguments)
        return format_status_result(await self.status_service.check_archive_status(params.url))

    async def _fetch_url(self, arguments: Dict[str, Any]) -> str:
        params = self._parse(FetchUrlInput, arguments)
        try:
            report = await self.fetch_service.fetch_url(
                params.url, params.backend, params.no_cache, params.user_agent
            )
        except (HttpError, ValueError) as e:
            return _format_tool_error(
                "Fetch Error", e, "This error occurred while fetching data through the configurable fetch."
            )
        return format_fetch_report(report)

    async def _configure_fetch(self, arguments: Dict[str, Any]) -> str:
        params = self._parse(ConfigureFetchInput, arguments)
        try:
            report = await self.fetch_service.configure_fetch(
                backend=params.backend,
                cache_ttl=params.cache_ttl,
                cache_dir=params.cache_dir,
                user_agent=params.user_agent,
                clear_cache=params.clear_cache,
            )
        except ValueError as e:
            return _format_tool_error(
                "Configuration Error", e, "Failed to update fetch configuration. Please check your input parameters."
            )
        return format_fetch_config_report(report)

    async def run_stdio(self) -> None:
        """Serves MCP requests on stdin/stdout until the client disconnects."""
        logger.info(f"{SERVER_NAME} server running on stdio")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())
