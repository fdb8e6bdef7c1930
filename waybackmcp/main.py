"""Main entry point for the Wayback Machine tools.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler. Invoked
without a command it runs the MCP server on stdio.
"""

import asyncio
import logging
import sys
from typing import Any, Coroutine, Dict, Optional

import httpx
import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from waybackmcp import __version__

# --- Core Layer ---
from waybackmcp.core.command_handler import CommandHandler
from waybackmcp.core.services.fetch_service import FetchService
from waybackmcp.core.services.retrieve_service import RetrieveService
from waybackmcp.core.services.save_service import SaveService
from waybackmcp.core.services.search_service import SearchService
from waybackmcp.core.services.status_service import StatusService

# --- Domain Layer ---
from waybackmcp.domain.models.fetch import FetchBackend

# --- Infrastructure Layer ---
from waybackmcp.infrastructure.cli.display import ConsoleDisplay
from waybackmcp.infrastructure.config.settings import Settings, load_settings
from waybackmcp.infrastructure.http.configurable_fetch import ConfigurableFetch
from waybackmcp.infrastructure.mcp.server import WaybackMcpServer
from waybackmcp.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging
from waybackmcp.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def build_http_client() -> httpx.AsyncClient:
    """Creates the shared HTTP client. Request timeouts are applied per call."""
    return httpx.AsyncClient(timeout=None)


# --- Dependency Injection Container (Manual) ---

def create_dependencies(settings: Settings) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    setup_logging(
        log_level=resolve_log_level(settings.get("logging.level")),
        log_format=settings.get("logging.format"),
        log_file=settings.get("logging.file"),
    )
    logger.info("Initializing application dependencies...")
    dependencies: Dict[str, Any] = {}
    try:
        # 1. Infrastructure adapters
        dependencies["ui"] = ConsoleDisplay()
        dependencies["rate_limiter"] = RateLimiter(
            max_requests=int(settings.get("rate_limit.max_requests")),
            time_window=float(settings.get("rate_limit.window_seconds")),
        )
        dependencies["fetcher"] = ConfigurableFetch(settings.fetch_config(), client=build_http_client())

        # 2. Core services (injecting dependencies)
        common = {
            "fetcher": dependencies["fetcher"],
            "rate_limiter": dependencies["rate_limiter"],
            "user_agent": settings.get("fetch.user_agent"),
            "timeout": float(settings.get("fetch.timeout")),
        }
        dependencies["save_service"] = SaveService(**common, save_timeout=float(settings.get("save.timeout")))
        dependencies["retrieve_service"] = RetrieveService(**common)
        dependencies["search_service"] = SearchService(**common)
        dependencies["status_service"] = StatusService(**common)
        dependencies["fetch_service"] = FetchService(dependencies["fetcher"], timeout=common["timeout"])
        logger.info("Core services initialized.")

        # 3. Front ends
        services = {
            name: dependencies[name]
            for name in ("save_service", "retrieve_service", "search_service", "status_service", "fetch_service")
        }
        dependencies["command_handler"] = CommandHandler(ui=dependencies["ui"], **services)
        dependencies["mcp_server"] = WaybackMcpServer(**services)

        logger.info("All dependencies initialized successfully.")
        return dependencies

    except (ValidationError, ValueError, TypeError) as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        if dependencies.get("ui"):
            dependencies["ui"].display_error(f"Application Initialization Failed: {e}")
        else:
            print(f"FATAL ERROR during initialization: {e}", file=sys.stderr)
        sys.exit(1)


# --- Typer App Definition ---
app = typer.Typer(
    name="wayback",
    help="CLI tool for interacting with the Wayback Machine. Runs the MCP server when no command is given.",
    add_completion=False,
)


# --- Helper for Running Async Commands ---
def run_async(dependencies: Dict[str, Any], coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs a coroutine to completion, then releases the HTTP client and caches."""

    async def runner() -> Any:
        try:
            return await coro
        finally:
            await dependencies["fetcher"].aclose()

    try:
        return asyncio.run(runner())
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        return False
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        dependencies["ui"].display_error(f"Command execution failed: {e}")
        return False


def _finish(succeeded: Any) -> None:
    if not succeeded:
        raise typer.Exit(code=1)


def _handler(ctx: typer.Context) -> CommandHandler:
    return ctx.obj["command_handler"]


# --- CLI Commands ---

UrlArgument = Annotated[str, typer.Argument(help="The URL to operate on.")]


@app.command()
def save(ctx: typer.Context, url: UrlArgument):
    """Save a URL to the Wayback Machine."""
    _finish(run_async(ctx.obj, _handler(ctx).handle_save(url)))


@app.command()
def get(
    ctx: typer.Context,
    url: UrlArgument,
    timestamp: Annotated[
        Optional[str],
        typer.Option("--timestamp", "-t", help='Specific timestamp (YYYYMMDDhhmmss) or "latest".'),
    ] = None,
):
    """Get the archived version of a URL."""
    _finish(run_async(ctx.obj, _handler(ctx).handle_get(url, timestamp)))


@app.command()
def search(
    ctx: typer.Context,
    url: UrlArgument,
    from_date: Annotated[Optional[str], typer.Option("--from", "-f", help="Start date (YYYY-MM-DD).")] = None,
    to_date: Annotated[Optional[str], typer.Option("--to", "-t", help="End date (YYYY-MM-DD).")] = None,
    limit: Annotated[int, typer.Option("--limit", "-l", min=1, help="Maximum number of results.")] = 10,
):
    """Search for all archived versions of a URL."""
    _finish(run_async(ctx.obj, _handler(ctx).handle_search(url, from_date, to_date, limit)))


@app.command()
def status(ctx: typer.Context, url: UrlArgument):
    """Check the archive status of a URL."""
    _finish(run_async(ctx.obj, _handler(ctx).handle_status(url)))


@app.command()
def fetch(
    ctx: typer.Context,
    url: UrlArgument,
    backend: Annotated[
        Optional[FetchBackend], typer.Option("--backend", "-b", help="Fetch backend for this request.")
    ] = None,
    no_cache: Annotated[bool, typer.Option("--no-cache", help="Bypass the cache for this request.")] = False,
    user_agent: Annotated[Optional[str], typer.Option("--user-agent", help="Custom User-Agent header.")] = None,
):
    """Fetch any URL through the configurable fetch and show how it was served."""
    _finish(run_async(ctx.obj, _handler(ctx).handle_fetch(url, backend, no_cache, user_agent)))


@app.command(name="clear-cache")
def clear_cache_command(ctx: typer.Context):
    """Clear the in-memory and on-disk response caches."""
    _finish(run_async(ctx.obj, _handler(ctx).handle_clear_cache()))


@app.command()
def serve(ctx: typer.Context):
    """Run the MCP server on stdio."""
    _serve(ctx.obj)


def _serve(dependencies: Dict[str, Any]) -> None:
    mcp_server: WaybackMcpServer = dependencies["mcp_server"]
    run_async(dependencies, mcp_server.run_stdio())


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mcp-wayback-machine {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    backend: Annotated[
        Optional[FetchBackend],
        typer.Option("--backend", help="Default fetch backend for this run."),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = False,
):
    """Main entry point. Starts the MCP server if no command is given."""
    settings = load_settings()
    overrides: Dict[str, Any] = {}
    if backend is not None:
        overrides["fetch.backend"] = backend.value
    if log_level is not None:
        overrides["logging.level"] = log_level
    if overrides:
        settings.override(overrides)

    ctx.obj = create_dependencies(settings)

    if ctx.invoked_subcommand is None:
        logger.info("No command invoked, starting MCP server on stdio.")
        _serve(ctx.obj)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
