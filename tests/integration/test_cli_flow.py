import pytest
from pathlib import Path
from typer.testing import CliRunner
from unittest.mock import AsyncMock, MagicMock

import httpx

from waybackmcp import __version__
from waybackmcp.infrastructure.cli.display import ConsoleDisplay
from waybackmcp.infrastructure.config.settings import Settings
from waybackmcp.infrastructure.mcp.server import WaybackMcpServer
from waybackmcp.main import app

URL = "https://example.com"
CAPTURE = "https://web.archive.org/web/20240101000000/https://example.com/"


def wayback_responses(request: httpx.Request) -> httpx.Response:
    """A tiny stand-in for the archive endpoints."""
    path = request.url.path
    if path.startswith("/save/"):
        return httpx.Response(200, headers={"Content-Location": "/web/20240101000000/https://example.com/"})
    if path == "/wayback/available":
        if request.url.params["url"] == URL:
            return httpx.Response(
                200,
                json={"archived_snapshots": {"closest": {"available": True, "url": CAPTURE, "timestamp": "20240101000000"}}},
            )
        return httpx.Response(200, json={"archived_snapshots": {}})
    if path == "/cdx/search/cdx":
        return httpx.Response(
            200,
            json=[
                ["urlkey", "timestamp", "original", "mimetype", "statuscode", "digest", "length"],
                ["com,example)/", "20240101000000", URL, "text/html", "200", "X", "1"],
            ],
        )
    if path == "/__wb/sparkline":
        return httpx.Response(
            200,
            json={"first_ts": "20200101000000", "last_ts": "20240101000000", "captures": 3, "years": {"2024": [3]}},
        )
    if request.url.host == "api.example.com":
        return httpx.Response(200, json={"hello": "world"})
    return httpx.Response(404)


@pytest.fixture
def mock_display(mocker) -> MagicMock:
    """Patches ConsoleDisplay so CLI output can be asserted on."""
    display = MagicMock(spec=ConsoleDisplay)
    mocker.patch("waybackmcp.main.ConsoleDisplay", return_value=display)
    return display


@pytest.fixture
def recorded_requests(mocker):
    """Routes every outbound request to `wayback_responses` and records it."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return wayback_responses(request)

    mocker.patch(
        "waybackmcp.main.build_http_client",
        side_effect=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return requests


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, mocker, mock_display, recorded_requests) -> Settings:
    """Settings that ignore the user's config and cache in a temp directory."""
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")
    settings = Settings(config_file=tmp_path / "missing.yaml", env_file=env_file).load()
    settings.override({"fetch.cache_dir": str(tmp_path / "cache"), "rate_limit.max_requests": 100})
    mocker.patch("waybackmcp.main.load_settings", return_value=settings)
    mocker.patch("waybackmcp.main.setup_logging")
    return settings


def test_save_command_flow(runner: CliRunner, mock_display: MagicMock, recorded_requests):
    result = runner.invoke(app, ["save", URL])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert recorded_requests[0].url.path == "/save/https://example.com"
    title, fields = mock_display.display_fields.call_args.args
    assert title == "URL saved successfully!"
    assert fields["Archived URL"] == "https://web.archive.org/web/20240101000000/https://example.com/"


def test_get_command_flow(runner: CliRunner, mock_display: MagicMock, recorded_requests):
    result = runner.invoke(app, ["get", URL, "--timestamp", "2024"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert recorded_requests[0].url.params["timestamp"] == "2024"
    mock_display.display_fields.assert_called_once_with(
        "Archive found!", {"Archived URL": CAPTURE, "Timestamp": "20240101000000"}
    )


def test_get_command_not_found_exits_nonzero(runner: CliRunner, mock_display: MagicMock):
    result = runner.invoke(app, ["get", "https://never-archived.example"])

    assert result.exit_code == 1
    mock_display.display_error.assert_called_once_with("No archived versions found for https://never-archived.example")


def test_search_command_flow(runner: CliRunner, mock_display: MagicMock, recorded_requests):
    result = runner.invoke(app, ["search", URL, "--from", "2024-01-01", "--to", "2024-12-31", "-l", "3"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    params = recorded_requests[0].url.params
    assert (params["from"], params["to"], params["limit"]) == ("20240101", "20241231", "3")
    snapshots = mock_display.display_snapshots.call_args.args[0]
    assert [snapshot.date for snapshot in snapshots] == ["2024-01-01 00:00:00"]


def test_search_rejects_bad_date(runner: CliRunner, mock_display: MagicMock, recorded_requests):
    result = runner.invoke(app, ["search", URL, "--from", "01/01/2024"])

    assert result.exit_code == 1
    assert recorded_requests == []
    mock_display.display_error.assert_called_once_with(
        "Failed to search archives: From date must be in YYYY-MM-DD format"
    )


def test_status_command_flow(runner: CliRunner, mock_display: MagicMock):
    result = runner.invoke(app, ["status", URL])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    first, second = mock_display.display_fields.call_args_list
    assert first.args[0] == "URL is archived!"
    assert first.args[1]["Total captures"] == 3
    assert second.args == ("Yearly captures", {"2024": 3})


def test_fetch_command_with_global_backend(runner: CliRunner, mock_display: MagicMock, recorded_requests):
    result = runner.invoke(app, ["--backend", "cache-memory", "fetch", "https://api.example.com/data"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    report = mock_display.display_output.call_args.args[0]
    assert "- **Backend**: cache-memory" in report
    assert '"hello": "world"' in report
    assert len(recorded_requests) == 1


def test_fetch_command_http_error(runner: CliRunner, mock_display: MagicMock):
    result = runner.invoke(app, ["fetch", "https://unknown.example/missing", "--no-cache"])

    assert result.exit_code == 1
    mock_display.display_error.assert_called_once_with("Fetch failed: HTTP 404: Not Found")


def test_fetch_command_rejects_unknown_backend(runner: CliRunner):
    result = runner.invoke(app, ["fetch", URL, "--backend", "carrier-pigeon"])

    assert result.exit_code == 2


def test_clear_cache_command(runner: CliRunner, mock_display: MagicMock):
    result = runner.invoke(app, ["clear-cache"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    mock_display.display_info.assert_called_once_with("Response caches cleared successfully.")


def test_no_command_runs_mcp_server(runner: CliRunner, mocker):
    run_stdio = mocker.patch.object(WaybackMcpServer, "run_stdio", new_callable=AsyncMock)

    result = runner.invoke(app, [])

    assert result.exit_code == 0
    run_stdio.assert_awaited_once()


def test_version_flag(runner: CliRunner):
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.stdout.strip() == f"mcp-wayback-machine {__version__}"
