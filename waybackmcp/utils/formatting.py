"""Plain-text renderings of operation results.

Used for MCP tool responses; the fetch reports are Markdown and are also
shown by the CLI.
"""

import json

from waybackmcp.domain.models.archive import (
    FetchConfigReport,
    FetchReport,
    RetrieveResult,
    SaveResult,
    SearchResult,
    StatusResult,
)

BACKEND_DESCRIPTIONS = (
    ("built-in", "Plain httpx request (no caching)"),
    ("cache-memory", "In-memory caching (fast, but lost on restart)"),
    ("cache-disk", "Disk-based caching (persistent across restarts)"),
)


def format_save_result(result: SaveResult) -> str:
    text = result.message
    if result.archived_url:
        text += f"\n\nArchived URL: {result.archived_url}"
    if result.timestamp:
        text += f"\nTimestamp: {result.timestamp}"
    if result.job_id:
        text += f"\nJob ID: {result.job_id}"
    return text


def format_retrieve_result(result: RetrieveResult) -> str:
    text = result.message
    if result.archived_url:
        text += f"\n\nArchived URL: {result.archived_url}"
    if result.timestamp:
        text += f"\nTimestamp: {result.timestamp}"
    if result.available is not None:
        text += f"\nAvailable: {'Yes' if result.available else 'No'}"
    return text


def format_search_result(result: SearchResult) -> str:
    text = result.message
    if result.results:
        text += "\n\nResults:"
        for snapshot in result.results:
            text += f"\n\n- Date: {snapshot.date}"
            text += f"\n  URL: {snapshot.archived_url}"
            text += f"\n  Status: {snapshot.status_code}"
            text += f"\n  Type: {snapshot.mime_type}"
    return text


def format_status_result(result: StatusResult) -> str:
    text = result.message
    if result.is_archived:
        if result.first_capture:
            text += f"\n\nFirst captured: {result.first_capture}"
        if result.last_capture:
            text += f"\nLast captured: {result.last_capture}"
        if result.total_captures is not None:
            text += f"\nTotal captures: {result.total_captures}"
        if result.yearly_captures:
            text += "\n\nCaptures by year:"
            for year, count in result.yearly_captures.items():
                text += f"\n  {year}: {count}"
    return text


def format_fetch_report(report: FetchReport) -> str:
    """Renders a fetch as a Markdown report."""
    if report.parsed_as == "json":
        body = json.dumps(report.data, indent=2, ensure_ascii=False)
    else:
        body = str(report.data)
    config = report.config

    lines = [
        "# Fetch Results",
        "",
        "## Request Details",
        f"- **URL**: {report.url}",
        f"- **Backend**: {report.backend}",
        f"- **Used Backend**: {report.used_backend}" + (" (degraded)" if report.degraded else ""),
        f"- **Cache Bypassed**: {'Yes' if report.cache_bypassed else 'No'}",
        f"- **Custom User-Agent**: {report.user_agent or 'None'}",
        f"- **Duration**: {report.duration_ms}ms",
        "",
        "## Response Details",
        f"- **Status**: {report.status_code} {report.reason_phrase}",
        f"- **Content-Type**: {report.content_type or 'Unknown'}",
        f"- **Parsed As**: {report.parsed_as}",
        "",
        "## Response Data",
        f"```{report.parsed_as}",
        body,
        "```",
        "",
        "## Current Fetch Configuration",
        f"- **Default Backend**: {config.get('backend')}",
        f"- **Cache TTL**: {config.get('cache_ttl')}s",
        f"- **Cache Directory**: {config.get('cache_dir')}",
        f"- **Default User-Agent**: {config.get('user_agent') or 'Not set'}",
    ]
    return "\n".join(lines)


def format_fetch_config_report(report: FetchConfigReport) -> str:
    """Renders the fetch configuration and cache state as Markdown."""
    config = report.config
    max_cache_mb = round((config.get("max_cache_size") or 0) / 1024 / 1024)
    memory = report.cache_stats.get("memory", {})
    disk = report.cache_stats.get("disk", {})

    lines = [
        "# Fetch Configuration Updated",
        "",
        "## Current Configuration",
        f"- **Backend**: {config.get('backend')}",
        f"- **Cache TTL**: {config.get('cache_ttl')}s",
        f"- **Cache Directory**: {config.get('cache_dir')}",
        f"- **Max Cache Size**: {max_cache_mb}MB",
        f"- **User-Agent**: {config.get('user_agent') or 'Not set'}",
        "",
        "## Cache Status",
    ]
    if report.caches_cleared:
        lines.append("- **Caches cleared**")
    lines.append(f"- **Memory Cache**: {'Enabled' if memory.get('enabled') else 'Disabled'}")
    lines.append(f"- **Disk Cache**: {'Enabled' if disk.get('enabled') else 'Disabled'}")
    lines.append("")
    lines.append("## Available Backends")
    lines.extend(f"- `{name}`: {description}" for name, description in BACKEND_DESCRIPTIONS)
    return "\n".join(lines)
