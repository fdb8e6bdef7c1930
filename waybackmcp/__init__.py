"""mcp-wayback-machine: Wayback Machine tools for MCP clients and the command line."""

__version__ = "0.1.0"

DEFAULT_USER_AGENT = f"mcp-wayback-machine/{__version__}"
