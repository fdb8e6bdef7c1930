"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the Wayback Machine HTTP API,
caches on disk, the console, MCP clients) by implementing the interfaces
defined in the domain layer.
"""
