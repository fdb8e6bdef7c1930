"""Model Context Protocol server exposing the Wayback operations as tools."""
