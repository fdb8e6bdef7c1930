"""Application services, one per Wayback Machine operation plus the fetch tools."""
