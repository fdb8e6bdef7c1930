"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like target URLs, Wayback timestamps
and cache keys, keeping signatures self-describing.
"""

from typing import NewType

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
TargetUrl = NewType("TargetUrl", str)            # The live URL being archived/looked up
ArchivedUrl = NewType("ArchivedUrl", str)        # A web.archive.org/web/... URL
WaybackTimestamp = NewType("WaybackTimestamp", str)  # YYYYMMDDhhmmss (possibly truncated)
CdxDate = NewType("CdxDate", str)                # YYYYMMDD as used by the CDX API

# === Caching Context ===
CacheKey = NewType("CacheKey", str)              # SHA-256 of method + URL

# === Wayback endpoints ===
WAYBACK_BASE_URL = "https://web.archive.org"
SAVE_ENDPOINT = f"{WAYBACK_BASE_URL}/save"
AVAILABILITY_ENDPOINT = "https://archive.org/wayback/available"
CDX_ENDPOINT = f"{WAYBACK_BASE_URL}/cdx/search/cdx"
SPARKLINE_ENDPOINT = f"{WAYBACK_BASE_URL}/__wb/sparkline"


def build_archived_url(timestamp: str, original_url: str) -> ArchivedUrl:
    """Builds the replay URL of a capture."""
    return ArchivedUrl(f"{WAYBACK_BASE_URL}/web/{timestamp}/{original_url}")
