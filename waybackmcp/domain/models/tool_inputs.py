"""Input schemas for the MCP tools.

The JSON schemas advertised to MCP clients are generated from these models.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from waybackmcp.domain.models.fetch import FetchBackend
from waybackmcp.utils.validation import validate_url


class _UrlInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return validate_url(value)


class SaveUrlInput(_UrlInput):
    url: str = Field(description="The URL to save to the Wayback Machine")


class GetArchivedUrlInput(_UrlInput):
    url: str = Field(description="The URL to retrieve from the Wayback Machine")
    timestamp: Optional[str] = Field(
        default=None,
        description='Specific timestamp (YYYYMMDDhhmmss) or "latest" for most recent',
    )


class SearchArchivesInput(_UrlInput):
    url: str = Field(description="The URL pattern to search for")
    from_date: Optional[str] = Field(default=None, alias="from", description="Start date (YYYY-MM-DD)")
    to_date: Optional[str] = Field(default=None, alias="to", description="End date (YYYY-MM-DD)")
    limit: int = Field(default=10, ge=1, description="Maximum number of results")


class CheckArchiveStatusInput(_UrlInput):
    url: str = Field(description="The URL to check")


class FetchUrlInput(_UrlInput):
    url: str = Field(description="URL to fetch data from")
    backend: Optional[FetchBackend] = Field(default=None, description="Fetch backend to use for this request")
    no_cache: bool = Field(default=False, description="Bypass cache for this request")
    user_agent: Optional[str] = Field(default=None, description="Custom User-Agent header for this request")


class ConfigureFetchInput(BaseModel):
    backend: Optional[FetchBackend] = Field(default=None, description="Default fetch backend to use")
    cache_ttl: Optional[float] = Field(default=None, gt=0, description="Cache TTL in seconds")
    cache_dir: Optional[str] = Field(default=None, description="Directory for disk caching")
    user_agent: Optional[str] = Field(default=None, description="Default User-Agent header")
    clear_cache: bool = Field(default=False, description="Clear all caches")
