"""Value objects describing how outbound HTTP requests are executed.

`FetchConfig` is the validated, process-wide configuration of the
configurable fetch; `StrategySelection` records which execution strategy a
single call ended up using.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CACHE_TTL_SECONDS = 5 * 60  # 5 minutes
DEFAULT_CACHE_DIR = str(Path.home() / ".wayback_cache" / "responses")
DEFAULT_MAX_CACHE_SIZE = 100 * 1024 * 1024  # 100MB


class FetchBackend(str, Enum):
    """Supported request execution strategies."""
    BUILT_IN = "built-in"          # plain httpx request, no caching
    CACHE_MEMORY = "cache-memory"  # responses cached in process memory
    CACHE_DISK = "cache-disk"      # responses cached on disk (diskcache)

    @property
    def is_cached(self) -> bool:
        return self is not FetchBackend.BUILT_IN


class FetchConfig(BaseModel):
    """Process-wide configuration of the configurable fetch."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    backend: FetchBackend = FetchBackend.BUILT_IN
    cache_ttl: float = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0, description="Cache TTL in seconds")
    cache_dir: str = Field(default=DEFAULT_CACHE_DIR, min_length=1)
    max_cache_size: int = Field(default=DEFAULT_MAX_CACHE_SIZE, gt=0, description="Maximum cache size in bytes")
    user_agent: Optional[str] = None
    default_headers: Dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class StrategySelection:
    """Which strategy was requested for a call and which one actually ran."""
    requested: FetchBackend
    used: FetchBackend
    degraded: bool = False
    reason: Optional[str] = None

    @property
    def cache_bypassed(self) -> bool:
        return self.requested.is_cached and self.used is FetchBackend.BUILT_IN
