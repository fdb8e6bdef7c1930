"""Result objects returned by the Wayback operations.

Every operation reports `success` and a human-readable `message`; the
remaining fields are only set when the archive returned them. Front ends
render these objects and never look at raw HTTP responses.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class OperationResult:
    """Base shape shared by all operation results."""
    success: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SaveResult(OperationResult):
    """Outcome of submitting a URL for archiving."""
    job_id: Optional[str] = None
    archived_url: Optional[str] = None
    timestamp: Optional[str] = None


@dataclass
class RetrieveResult(OperationResult):
    """Outcome of looking up the closest archived copy of a URL."""
    archived_url: Optional[str] = None
    timestamp: Optional[str] = None
    available: Optional[bool] = None


@dataclass
class ArchiveSnapshot:
    """One capture row from the CDX index."""
    url: str
    archived_url: str
    timestamp: str
    date: str  # YYYY-MM-DD hh:mm:ss
    status_code: str
    mime_type: str


@dataclass
class SearchResult(OperationResult):
    """Outcome of a CDX search."""
    results: Optional[List[ArchiveSnapshot]] = None
    total_results: Optional[int] = None


@dataclass
class StatusResult(OperationResult):
    """Capture statistics for a URL."""
    is_archived: bool = False
    first_capture: Optional[str] = None
    last_capture: Optional[str] = None
    total_captures: Optional[int] = None
    yearly_captures: Optional[Dict[str, int]] = None


@dataclass
class FetchReport:
    """Details of a single fetch performed through the configurable fetch."""
    url: str
    backend: str
    used_backend: str
    degraded: bool
    cache_bypassed: bool
    user_agent: Optional[str]
    duration_ms: int
    status_code: int
    reason_phrase: str
    content_type: Optional[str]
    parsed_as: str  # 'json' or 'text'
    data: Any
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FetchConfigReport:
    """Configuration and cache state after a configure_fetch call."""
    config: Dict[str, Any]
    cache_stats: Dict[str, Any]
    caches_cleared: bool = False
