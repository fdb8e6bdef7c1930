"""Domain Events related to outbound archive requests.

Examples include events for when requests are deferred by the rate limiter,
admitted, fail, succeed, or fall back from a cached strategy.
"""

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


# --- Specific Request Events ---

@dataclass
class RequestDeferred(DomainEvent):
    """Event triggered when a request had to wait for a rate limit slot."""
    endpoint: str
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequestAdmitted(DomainEvent):
    """Event triggered when a request is about to be made."""
    endpoint: str
    method: str = "GET"
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequestSucceeded(DomainEvent):
    """Event triggered when a request returns a 2xx response."""
    endpoint: str
    status_code: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequestFailed(DomainEvent):
    """Event triggered when a request fails (timeout, transport or HTTP status)."""
    endpoint: str
    error_kind: str
    error_message: str
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheFallbackTriggered(DomainEvent):
    """Event triggered when a cached strategy is unavailable and direct fetch is used."""
    requested_backend: str
    reason: str
    timestamp: float = field(default_factory=time.time)


def dispatch_event(event: Any) -> None:
    """Publishes an event. Events currently go to the debug log only."""
    logger.debug(f"EVENT: {event}")
