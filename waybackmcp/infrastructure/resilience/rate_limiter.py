"""Implementation of a rate limiter.

Controls the frequency of outgoing requests to the Wayback Machine using a
sliding window of admission timestamps.
"""

import time
import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque

logger = logging.getLogger(__name__)

# Conservative defaults to be respectful of the archive
DEFAULT_MAX_REQUESTS = 15  # 15 requests...
DEFAULT_TIME_WINDOW_SECONDS = 60  # ...per 60 seconds
DEFAULT_SLACK_SECONDS = 0.1  # added to every wait to absorb timer jitter


class RateLimiter:
    """Simple sliding window rate limiter.

    Waiting and recording are separate steps: callers `await wait_for_slot()`
    and then call `record_request()` immediately before issuing the request,
    so a caller that gives up after waiting does not consume a slot.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        time_window: float = DEFAULT_TIME_WINDOW_SECONDS,
        slack: float = DEFAULT_SLACK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the rate limiter.

        Args:
            max_requests: Maximum number of requests allowed in the time window.
            time_window: The time window in seconds.
            slack: Extra seconds slept on top of each computed wait.
            clock: Monotonic clock returning seconds.
            sleep: Coroutine function used to suspend the caller.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if time_window <= 0:
            raise ValueError("time_window must be positive")
        self.max_requests = max_requests
        self.time_window = time_window
        self.slack = slack
        self._clock = clock
        self._sleep = sleep
        self.timestamps: Deque[float] = deque()
        logger.info(f"RateLimiter initialized: {max_requests} requests / {time_window} seconds")

    def _cleanup_timestamps(self) -> None:
        """Removes timestamps older than the time window."""
        now = self._clock()
        while self.timestamps and now - self.timestamps[0] >= self.time_window:
            self.timestamps.popleft()

    def can_make_request(self) -> bool:
        """Returns whether a request could be admitted right now."""
        self._cleanup_timestamps()
        return len(self.timestamps) < self.max_requests

    def get_wait_time(self) -> float:
        """Estimates the time needed before the next request can be made."""
        if self.can_make_request():
            return 0.0
        oldest_timestamp = self.timestamps[0]
        return max(0.0, oldest_timestamp + self.time_window - self._clock())

    async def wait_for_slot(self) -> float:
        """Waits until a request is permitted according to the rate limit.

        Returns:
            The total number of seconds spent waiting (0.0 if admitted at once).
        """
        waited = 0.0
        while not self.can_make_request():
            wait_time = self.get_wait_time() + self.slack
            logger.debug(f"Rate limit reached. Waiting for {wait_time:.2f} seconds.")
            await self._sleep(wait_time)
            waited += wait_time
        return waited

    def record_request(self) -> None:
        """Records an admission at the current time."""
        self.timestamps.append(self._clock())
        logger.debug(f"Rate limit slot used ({len(self.timestamps)}/{self.max_requests}).")
