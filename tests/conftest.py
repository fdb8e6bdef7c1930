import pytest
from pathlib import Path
from typing import Callable, List
from typer.testing import CliRunner

import httpx

from waybackmcp.domain.models.fetch import FetchConfig
from waybackmcp.infrastructure.http.configurable_fetch import ConfigurableFetch
from waybackmcp.infrastructure.resilience.rate_limiter import RateLimiter


class FakeClock:
    """Virtual time for the rate limiter: `sleep` advances `now` instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingHandler:
    """MockTransport handler that records requests and delegates to `respond`."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path: Path) -> str:
    return str(tmp_path / "responses")


@pytest.fixture
def make_fetcher(cache_dir: str):
    """Factory building a ConfigurableFetch whose client talks to a MockTransport."""

    def factory(handler, **config) -> ConfigurableFetch:
        config.setdefault("cache_dir", cache_dir)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ConfigurableFetch(FetchConfig(**config), client=client)

    return factory


@pytest.fixture
def rate_limiter() -> RateLimiter:
    """A limiter generous enough to never delay a unit test."""
    return RateLimiter(max_requests=100, time_window=60)


@pytest.fixture
def make_handler():
    """Factory wrapping a respond(request) function in a RecordingHandler."""
    return RecordingHandler
