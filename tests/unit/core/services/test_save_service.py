import httpx
import pytest

from waybackmcp.core.services.save_service import SaveService
from waybackmcp.domain.models.fetch import FetchBackend

TARGET = "https://example.com"
CAPTURE_PATH = "/web/20240101123456/https://example.com"


@pytest.fixture
def make_service(make_fetcher, rate_limiter):
    def factory(handler) -> SaveService:
        return SaveService(make_fetcher(handler), rate_limiter, user_agent="test-agent/1.0")

    return factory


@pytest.mark.asyncio
async def test_capture_location_header(make_service, make_handler, rate_limiter):
    handler = make_handler(lambda request: httpx.Response(200, headers={"Content-Location": CAPTURE_PATH}))
    service = make_service(handler)

    result = await service.save_url(TARGET)

    assert result.success is True
    assert result.message == f"Successfully submitted {TARGET} for archiving"
    assert result.archived_url == f"https://web.archive.org{CAPTURE_PATH}"
    assert result.timestamp == "20240101123456"

    request = handler.requests[0]
    assert request.method == "GET"
    assert request.url.host == "web.archive.org"
    assert request.url.path == "/save/https://example.com"
    assert request.headers["user-agent"] == "test-agent/1.0"
    assert len(rate_limiter.timestamps) == 1


@pytest.mark.asyncio
async def test_redirect_to_capture_is_followed(make_service, make_handler):
    def respond(request):
        if request.url.path.startswith("/save/"):
            return httpx.Response(302, headers={"Location": f"https://web.archive.org{CAPTURE_PATH}"})
        return httpx.Response(200, text="<html>capture</html>")

    handler = make_handler(respond)
    result = await make_service(handler).save_url(TARGET)

    assert result.success is True
    assert result.archived_url == f"https://web.archive.org{CAPTURE_PATH}"
    assert result.timestamp == "20240101123456"
    assert handler.call_count == 2


@pytest.mark.asyncio
async def test_falls_back_to_save_api_with_job_details(make_service, make_handler, rate_limiter):
    def respond(request):
        if request.method == "POST":
            return httpx.Response(
                200,
                json={"job_id": "spn2-abc", "url": TARGET, "timestamp": "20240101000000"},
            )
        return httpx.Response(200, text="<html>Saving page now...</html>")

    handler = make_handler(respond)
    result = await make_service(handler).save_url(TARGET)

    assert result.success is True
    assert result.job_id == "spn2-abc"
    assert result.timestamp == "20240101000000"

    post = handler.requests[1]
    assert post.url == httpx.URL("https://web.archive.org/save")
    assert post.content == b"url=https%3A%2F%2Fexample.com"
    # Each request takes its own rate limit slot
    assert len(rate_limiter.timestamps) == 2


@pytest.mark.asyncio
async def test_non_json_fallback_still_reports_submission(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(200, text="<html>ok</html>"))

    result = await make_service(handler).save_url(TARGET)

    assert result.success is True
    assert result.message.endswith("Check status in a few moments.")
    assert result.job_id is None


@pytest.mark.asyncio
async def test_archive_rate_limit(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(429))

    result = await make_service(handler).save_url(TARGET)

    assert result.success is False
    assert result.message == "Rate limit exceeded. Please try again later."


@pytest.mark.asyncio
async def test_server_error(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(503))

    result = await make_service(handler).save_url(TARGET)

    assert result.success is False
    assert result.message == "Failed to save URL: HTTP 503: Service Unavailable"


@pytest.mark.asyncio
async def test_invalid_url_makes_no_request(make_service, make_handler, rate_limiter):
    handler = make_handler(lambda request: httpx.Response(200))

    result = await make_service(handler).save_url("ftp://example.com")

    assert result.success is False
    assert result.message.startswith("Failed to save URL: Invalid URL")
    assert handler.call_count == 0
    assert len(rate_limiter.timestamps) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("backend", [FetchBackend.CACHE_MEMORY, FetchBackend.CACHE_DISK])
async def test_repeated_save_always_reaches_archive(make_fetcher, make_handler, rate_limiter, backend):
    """A cached default backend must not answer a save from an earlier capture."""
    handler = make_handler(lambda request: httpx.Response(200, headers={"Content-Location": CAPTURE_PATH}))
    fetcher = make_fetcher(handler, backend=backend)
    service = SaveService(fetcher, rate_limiter)

    first = await service.save_url(TARGET)
    second = await service.save_url(TARGET)

    assert first.success is True
    assert second.success is True
    assert handler.call_count == 2
    assert len(rate_limiter.timestamps) == 2
    assert fetcher.get_cache_stats()["memory"]["entries"] == 0
    await fetcher.aclose()
