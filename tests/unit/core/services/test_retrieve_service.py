import httpx
import pytest

from waybackmcp.core.services.retrieve_service import RetrieveService
from waybackmcp.domain.models.fetch import FetchBackend

TARGET = "https://example.com"

AVAILABLE = {
    "url": "example.com",
    "archived_snapshots": {
        "closest": {
            "status": "200",
            "available": True,
            "url": "http://web.archive.org/web/20240101000000/https://example.com/",
            "timestamp": "20240101000000",
        }
    },
}
NOT_AVAILABLE = {"url": "example.com", "archived_snapshots": {}}


@pytest.fixture
def make_service(make_fetcher, rate_limiter):
    def factory(handler) -> RetrieveService:
        return RetrieveService(make_fetcher(handler), rate_limiter)

    return factory


@pytest.mark.asyncio
async def test_closest_snapshot_found(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(200, json=AVAILABLE))

    result = await make_service(handler).get_archived_url(TARGET)

    assert result.success is True
    assert result.available is True
    assert result.message == f"Found archived version of {TARGET}"
    assert result.archived_url == AVAILABLE["archived_snapshots"]["closest"]["url"]
    assert result.timestamp == "20240101000000"

    request = handler.requests[0]
    assert request.url.host == "archive.org"
    assert request.url.path == "/wayback/available"
    assert request.url.params["url"] == TARGET
    assert "timestamp" not in request.url.params


@pytest.mark.asyncio
async def test_timestamp_is_forwarded_and_direct_url_offered(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(200, json=NOT_AVAILABLE))

    result = await make_service(handler).get_archived_url(TARGET, "20200101")

    assert handler.requests[0].url.params["timestamp"] == "20200101"
    assert result.success is True
    assert result.available is False
    assert result.archived_url == "https://web.archive.org/web/20200101/https://example.com"
    assert result.timestamp == "20200101"


@pytest.mark.asyncio
async def test_latest_means_no_timestamp(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(200, json=NOT_AVAILABLE))

    result = await make_service(handler).get_archived_url(TARGET, "latest")

    assert "timestamp" not in handler.requests[0].url.params
    assert result.success is False
    assert result.available is False
    assert result.message == f"No archived versions found for {TARGET}"


@pytest.mark.asyncio
async def test_invalid_timestamp(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(200, json=AVAILABLE))

    result = await make_service(handler).get_archived_url(TARGET, "yesterday")

    assert result.success is False
    assert result.message.startswith("Failed to retrieve archived URL:")
    assert handler.call_count == 0


@pytest.mark.asyncio
async def test_http_error(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(502))

    result = await make_service(handler).get_archived_url(TARGET)

    assert result.success is False
    assert result.message == "Failed to retrieve archived URL: HTTP 502: Bad Gateway"


@pytest.mark.asyncio
async def test_non_json_body(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(200, text="<html></html>"))

    result = await make_service(handler).get_archived_url(TARGET)

    assert result.success is False
    assert result.message == "Failed to retrieve archived URL: Failed to parse JSON response"


@pytest.mark.asyncio
async def test_lookups_bypass_the_response_cache(make_fetcher, make_handler, rate_limiter):
    handler = make_handler(lambda request: httpx.Response(200, json=AVAILABLE))
    service = RetrieveService(make_fetcher(handler, backend=FetchBackend.CACHE_MEMORY), rate_limiter)

    await service.get_archived_url(TARGET)
    await service.get_archived_url(TARGET)

    assert handler.call_count == 2
