import httpx
import pytest

from waybackmcp.core.services.search_service import SearchService, format_capture_date

TARGET = "https://example.com"

CDX_ROWS = [
    ["urlkey", "timestamp", "original", "mimetype", "statuscode", "digest", "length"],
    ["com,example)/", "20230115083000", "https://example.com/", "text/html", "200", "ABC", "1234"],
    ["com,example)/", "20230601", "https://example.com/", "text/html", "301", "DEF", "321"],
]


@pytest.fixture
def make_service(make_fetcher, rate_limiter):
    def factory(handler) -> SearchService:
        return SearchService(make_fetcher(handler), rate_limiter)

    return factory


@pytest.mark.asyncio
async def test_rows_become_snapshots(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(200, json=CDX_ROWS))

    result = await make_service(handler).search_archives(TARGET, "2023-01-01", "2023-12-31", limit=5)

    assert result.success is True
    assert result.total_results == 2
    assert result.message == f"Found 2 archived version(s) of {TARGET}"
    first, second = result.results
    assert first.date == "2023-01-15 08:30:00"
    assert first.archived_url == "https://web.archive.org/web/20230115083000/https://example.com/"
    assert first.status_code == "200"
    assert first.mime_type == "text/html"
    assert second.date == "2023-06-01 00:00:00"

    params = handler.requests[0].url.params
    assert handler.requests[0].url.path == "/cdx/search/cdx"
    assert params["output"] == "json"
    assert params["limit"] == "5"
    assert params["from"] == "20230101"
    assert params["to"] == "20231231"


@pytest.mark.asyncio
async def test_header_only_means_no_results(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(200, json=CDX_ROWS[:1]))

    result = await make_service(handler).search_archives(TARGET)

    assert result.success is True
    assert result.results == []
    assert result.total_results == 0
    assert "from" not in handler.requests[0].url.params
    assert handler.requests[0].url.params["limit"] == "10"


@pytest.mark.asyncio
async def test_not_found_is_an_empty_success(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(404))

    result = await make_service(handler).search_archives(TARGET)

    assert result.success is True
    assert result.results == []
    assert result.message == f"No archived versions found for {TARGET}"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "from_date, to_date, expected",
    [
        ("2023/01/01", None, "From date must be in YYYY-MM-DD format"),
        (None, "2023-1-1", "To date must be in YYYY-MM-DD format"),
    ],
)
async def test_bad_dates_are_rejected(make_service, make_handler, from_date, to_date, expected):
    handler = make_handler(lambda request: httpx.Response(200, json=CDX_ROWS))

    result = await make_service(handler).search_archives(TARGET, from_date, to_date)

    assert result.success is False
    assert result.message == f"Failed to search archives: {expected}"
    assert handler.call_count == 0


@pytest.mark.asyncio
async def test_server_error(make_service, make_handler):
    handler = make_handler(lambda request: httpx.Response(500))

    result = await make_service(handler).search_archives(TARGET)

    assert result.success is False
    assert result.message == "Failed to search archives: HTTP 500: Internal Server Error"


def test_format_capture_date_pads_missing_time():
    assert format_capture_date("20230115") == "2023-01-15 00:00:00"
    assert format_capture_date("2023011508") == "2023-01-15 08:00:00"
