import pytest

from waybackmcp.domain.interfaces.cache import CachedResponse
from waybackmcp.infrastructure.cache.disk_cache import DiskResponseCache


@pytest.fixture
def disk_cache(tmp_path):
    cache = DiskResponseCache(cache_dir=str(tmp_path / "disk"), ttl=60)
    yield cache
    cache.close()


@pytest.mark.asyncio
async def test_round_trip_through_disk(disk_cache):
    stored = CachedResponse(
        status_code=200,
        url="https://example.com",
        content=b'{"a": 1}',
        headers=[("Content-Type", "application/json")],
    )
    await disk_cache.set("key", stored)

    cached = await disk_cache.get("key")

    assert cached == stored
    assert await disk_cache.get("other") is None


@pytest.mark.asyncio
async def test_entries_survive_reopening(tmp_path):
    directory = str(tmp_path / "persistent")
    first = DiskResponseCache(cache_dir=directory)
    await first.set("key", CachedResponse(status_code=200, url="https://example.com", content=b"x"))
    first.close()

    second = DiskResponseCache(cache_dir=directory)
    try:
        assert (await second.get("key")).content == b"x"
    finally:
        second.close()


@pytest.mark.asyncio
async def test_clear_and_stats(disk_cache, tmp_path):
    await disk_cache.set("key", CachedResponse(status_code=200, url="https://example.com", content=b"x"))
    assert disk_cache.stats()["entries"] == 1

    await disk_cache.clear()

    stats = disk_cache.stats()
    assert stats["entries"] == 0
    assert stats["type"] == "file-system"
    assert stats["cache_directory"] == str(tmp_path / "disk")
