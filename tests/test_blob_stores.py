"""Tests for the BlobStore adapters."""

from datetime import datetime, timezone

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from kol_trust.errors import BlobStoreError
from kol_trust.protocols import BlobStore
from kol_trust.repositories import InMemoryBlobStore, RedisBlobStore, VercelBlobStore
from kol_trust.repositories.redis_blob_store import _escape_glob

API_URL = "https://blob.test"


def make_vercel(handler, token="vercel_blob_rw_test") -> VercelBlobStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return VercelBlobStore(token=token, api_url=API_URL, client=client)


def test_adapters_satisfy_the_protocol():
    assert isinstance(InMemoryBlobStore(), BlobStore)
    assert isinstance(make_vercel(lambda request: httpx.Response(200)), BlobStore)


@pytest.mark.asyncio
async def test_memory_store_uses_clock_for_upload_time(store, clock):
    info = await store.put("quick/a-en.json", b"{}", "application/json")

    assert info.uploaded_at == datetime.fromtimestamp(clock() / 1000, tz=timezone.utc)
    assert await store.fetch(info.url) == b"{}"
    assert [b.pathname for b in await store.list_blobs("quick/")] == ["quick/a-en.json"]
    assert await store.list_blobs("enhanced/") == []


@pytest.mark.asyncio
async def test_memory_store_fetch_of_missing_blob_fails(store):
    with pytest.raises(BlobStoreError):
        await store.fetch("memory://missing.json")


@pytest.mark.asyncio
async def test_vercel_list_follows_cursor():
    pages = {
        None: {
            "blobs": [{"pathname": "quick/a-en.json", "url": "https://cdn/a", "uploadedAt": "2024-01-01T00:00:00.000Z"}],
            "cursor": "next",
            "hasMore": True,
        },
        "next": {
            "blobs": [{"pathname": "quick/b-en.json", "url": "https://cdn/b", "uploadedAt": "2024-01-02T00:00:00Z"}],
            "hasMore": False,
        },
    }

    def handler(request):
        assert request.headers["authorization"] == "Bearer vercel_blob_rw_test"
        assert request.url.params["prefix"] == "quick/"
        return httpx.Response(200, json=pages[request.url.params.get("cursor")])

    blobs = await make_vercel(handler).list_blobs("quick/")

    assert [b.pathname for b in blobs] == ["quick/a-en.json", "quick/b-en.json"]
    assert blobs[0].uploaded_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_vercel_put_overwrites_fixed_pathname():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = request.content
        return httpx.Response(
            200,
            json={"pathname": "quick/a-en.json", "url": "https://cdn/quick/a-en.json", "uploadedAt": "2024-01-01T00:00:00Z"},
        )

    info = await make_vercel(handler).put("quick/a-en.json", b'{"a": 1}', "application/json")

    assert seen["method"] == "PUT"
    assert seen["url"] == f"{API_URL}/quick/a-en.json"
    assert seen["headers"]["x-add-random-suffix"] == "0"
    assert seen["headers"]["x-allow-overwrite"] == "1"
    assert seen["headers"]["x-content-type"] == "application/json"
    assert seen["body"] == b'{"a": 1}'
    assert info.url == "https://cdn/quick/a-en.json"


@pytest.mark.asyncio
async def test_vercel_fetch_reads_public_url():
    def handler(request):
        assert "authorization" not in request.headers
        return httpx.Response(200, content=b'{"ok": true}')

    assert await make_vercel(handler).fetch("https://cdn/quick/a-en.json") == b'{"ok": true}'


@pytest.mark.asyncio
async def test_vercel_errors_become_blob_store_errors():
    store = make_vercel(lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(BlobStoreError):
        await store.list_blobs("quick/")
    with pytest.raises(BlobStoreError):
        await store.put("quick/a-en.json", b"{}", "application/json")
    with pytest.raises(BlobStoreError):
        await store.fetch("https://cdn/quick/a-en.json")
    assert await store.health_check() is False


@pytest.mark.asyncio
async def test_vercel_without_token_is_unhealthy():
    store = make_vercel(lambda request: httpx.Response(200, json={"blobs": []}), token="")
    store._token = None

    with pytest.raises(BlobStoreError):
        await store.list_blobs("quick/")
    assert await store.health_check() is False


def test_redis_glob_escape():
    assert _escape_glob("blob:quick/a*b?[c]-en.json") == r"blob:quick/a\*b\?\[c\]-en.json"


class UnreachableRedis:
    """Async Redis client stand-in whose every command fails."""

    async def time(self):
        raise RedisConnectionError("connection refused")

    async def hset(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    async def hget(self, *args):
        raise RedisConnectionError("connection refused")

    async def scan_iter(self, match=None):
        raise RedisConnectionError("connection refused")
        yield  # pragma: no cover

    async def ping(self):
        raise RedisConnectionError("connection refused")


@pytest.mark.asyncio
async def test_redis_errors_become_blob_store_errors():
    store = RedisBlobStore(redis_client=UnreachableRedis())

    with pytest.raises(BlobStoreError):
        await store.list_blobs("quick/")
    with pytest.raises(BlobStoreError):
        await store.put("quick/a-en.json", b"{}", "application/json")
    with pytest.raises(BlobStoreError):
        await store.fetch("redis://quick/a-en.json")
    assert await store.health_check() is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "page",
    [
        ["not", "an", "object"],
        {"blobs": 5},
        {"blobs": ["quick/a-en.json"]},
        {"blobs": [{"pathname": "quick/a-en.json", "url": "https://cdn/a", "uploadedAt": 1704067200}]},
        {"blobs": [{"pathname": "quick/a-en.json", "url": "https://cdn/a", "uploadedAt": "yesterday"}]},
        {"blobs": [{"url": "https://cdn/a", "uploadedAt": "2024-01-01T00:00:00Z"}]},
    ],
)
async def test_vercel_unexpected_listing_shapes_become_blob_store_errors(page):
    store = make_vercel(lambda request: httpx.Response(200, json=page))

    with pytest.raises(BlobStoreError):
        await store.list_blobs("quick/")


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [["ok"], {"url": "https://cdn/a", "uploadedAt": 17}])
async def test_vercel_unexpected_put_response_becomes_blob_store_error(body):
    store = make_vercel(lambda request: httpx.Response(200, json=body))

    with pytest.raises(BlobStoreError):
        await store.put("quick/a-en.json", b"{}", "application/json")


class SingleKeyRedis:
    """Async Redis client stand-in holding one hash with the given upload time."""

    def __init__(self, uploaded_at: bytes) -> None:
        self._uploaded_at = uploaded_at

    async def scan_iter(self, match=None):
        yield b"blob:quick/a-en.json"

    async def hget(self, key, field):
        return self._uploaded_at


@pytest.mark.asyncio
async def test_redis_lists_store_assigned_upload_time():
    store = RedisBlobStore(redis_client=SingleKeyRedis(b"1704067200.5"))

    blobs = await store.list_blobs("quick/")

    assert [b.pathname for b in blobs] == ["quick/a-en.json"]
    assert blobs[0].url == "redis://quick/a-en.json"
    assert blobs[0].uploaded_at == datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)


@pytest.mark.asyncio
@pytest.mark.parametrize("uploaded_at", [b"garbage", b"inf", b"\xff\xfe"])
async def test_redis_unreadable_upload_time_becomes_blob_store_error(uploaded_at):
    store = RedisBlobStore(redis_client=SingleKeyRedis(uploaded_at))

    with pytest.raises(BlobStoreError):
        await store.list_blobs("quick/")
