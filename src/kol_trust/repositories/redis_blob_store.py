"""Redis implementation of BlobStore.

Each object is a Redis hash holding the body, its content type and the
upload time. The upload time is read from the Redis server clock (``TIME``)
so that freshness is assigned by the store, not by the writing instance.
Listing uses ``SCAN MATCH`` on the glob-escaped prefix.
"""

import re
from datetime import datetime, timezone

import redis.asyncio as redis
from redis.exceptions import RedisError

from kol_trust.config import get_redis_client
from kol_trust.errors import BlobStoreError
from kol_trust.protocols import BlobInfo

_URL_SCHEME = "redis://"
_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _escape_glob(value: str) -> str:
    return _GLOB_SPECIAL.sub(r"\\\1", value)


def _decode(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisBlobStore:
    """Redis implementation of the BlobStore protocol.

    This class satisfies the BlobStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        namespace: str = "blob:",
    ) -> None:
        """Initialize the Redis blob store.

        Args:
            redis_client: Async Redis client. If None, creates default.
            namespace: Prefix prepended to every pathname in Redis.
        """
        self._client = redis_client or get_redis_client()
        self._namespace = namespace

    @classmethod
    def create(cls, namespace: str = "blob:") -> "RedisBlobStore":
        """Factory method to create RedisBlobStore with defaults."""
        return cls(namespace=namespace)

    def _redis_key(self, pathname: str) -> str:
        return f"{self._namespace}{pathname}"

    async def _server_time(self) -> datetime:
        seconds, microseconds = await self._client.time()
        return datetime.fromtimestamp(seconds + microseconds / 1_000_000, tz=timezone.utc)

    async def list_blobs(self, prefix: str) -> list[BlobInfo]:
        pattern = f"{_escape_glob(self._redis_key(prefix))}*"
        try:
            blobs = []
            async for raw_key in self._client.scan_iter(match=pattern):
                key = _decode(raw_key)
                uploaded_at = await self._client.hget(key, "uploaded_at")
                if uploaded_at is None:
                    continue
                pathname = key.removeprefix(self._namespace)
                blobs.append(
                    BlobInfo(
                        pathname=pathname,
                        url=f"{_URL_SCHEME}{pathname}",
                        uploaded_at=datetime.fromtimestamp(float(_decode(uploaded_at)), tz=timezone.utc),
                    )
                )
        except RedisError as e:
            raise BlobStoreError(f"Redis list failed: {e}") from e
        except (ValueError, OverflowError, OSError) as e:
            raise BlobStoreError(f"Redis list returned an unreadable upload time: {e}") from e

        blobs.sort(key=lambda blob: blob.pathname)
        return blobs

    async def put(self, pathname: str, body: bytes, content_type: str) -> BlobInfo:
        try:
            uploaded_at = await self._server_time()
            await self._client.hset(
                self._redis_key(pathname),
                mapping={
                    "body": body,
                    "content_type": content_type,
                    "uploaded_at": str(uploaded_at.timestamp()),
                },
            )
        except RedisError as e:
            raise BlobStoreError(f"Redis put failed: {e}") from e

        return BlobInfo(pathname=pathname, url=f"{_URL_SCHEME}{pathname}", uploaded_at=uploaded_at)

    async def fetch(self, url: str) -> bytes:
        pathname = url.removeprefix(_URL_SCHEME)
        try:
            body = await self._client.hget(self._redis_key(pathname), "body")
        except RedisError as e:
            raise BlobStoreError(f"Redis fetch failed: {e}") from e

        if body is None:
            raise BlobStoreError(f"Blob not found: {pathname}")
        return body if isinstance(body, bytes) else body.encode("utf-8")

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
