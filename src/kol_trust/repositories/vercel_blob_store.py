"""Vercel Blob implementation of BlobStore.

Talks to the Vercel Blob REST API directly:

- list:  ``GET {api_url}?prefix=...`` -> ``{"blobs": [{url, pathname, uploadedAt}], "cursor", "hasMore"}``
- put:   ``PUT {api_url}/{pathname}`` with the raw body, no random suffix, overwrite allowed
- fetch: plain ``GET`` of the public blob url

Objects are public; only the write token is secret. The store does not
guarantee replace-in-place or list-after-write consistency.
"""

from datetime import datetime, timezone

import httpx

from kol_trust.config import settings
from kol_trust.errors import BlobStoreError
from kol_trust.protocols import BlobInfo

API_VERSION = "7"


def _parse_uploaded_at(value: object) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"uploadedAt is not a string: {value!r}")
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_blob_info(item: object) -> BlobInfo:
    if not isinstance(item, dict):
        raise ValueError(f"blob listing entry is not an object: {item!r}")
    pathname, url = item.get("pathname"), item.get("url")
    if not isinstance(pathname, str) or not isinstance(url, str):
        raise ValueError(f"blob listing entry without pathname/url: {item!r}")
    return BlobInfo(pathname=pathname, url=url, uploaded_at=_parse_uploaded_at(item.get("uploadedAt")))


class VercelBlobStore:
    """Vercel Blob implementation of the BlobStore protocol.

    This class satisfies the BlobStore protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        store = VercelBlobStore.create(token="vercel_blob_rw_...")
        await store.put("quick/pentosh1-en.json", b"{}", "application/json")
        blobs = await store.list_blobs("quick/pentosh1-en.json")
        body = await store.fetch(blobs[0].url)
        ```
    """

    def __init__(
        self,
        token: str | None = None,
        api_url: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Vercel Blob store.

        Args:
            token: Read-write token. Defaults to settings.blob_read_write_token.
            api_url: REST endpoint. Defaults to settings.blob_api_url.
            timeout: Request timeout in seconds.
            client: Pre-built HTTP client (mainly for tests).
        """
        self._token = token or settings.blob_read_write_token
        self._api_url = (api_url or settings.blob_api_url).rstrip("/")
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        token: str | None = None,
        api_url: str | None = None,
    ) -> "VercelBlobStore":
        """Factory method to create VercelBlobStore with defaults.

        Args:
            token: Read-write token. If None, uses settings.
            api_url: REST endpoint. If None, uses settings.

        Returns:
            Configured VercelBlobStore
        """
        return cls(token=token, api_url=api_url)

    def _headers(self) -> dict[str, str]:
        if not self._token:
            raise BlobStoreError("BLOB_READ_WRITE_TOKEN is not configured")
        return {
            "authorization": f"Bearer {self._token}",
            "x-api-version": API_VERSION,
        }

    async def list_blobs(self, prefix: str) -> list[BlobInfo]:
        """List blobs under ``prefix``, following pagination cursors."""
        blobs: list[BlobInfo] = []
        params: dict[str, str] = {"prefix": prefix, "limit": "1000"}

        try:
            while True:
                response = await self.client.get(self._api_url, params=params, headers=self._headers())
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError(f"unexpected list response: {data!r}")

                blobs.extend(_to_blob_info(item) for item in data.get("blobs", []))

                cursor = data.get("cursor")
                if not data.get("hasMore") or not cursor:
                    break
                params["cursor"] = cursor
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise BlobStoreError(f"Vercel Blob list failed: {e}") from e

        return blobs

    async def put(self, pathname: str, body: bytes, content_type: str) -> BlobInfo:
        """Upload a whole object under a fixed pathname."""
        headers = {
            **self._headers(),
            "x-content-type": content_type,
            "x-add-random-suffix": "0",
            "x-allow-overwrite": "1",
        }

        try:
            response = await self.client.put(
                f"{self._api_url}/{pathname.lstrip('/')}",
                content=body,
                headers=headers,
            )
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"unexpected put response: {data!r}")
            uploaded_at = data.get("uploadedAt")
            info = BlobInfo(
                pathname=data.get("pathname", pathname),
                url=data.get("url", ""),
                uploaded_at=_parse_uploaded_at(uploaded_at) if uploaded_at else datetime.now(timezone.utc),
            )
        except (httpx.HTTPError, ValueError) as e:
            raise BlobStoreError(f"Vercel Blob put failed: {e}") from e

        return info

    async def fetch(self, url: str) -> bytes:
        """Download a public blob."""
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BlobStoreError(f"Vercel Blob fetch failed: {e}") from e
        return response.content

    async def health_check(self) -> bool:
        """Check if the Blob API accepts our token.

        Returns:
            True if healthy, False otherwise
        """
        try:
            response = await self.client.get(
                self._api_url, params={"limit": "1"}, headers=self._headers()
            )
            return response.status_code == 200
        except (httpx.HTTPError, BlobStoreError):
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
