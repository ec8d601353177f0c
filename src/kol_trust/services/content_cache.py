"""Content cache for computed reports.

Maps (normalized query, language, mode) to the last report computed for it
and the time the store recorded the write. Entries expire logically: an
object older than the TTL may still exist in the store but is treated as
absent.

The cache is an optimization, never a correctness dependency. Every store
or decoding failure degrades to a miss on read and to a logged no-op on
write.
"""

import json
import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from kol_trust.config import settings
from kol_trust.entities import AnalysisMode, CachedReport, CacheKey, Language
from kol_trust.errors import BlobStoreError
from kol_trust.protocols import BlobStore
from kol_trust.utils import Clock, datetime_to_ms, now_ms

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"


class ContentCache:
    """Time-to-live cache of report payloads on top of a BlobStore.

    Concurrent writers for one key are not coordinated. The last write the
    store lists first wins, which can cost duplicate upstream work but
    never yields a wrong report.

    Example:
        ```python
        cache = ContentCache.create(store=InMemoryBlobStore.create(), schema=KOLReport)
        await cache.set("pentosh1", Language.EN, AnalysisMode.QUICK, payload)
        hit = await cache.get("pentosh1", Language.EN, AnalysisMode.QUICK)
        ```
    """

    def __init__(
        self,
        store: BlobStore,
        ttl_ms: int | None = None,
        schema: type[BaseModel] | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the content cache.

        Args:
            store: Blob store backend (required).
            ttl_ms: Time-to-live in milliseconds. Defaults to settings.
            schema: Optional payload model applied on read to upgrade old entries.
            clock: Epoch-millisecond clock. Defaults to wall-clock time.
        """
        self._store = store
        self._ttl_ms = ttl_ms or settings.cache_ttl_ms
        self._schema = schema
        self._clock = clock or now_ms

    @classmethod
    def create(
        cls,
        store: BlobStore,
        ttl_ms: int | None = None,
        schema: type[BaseModel] | None = None,
        clock: Clock | None = None,
    ) -> "ContentCache":
        """Factory method to create ContentCache with defaults."""
        return cls(store=store, ttl_ms=ttl_ms, schema=schema, clock=clock)

    async def get(self, query: str, language: Language, mode: AnalysisMode) -> CachedReport | None:
        """Look up a fresh report.

        Args:
            query: Normalized query key
            language: Report language
            mode: Analysis mode

        Returns:
            CachedReport if a fresh, readable entry exists, None otherwise
        """
        key = CacheKey(query=query, language=language, mode=mode)

        try:
            blobs = await self._store.list_blobs(key.path)
            # Exact pathname only; a longer key sharing the prefix is a different entry
            blobs = [blob for blob in blobs if blob.pathname == key.path]
            if not blobs:
                logger.debug("Cache miss for %s", key.path)
                return None

            # The store may list more than one object; the first one is authoritative
            blob = blobs[0]
            stored_at = datetime_to_ms(blob.uploaded_at)
            age_ms = self._clock() - stored_at

            if age_ms > self._ttl_ms:
                logger.info("Cache expired for %s (age: %d minutes)", key.path, age_ms // 60_000)
                return None

            payload = self._decode(await self._store.fetch(blob.url))
        except (BlobStoreError, ValueError, ValidationError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            logger.warning("Error reading cache for %s, treating as miss: %s", key.path, e)
            return None
        except Exception:
            logger.exception("Unexpected error reading cache for %s, treating as miss", key.path)
            return None

        logger.info("Cache hit for %s (age: %d minutes)", key.path, age_ms // 60_000)
        return CachedReport(payload=payload, stored_at=stored_at)

    async def set(
        self,
        query: str,
        language: Language,
        mode: AnalysisMode,
        payload: dict[str, Any],
    ) -> bool:
        """Store a report, superseding any previous one under the same key.

        A failure is logged and swallowed: the caller already holds the
        payload and can return it whether or not caching succeeded.

        Args:
            query: Normalized query key
            language: Report language
            mode: Analysis mode
            payload: JSON-serializable report

        Returns:
            True if the write was acknowledged by the store
        """
        key = CacheKey(query=query, language=language, mode=mode)

        try:
            body = json.dumps(payload, ensure_ascii=False, sort_keys=True).encode("utf-8")
            await self._store.put(key.path, body, CONTENT_TYPE)
        except (BlobStoreError, TypeError, ValueError) as e:
            logger.error("Error writing cache for %s: %s", key.path, e)
            return False
        except Exception:
            logger.exception("Unexpected error writing cache for %s", key.path)
            return False

        logger.info("Cached report for %s", key.path)
        return True

    def _decode(self, body: bytes) -> dict[str, Any]:
        data = json.loads(body.decode("utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Cached payload is a {type(data).__name__}, expected an object")
        if self._schema is None:
            return data
        # Fill defaults for new fields, drop retired ones
        return self._schema.model_validate(data).model_dump(mode="json", by_alias=True)

    @property
    def ttl_ms(self) -> int:
        """Get the time-to-live in milliseconds."""
        return self._ttl_ms

    @property
    def store(self) -> BlobStore:
        """Get the underlying store (for testing)."""
        return self._store
