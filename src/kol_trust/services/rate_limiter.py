"""Fixed-window rate limiter on top of a BlobStore.

Each client identity gets one counter object ``{prefix}{hash}.json`` holding
``{"windowStart": epoch_ms, "count": int}``. The identity is pseudonymized
before use, so raw network addresses are never persisted.

Algorithm, for window W and limit N:

- no counter, or ``now - windowStart > W``: start a new window with count 1, allow
- ``count < N``: increment, allow
- ``count >= N``: deny without incrementing

The limit is soft. The store has no compare-and-swap, so two concurrent
requests from one identity can read the same count and both write
``count + 1``; one increment is lost and the identity gets an extra
request. A fixed window also admits up to 2N requests around a window
boundary. The limiter deters abuse, it is not an exact quota.

When the store cannot be reached the check fails open.
"""

import json
import logging
import math

from kol_trust.config import settings
from kol_trust.entities import RateLimitCounter, RateLimitDecision
from kol_trust.errors import BlobStoreError
from kol_trust.protocols import BlobStore
from kol_trust.utils import Clock, now_ms, pseudonymize

logger = logging.getLogger(__name__)


def _decode_counter(body: bytes) -> RateLimitCounter:
    data = json.loads(body.decode("utf-8"))
    window_start = data["windowStart"]
    count = data["count"]
    if not isinstance(window_start, (int, float)) or not isinstance(count, int) or count < 0:
        raise ValueError(f"Invalid rate limit counter: {data!r}")
    if not math.isfinite(window_start):
        raise ValueError(f"Invalid rate limit window start: {window_start!r}")
    return RateLimitCounter(window_start=int(window_start), count=count)


def _encode_counter(counter: RateLimitCounter) -> bytes:
    return json.dumps({"windowStart": counter.window_start, "count": counter.count}).encode("utf-8")


class RateLimiter:
    """Per-identity fixed-window request limiter."""

    def __init__(
        self,
        store: BlobStore,
        max_requests: int | None = None,
        window_ms: int | None = None,
        prefix: str | None = None,
        salt: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            store: Blob store backend (required).
            max_requests: Requests allowed per window. Defaults to settings.
            window_ms: Window duration in milliseconds. Defaults to settings.
            prefix: Store prefix for counter objects. Defaults to settings.
            salt: Mixed into the identity hash. Defaults to settings.
            clock: Epoch-millisecond clock. Defaults to wall-clock time.
        """
        self._store = store
        self._max_requests = max_requests or settings.rate_limit_max_requests
        self._window_ms = window_ms or settings.rate_limit_window_ms
        self._prefix = settings.rate_limit_prefix if prefix is None else prefix
        self._salt = settings.rate_limit_salt if salt is None else salt
        self._clock = clock or now_ms

    @classmethod
    def create(
        cls,
        store: BlobStore,
        max_requests: int | None = None,
        window_ms: int | None = None,
        clock: Clock | None = None,
    ) -> "RateLimiter":
        """Factory method to create RateLimiter with defaults."""
        return cls(store=store, max_requests=max_requests, window_ms=window_ms, clock=clock)

    def counter_path(self, identity: str) -> str:
        """Store pathname of the counter for ``identity``."""
        return f"{self._prefix}{pseudonymize(identity, self._salt)}.json"

    async def check(self, identity: str) -> RateLimitDecision:
        """Count one request for ``identity`` if the window allows it.

        Args:
            identity: Raw client identity (e.g. source address)

        Returns:
            RateLimitDecision; a denied request is not counted
        """
        path = self.counter_path(identity)
        now = self._clock()

        try:
            counter = await self._read(path)

            if counter is None or now - counter.window_start > self._window_ms:
                updated = RateLimitCounter(window_start=now, count=1)
            elif counter.count >= self._max_requests:
                retry_after_ms = counter.window_start + self._window_ms - now
                logger.info("Rate limit exceeded for %s", path)
                return RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    limit=self._max_requests,
                    retry_after_seconds=max(1, math.ceil(retry_after_ms / 1000)),
                )
            else:
                updated = RateLimitCounter(window_start=counter.window_start, count=counter.count + 1)

            await self._store.put(path, _encode_counter(updated), "application/json")
        except BlobStoreError as e:
            logger.error("Rate limit check error, allowing request: %s", e)
            return self._fail_open()
        except Exception:
            logger.exception("Unexpected rate limit check error, allowing request")
            return self._fail_open()

        return RateLimitDecision(
            allowed=True,
            remaining=max(0, self._max_requests - updated.count),
            limit=self._max_requests,
        )

    def _fail_open(self) -> RateLimitDecision:
        return RateLimitDecision(allowed=True, remaining=self._max_requests, limit=self._max_requests)

    async def _read(self, path: str) -> RateLimitCounter | None:
        blobs = [blob for blob in await self._store.list_blobs(path) if blob.pathname == path]
        if not blobs:
            return None

        body = await self._store.fetch(blobs[0].url)
        try:
            return _decode_counter(body)
        except (ValueError, KeyError, TypeError, OverflowError) as e:
            # A corrupt counter is replaced by a fresh window rather than disabling the limit
            logger.warning("Discarding unreadable rate limit counter %s: %s", path, e)
            return None

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms
