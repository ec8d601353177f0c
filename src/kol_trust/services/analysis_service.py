"""Analysis orchestration.

Sequences one request through the pipeline:

    VALIDATING -> CACHE_LOOKUP -> HIT -> DONE
                               -> MISS -> RATE_CHECK -> DENIED -> DONE
                                                     -> ALLOWED -> UPSTREAM_CALL -> FAILURE -> DONE
                                                                                 -> SUCCESS -> NORMALIZE
                                                                                    -> CACHE_WRITE -> DONE

Forced refreshes skip CACHE_LOOKUP but not RATE_CHECK. Cache hits never
consume quota. This is the only place that translates internal failures
into caller-visible ``AnalysisError`` kinds.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from kol_trust.config import settings
from kol_trust.dto import KOLReport
from kol_trust.entities import AnalysisMode, AnalysisOutcome, Language, Rejection, UpstreamResponse
from kol_trust.errors import (
    AnalysisError,
    ErrorKind,
    ReportParseError,
    UpstreamError,
    UpstreamErrorKind,
)
from kol_trust.protocols import AnalysisProvider, BlobStore

from .content_cache import ContentCache
from .normalizer import QueryNormalizer
from .prompts import build_prompt, build_response_schema
from .rate_limiter import RateLimiter
from .report_parser import build_report, parse_output

logger = logging.getLogger(__name__)

DEFAULT_QUOTA_RETRY_AFTER_SECONDS = 60


class AnalysisState(str, Enum):
    VALIDATING = "VALIDATING"
    CACHE_LOOKUP = "CACHE_LOOKUP"
    RATE_CHECK = "RATE_CHECK"
    UPSTREAM_CALL = "UPSTREAM_CALL"
    NORMALIZE = "NORMALIZE"
    CACHE_WRITE = "CACHE_WRITE"
    DONE = "DONE"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with exponential backoff around the upstream call.

    Attributes:
        max_attempts: Total attempts; 1 means a single attempt
        timeout_seconds: Per-attempt timeout
        backoff_seconds: Delay before the second attempt, doubled afterwards
    """

    max_attempts: int = 1
    timeout_seconds: float = 60.0
    backoff_seconds: float = 1.0

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.upstream_max_attempts,
            timeout_seconds=settings.upstream_timeout_seconds,
            backoff_seconds=settings.upstream_backoff_seconds,
        )

    def delay_before(self, attempt: int) -> float:
        """Backoff delay before ``attempt`` (2-based)."""
        return self.backoff_seconds * 2 ** (attempt - 2)


_UPSTREAM_ERROR_KINDS = {
    UpstreamErrorKind.QUOTA_EXCEEDED: ErrorKind.RATE_LIMITED,
    UpstreamErrorKind.TIMEOUT: ErrorKind.UPSTREAM_UNAVAILABLE,
    UpstreamErrorKind.UNAVAILABLE: ErrorKind.UPSTREAM_UNAVAILABLE,
    UpstreamErrorKind.BAD_REQUEST: ErrorKind.UPSTREAM_UNAVAILABLE,
    UpstreamErrorKind.NOT_FOUND: ErrorKind.UPSTREAM_UNAVAILABLE,
    UpstreamErrorKind.AUTH: ErrorKind.UPSTREAM_UNAVAILABLE,
}

_UPSTREAM_MESSAGES = {
    ErrorKind.RATE_LIMITED: "The analysis service is busy. Please try again later.",
    ErrorKind.UPSTREAM_UNAVAILABLE: "The analysis service is unavailable. Please try again later.",
    ErrorKind.INTERNAL: "An unexpected error occurred.",
}


class AnalysisService:
    """Request orchestration: normalizer, content cache, rate limiter, AI call.

    The service holds no mutable state of its own; every instance may run
    concurrently with others against the same store.

    Example:
        ```python
        store = InMemoryBlobStore.create()
        service = AnalysisService.create(store=store, provider=GeminiAnalysisProvider.create())

        outcome = await service.analyze("@Pentosh1", language="en", client_identity="203.0.113.7")
        print(outcome.source, outcome.payload["trustScore"])
        ```
    """

    def __init__(
        self,
        normalizer: QueryNormalizer,
        cache: ContentCache,
        limiter: RateLimiter,
        provider: AnalysisProvider,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the analysis service.

        Args:
            normalizer: Query validator (required).
            cache: Content cache (required).
            limiter: Rate limiter (required).
            provider: Generative AI backend (required).
            retry_policy: Upstream retry policy. Defaults to settings.
        """
        self._normalizer = normalizer
        self._cache = cache
        self._limiter = limiter
        self._provider = provider
        self._retry = retry_policy or RetryPolicy.from_settings()

    @classmethod
    def create(
        cls,
        store: BlobStore,
        provider: AnalysisProvider,
        retry_policy: RetryPolicy | None = None,
    ) -> "AnalysisService":
        """Factory method wiring every component to one store with settings defaults.

        Args:
            store: Blob store shared by the content cache and the rate limiter.
            provider: Generative AI backend.
            retry_policy: Upstream retry policy. If None, uses settings.

        Returns:
            Configured AnalysisService
        """
        return cls(
            normalizer=QueryNormalizer.create(),
            cache=ContentCache.create(store=store, schema=KOLReport),
            limiter=RateLimiter.create(store=store),
            provider=provider,
            retry_policy=retry_policy,
        )

    async def analyze(
        self,
        query: object,
        language: Language | str | None = None,
        mode: AnalysisMode | str = AnalysisMode.QUICK,
        force_refresh: bool = False,
        client_identity: str | None = None,
    ) -> AnalysisOutcome:
        """Produce a trust report for ``query``.

        Args:
            query: Raw user input
            language: Report language; unknown tags fall back to English
            mode: Analysis mode
            force_refresh: Skip the cache lookup (the rate limit still applies)
            client_identity: Source address of the caller

        Returns:
            AnalysisOutcome with the report and where it came from

        Raises:
            AnalysisError: For every failure, with a stable kind
        """
        # VALIDATING
        normalized = self._normalizer.normalize(query)
        if isinstance(normalized, Rejection):
            raise AnalysisError(ErrorKind.INVALID_INPUT, normalized.reason)

        language = language if isinstance(language, Language) else Language.parse(language)
        try:
            mode = AnalysisMode(mode)
        except ValueError as e:
            raise AnalysisError(ErrorKind.INVALID_INPUT, f"Unknown analysis mode: {mode!r}") from e

        try:
            return await self._run(normalized.key, normalized.display, language, mode, force_refresh, client_identity)
        except AnalysisError:
            raise
        except UpstreamError as e:
            raise self._translate_upstream(e) from e
        except ReportParseError as e:
            logger.warning("Unreadable model output for %s: %s", normalized.key, e)
            raise AnalysisError(
                ErrorKind.UPSTREAM_UNAVAILABLE,
                "The analysis service returned an unreadable result. Please try again.",
            ) from e
        except Exception as e:
            logger.exception("Unexpected error analyzing %s", normalized.key)
            raise AnalysisError(ErrorKind.INTERNAL, _UPSTREAM_MESSAGES[ErrorKind.INTERNAL]) from e

    async def _run(
        self,
        key: str,
        display: str,
        language: Language,
        mode: AnalysisMode,
        force_refresh: bool,
        client_identity: str | None,
    ) -> AnalysisOutcome:
        if force_refresh:
            logger.debug("%s: forced refresh, skipping %s", key, AnalysisState.CACHE_LOOKUP.value)
        else:
            cached = await self._cache.get(key, language, mode)
            if cached is not None:
                return AnalysisOutcome(payload=cached.payload, source="cache", cached_at=cached.stored_at)

        decision = await self._limiter.check(client_identity or "unknown")
        if not decision.allowed:
            raise AnalysisError(
                ErrorKind.RATE_LIMITED,
                "Rate limit exceeded. Please try again later.",
                retry_after_seconds=decision.retry_after_seconds,
            )

        upstream = await self._call_upstream(build_prompt(display, language, mode), build_response_schema(mode))

        logger.debug("%s: %s", key, AnalysisState.NORMALIZE.value)
        report = build_report(parse_output(upstream.text), display, language, upstream)
        payload = report.to_payload()

        await self._cache.set(key, language, mode, payload)

        return AnalysisOutcome(payload=payload, source="api", rate_limit=decision)

    async def _call_upstream(self, prompt: str, schema: dict) -> UpstreamResponse:
        attempt = 1
        while True:
            logger.info("Calling %s (attempt %d/%d)", self._provider.model_name, attempt, self._retry.max_attempts)
            try:
                return await asyncio.wait_for(
                    self._provider.generate(prompt, response_schema=schema),
                    timeout=self._retry.timeout_seconds,
                )
            except asyncio.TimeoutError as e:
                error = UpstreamError(
                    UpstreamErrorKind.TIMEOUT,
                    f"No answer within {self._retry.timeout_seconds}s",
                )
                error.__cause__ = e
            except UpstreamError as e:
                error = e

            if not error.retryable or attempt >= self._retry.max_attempts:
                raise error

            attempt += 1
            delay = self._retry.delay_before(attempt)
            logger.warning("Upstream %s, retrying in %.1fs: %s", error.kind.value, delay, error)
            await asyncio.sleep(delay)

    @staticmethod
    def _translate_upstream(error: UpstreamError) -> AnalysisError:
        kind = _UPSTREAM_ERROR_KINDS.get(error.kind, ErrorKind.INTERNAL)
        logger.error("Upstream failure (%s -> %s): %s", error.kind.value, kind.value, error)

        retry_after = None
        if kind is ErrorKind.RATE_LIMITED:
            retry_after = error.retry_after_seconds or DEFAULT_QUOTA_RETRY_AFTER_SECONDS
        return AnalysisError(kind, _UPSTREAM_MESSAGES[kind], retry_after_seconds=retry_after)

    async def is_healthy(self) -> tuple[bool, bool]:
        """Check store and provider reachability.

        Returns:
            (store_healthy, provider_healthy)
        """
        store_healthy = await self._cache.store.health_check()
        provider_healthy = await self._provider.is_available()
        return store_healthy, provider_healthy

    @property
    def normalizer(self) -> QueryNormalizer:
        return self._normalizer

    @property
    def limiter(self) -> RateLimiter:
        """Get the rate limiter (for testing)."""
        return self._limiter

    @property
    def cache(self) -> ContentCache:
        """Get the content cache (for testing)."""
        return self._cache

    @property
    def provider(self) -> AnalysisProvider:
        """Get the AI provider."""
        return self._provider
