"""Shared pytest fixtures: a controllable clock, stores and a scripted AI provider."""

import json

import pytest

from kol_trust.dto import KOLReport
from kol_trust.entities import SourceLink, UpstreamResponse
from kol_trust.errors import BlobStoreError
from kol_trust.repositories import InMemoryBlobStore
from kol_trust.services import AnalysisService, ContentCache, QueryNormalizer, RateLimiter, RetryPolicy

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS
START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingBlobStore:
    """BlobStore whose every operation fails like an unreachable backend."""

    def __init__(self) -> None:
        self.calls = 0

    async def list_blobs(self, prefix: str):
        self.calls += 1
        raise BlobStoreError("connection refused")

    async def put(self, pathname: str, body: bytes, content_type: str):
        self.calls += 1
        raise BlobStoreError("connection refused")

    async def fetch(self, url: str) -> bytes:
        self.calls += 1
        raise BlobStoreError("connection refused")

    async def health_check(self) -> bool:
        return False


class ScriptedProvider:
    """AnalysisProvider that replays queued results or exceptions."""

    def __init__(self, *results) -> None:
        self._results = list(results)
        self.prompts: list[str] = []
        self.schemas: list[dict | None] = []

    @property
    def model_name(self) -> str:
        return "scripted"

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def queue(self, *results) -> None:
        self._results.extend(results)

    async def generate(self, prompt: str, response_schema: dict | None = None) -> UpstreamResponse:
        self.prompts.append(prompt)
        self.schemas.append(response_schema)
        result = self._results.pop(0) if self._results else valid_upstream()
        if isinstance(result, Exception):
            raise result
        return result

    async def is_available(self) -> bool:
        return True

    async def close(self) -> None:
        pass


def report_data(**overrides) -> dict:
    """A plausible model answer for pentosh1."""
    data = {
        "displayName": "Pentoshi",
        "bioSummary": "Chart-focused crypto trader.",
        "trustScore": 78,
        "totalWins": 6,
        "totalLosses": 2,
        "followersCount": "800K",
        "verdict": "Generally reliable technical analyst.",
        "history": [
            {
                "id": "evt_1",
                "date": "2023-10-01",
                "description": "Called SOL bottom",
                "type": "PREDICTION_WIN",
                "token": "SOL",
                "sentiment": "POSITIVE",
                "details": "Publicly accumulated SOL near $20.",
            }
        ],
    }
    data.update(overrides)
    return data


def valid_upstream(**overrides) -> UpstreamResponse:
    return UpstreamResponse(
        text=json.dumps(report_data(**overrides)),
        sources=[SourceLink(title="Investigation", url="https://example.com/pentosh1")],
        search_queries=["ZachXBT pentosh1"],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryBlobStore:
    return InMemoryBlobStore(clock=clock)


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def service_factory(clock):
    """Build an AnalysisService over the given store and provider with test policy."""

    def factory(store, provider, max_attempts: int = 1, query_mode: str = "strict") -> AnalysisService:
        return AnalysisService(
            normalizer=QueryNormalizer(mode=query_mode, max_length=50),
            cache=ContentCache(store=store, ttl_ms=DAY_MS, schema=KOLReport, clock=clock),
            limiter=RateLimiter(store=store, max_requests=10, window_ms=HOUR_MS, prefix="ratelimit/", salt="", clock=clock),
            provider=provider,
            retry_policy=RetryPolicy(max_attempts=max_attempts, timeout_seconds=5.0, backoff_seconds=0.0),
        )

    return factory


@pytest.fixture
def service(service_factory, store, provider) -> AnalysisService:
    return service_factory(store, provider)
