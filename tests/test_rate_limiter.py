"""Unit tests for the fixed-window rate limiter."""

import json

import pytest

from kol_trust.repositories import InMemoryBlobStore
from kol_trust.services import RateLimiter
from kol_trust.utils import fnv1a_64, pseudonymize
from tests.conftest import HOUR_MS, FailingBlobStore

IP = "203.0.113.7"


@pytest.fixture
def limiter(store, clock) -> RateLimiter:
    return RateLimiter(store=store, max_requests=10, window_ms=HOUR_MS, prefix="ratelimit/", salt="", clock=clock)


async def read_counter(store, limiter, identity=IP) -> dict:
    return json.loads(await store.fetch(f"memory://{limiter.counter_path(identity)}"))


def test_fnv1a_reference_values():
    assert fnv1a_64(b"") == 0xCBF29CE484222325
    assert fnv1a_64(b"a") == 0xAF63DC4C8601EC8C


def test_pseudonym_is_stable_and_salted():
    assert pseudonymize(IP) == pseudonymize(IP)
    assert pseudonymize(IP) != pseudonymize("203.0.113.8")
    assert pseudonymize(IP, salt="pepper") != pseudonymize(IP)
    assert pseudonymize(IP).isalnum()


def test_counter_path_never_contains_raw_identity(limiter):
    path = limiter.counter_path(IP)
    assert path.startswith("ratelimit/")
    assert path.endswith(".json")
    assert IP not in path


@pytest.mark.asyncio
async def test_counts_down_to_zero_then_denies(limiter, store):
    remaining = []
    for _ in range(10):
        decision = await limiter.check(IP)
        assert decision.allowed
        remaining.append(decision.remaining)

    assert remaining == [9, 8, 7, 6, 5, 4, 3, 2, 1, 0]

    denied = await limiter.check(IP)
    assert not denied.allowed
    assert denied.remaining == 0
    assert denied.limit == 10
    assert denied.retry_after_seconds == 3600

    # A denial does not touch the counter
    assert (await read_counter(store, limiter))["count"] == 10


@pytest.mark.asyncio
async def test_retry_after_counts_down_with_the_window(limiter, clock):
    for _ in range(10):
        await limiter.check(IP)

    clock.advance(HOUR_MS - 1500)
    assert (await limiter.check(IP)).retry_after_seconds == 2

    clock.advance(1000)
    assert (await limiter.check(IP)).retry_after_seconds == 1


@pytest.mark.asyncio
async def test_window_resets_after_expiry(limiter, store, clock):
    for _ in range(10):
        await limiter.check(IP)
    window_start = clock()

    clock.now = window_start + HOUR_MS
    assert not (await limiter.check(IP)).allowed

    clock.now = window_start + HOUR_MS + 1
    decision = await limiter.check(IP)

    assert decision.allowed
    assert decision.remaining == 9
    assert await read_counter(store, limiter) == {"windowStart": clock(), "count": 1}


@pytest.mark.asyncio
async def test_identities_are_counted_separately(limiter):
    for _ in range(10):
        await limiter.check(IP)

    assert not (await limiter.check(IP)).allowed
    assert (await limiter.check("198.51.100.1")).remaining == 9


@pytest.mark.asyncio
async def test_window_start_is_kept_within_window(limiter, store, clock):
    await limiter.check(IP)
    start = clock()
    clock.advance(10 * 60 * 1000)
    await limiter.check(IP)

    assert await read_counter(store, limiter) == {"windowStart": start, "count": 2}


@pytest.mark.asyncio
async def test_store_outage_fails_open(clock):
    failing = FailingBlobStore()
    limiter = RateLimiter(store=failing, max_requests=10, window_ms=HOUR_MS, prefix="ratelimit/", salt="", clock=clock)

    for _ in range(20):
        decision = await limiter.check(IP)
        assert decision.allowed
        assert decision.remaining == 10


@pytest.mark.asyncio
async def test_corrupt_counter_starts_a_new_window(limiter, store):
    await store.put(limiter.counter_path(IP), b"not json at all", "application/json")

    decision = await limiter.check(IP)

    assert decision.allowed
    assert decision.remaining == 9
    assert (await read_counter(store, limiter))["count"] == 1


@pytest.mark.asyncio
async def test_counter_with_wrong_types_starts_a_new_window(limiter, store):
    await store.put(limiter.counter_path(IP), json.dumps({"windowStart": "yesterday", "count": 3}).encode(), "application/json")

    assert (await limiter.check(IP)).remaining == 9


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        b'{"windowStart": 1e999, "count": 3}',
        b'{"windowStart": NaN, "count": 3}',
        b'[1, 2]',
        b'{"count": 3}',
    ],
)
async def test_unreadable_counter_starts_a_new_window(limiter, store, clock, body):
    await store.put(limiter.counter_path(IP), body, "application/json")

    decision = await limiter.check(IP)

    assert decision.allowed
    assert decision.remaining == 9
    assert await read_counter(store, limiter) == {"windowStart": clock(), "count": 1}


@pytest.mark.asyncio
async def test_unexpected_store_failure_fails_open(clock):
    class BrokenStore(InMemoryBlobStore):
        async def list_blobs(self, prefix):
            raise RuntimeError("adapter bug")

    limiter = RateLimiter(store=BrokenStore(clock=clock), max_requests=10, window_ms=HOUR_MS, prefix="ratelimit/", salt="", clock=clock)

    decision = await limiter.check(IP)

    assert decision.allowed
    assert decision.remaining == 10
