#!/usr/bin/env python3
"""
Demo script for the trust-report cache.

Runs the same handles twice through an in-memory store so the second round
is served from the cache, then exhausts the rate limit with forced
refreshes. Needs GEMINI_API_KEY; no blob store credentials are required.
"""

import asyncio
import sys
import time

from kol_trust.config import configure_logging, settings
from kol_trust.errors import AnalysisError
from kol_trust.repositories import GeminiAnalysisProvider, InMemoryBlobStore
from kol_trust.services import AnalysisService, RateLimiter

DEMO_IP = "203.0.113.7"


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo_cache(service: AnalysisService) -> None:
    """Demonstrate cache misses followed by cache hits."""
    print_section("Content Cache")

    for round_name in ("first", "second"):
        print(f"\n🔍 {round_name.capitalize()} round:")
        for handle, language in [("@Pentosh1", "en"), ("pentosh1", "zh-TW")]:
            start = time.time()
            outcome = await service.analyze(handle, language=language, client_identity=DEMO_IP)
            duration = (time.time() - start) * 1000
            print(f"  {handle} [{language}] -> {outcome.source.upper()} in {duration:.0f}ms")
            print(f"    Trust score: {outcome.payload['trustScore']}")
            print(f"    Verdict: {outcome.payload['verdict'][:80]}")


async def demo_rate_limit(service: AnalysisService) -> None:
    """Demonstrate the per-client limit with forced refreshes."""
    print_section("Rate Limiting")

    limiter = RateLimiter.create(store=service.cache.store, max_requests=2)
    limited = AnalysisService(
        normalizer=service.normalizer,
        cache=service.cache,
        limiter=limiter,
        provider=service.provider,
    )

    for attempt in range(1, 4):
        try:
            outcome = await limited.analyze("cobie", force_refresh=True, client_identity="198.51.100.1")
            print(f"  Request {attempt}: allowed, {outcome.rate_limit.remaining} remaining")
        except AnalysisError as e:
            print(f"  Request {attempt}: {e.kind.value}, retry after {e.retry_after_seconds}s")


async def main() -> None:
    """Run all demos."""
    configure_logging("WARNING")

    if not settings.gemini_api_key:
        print("GEMINI_API_KEY is not set")
        sys.exit(1)

    print("\n" + "🚀" * 35)
    print("  KOL TRUST REPORT CACHE DEMO")
    print("🚀" * 35)

    provider = GeminiAnalysisProvider.create()
    service = AnalysisService.create(store=InMemoryBlobStore.create(), provider=provider)

    try:
        await demo_cache(service)
        await demo_rate_limit(service)
    except AnalysisError as e:
        print(f"\n❌ {e.kind.value}: {e.message}")
    finally:
        await provider.close()

    print_section("Demo Complete!")


if __name__ == "__main__":
    asyncio.run(main())
