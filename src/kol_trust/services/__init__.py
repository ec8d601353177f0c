"""Service layer for business logic.

This layer contains the request-deduplication cache, the rate limiter and
the orchestration around the external AI call. Services depend on
protocols (interfaces), not concrete implementations, making them
testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from kol_trust.services import AnalysisService

    # Using factory method (recommended)
    service = AnalysisService.create(store=store, provider=provider)

    # Or manual creation
    service = AnalysisService(normalizer=..., cache=..., limiter=..., provider=...)
    ```
"""

from .analysis_service import AnalysisService, RetryPolicy
from .content_cache import ContentCache
from .normalizer import QueryNormalizer
from .rate_limiter import RateLimiter
from .report_parser import build_report, insufficient_information_report, parse_output

__all__ = [
    "AnalysisService",
    "ContentCache",
    "QueryNormalizer",
    "RateLimiter",
    "RetryPolicy",
    "build_report",
    "insufficient_information_report",
    "parse_output",
]
