"""Domain entities for internal representation.

These are pure dataclasses (frozen) and enums used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.

Entities should have:
- No JSON serialization logic
- No Pydantic validation
- No external dependencies
- Pure domain logic only
"""

from .cache_entry import CacheKey, CachedReport
from .enums import AnalysisMode, Language, QueryMode
from .outcome import AnalysisOutcome
from .query import NormalizedQuery, Rejection
from .rate_limit import RateLimitCounter, RateLimitDecision
from .upstream import Malformed, ParsedOutput, Recognized, SourceLink, UpstreamResponse

__all__ = [
    "AnalysisMode",
    "AnalysisOutcome",
    "CacheKey",
    "CachedReport",
    "Language",
    "Malformed",
    "NormalizedQuery",
    "ParsedOutput",
    "QueryMode",
    "RateLimitCounter",
    "RateLimitDecision",
    "Recognized",
    "Rejection",
    "SourceLink",
    "UpstreamResponse",
]
