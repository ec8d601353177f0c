"""Analysis outcome entity."""

from dataclasses import dataclass
from typing import Any, Literal

from .rate_limit import RateLimitDecision


@dataclass(frozen=True)
class AnalysisOutcome:
    """Successful result of an analysis request.

    Attributes:
        payload: The report in its stored / wire form
        source: "cache" for a cache hit, "api" for a fresh computation
        cached_at: Store write time of a cache hit (epoch milliseconds)
        rate_limit: The limiter decision, when the limiter was consulted
    """

    payload: dict[str, Any]
    source: Literal["api", "cache"]
    cached_at: int | None = None
    rate_limit: RateLimitDecision | None = None
