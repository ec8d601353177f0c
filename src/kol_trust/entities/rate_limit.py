"""Rate limiter entities."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitCounter:
    """Fixed-window counter for one pseudonymous identity.

    Attributes:
        window_start: Start of the current window in epoch milliseconds
        count: Requests accepted inside the window
    """

    window_start: int
    count: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate-limit check."""

    allowed: bool
    remaining: int
    limit: int
    retry_after_seconds: int = 0
