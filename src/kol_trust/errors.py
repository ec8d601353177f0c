"""Error taxonomy.

Two families live here:

- ``UpstreamError`` and ``ReportParseError`` are raised by the AI provider
  and the report parser. They never reach the HTTP layer directly.
- ``AnalysisError`` is the only exception the orchestrator lets escape. It
  carries a stable, machine-readable ``ErrorKind`` and a human-readable
  message that is safe to show to a client.

Expected conditions (cache miss, rate-limit denial, invalid input from the
normalizer) are ordinary return values, not exceptions.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Caller-visible error kinds."""

    INVALID_INPUT = "INVALID_INPUT"
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    INTERNAL = "INTERNAL"


class UpstreamErrorKind(str, Enum):
    """Failure classes of the external AI call."""

    TIMEOUT = "TIMEOUT"
    UNAVAILABLE = "UNAVAILABLE"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    AUTH = "AUTH"
    UNKNOWN = "UNKNOWN"


RETRYABLE_UPSTREAM_KINDS = frozenset({UpstreamErrorKind.TIMEOUT, UpstreamErrorKind.UNAVAILABLE})


class AnalysisError(Exception):
    """Structured, client-safe failure of an analysis request."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        retry_after_seconds: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.retry_after_seconds = retry_after_seconds

    def __repr__(self) -> str:
        return f"AnalysisError(kind={self.kind.value!r}, message={self.message!r})"


class UpstreamError(Exception):
    """Failure reported by (or while talking to) the generative AI service."""

    def __init__(
        self,
        kind: UpstreamErrorKind,
        message: str,
        status_code: int | None = None,
        retry_after_seconds: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.retry_after_seconds = retry_after_seconds

    @property
    def retryable(self) -> bool:
        """Whether a retry policy may attempt the call again."""
        return self.kind in RETRYABLE_UPSTREAM_KINDS

    @classmethod
    def from_status(
        cls,
        status_code: int,
        message: str,
        retry_after_seconds: int | None = None,
    ) -> "UpstreamError":
        """Classify an HTTP status code returned by the AI service."""
        if status_code == 429:
            kind = UpstreamErrorKind.QUOTA_EXCEEDED
        elif status_code == 400:
            kind = UpstreamErrorKind.BAD_REQUEST
        elif status_code == 404:
            kind = UpstreamErrorKind.NOT_FOUND
        elif status_code in (401, 403):
            kind = UpstreamErrorKind.AUTH
        elif status_code == 408 or status_code == 504:
            kind = UpstreamErrorKind.TIMEOUT
        elif 500 <= status_code < 600:
            kind = UpstreamErrorKind.UNAVAILABLE
        else:
            kind = UpstreamErrorKind.UNKNOWN
        return cls(kind, message, status_code=status_code, retry_after_seconds=retry_after_seconds)


class ReportParseError(Exception):
    """The AI output could not be turned into a report."""


class BlobStoreError(Exception):
    """The blob store could not be reached or answered unexpectedly."""
