"""Response DTOs for API endpoints."""

from typing import Literal

from pydantic import BaseModel, Field

from kol_trust.errors import ErrorKind

from .report import CamelModel, KOLReport


class AnalysisResponse(KOLReport):
    """A report plus where it came from.

    ``cached_at`` (epoch milliseconds) is only set for cache hits so the UI
    can say "cached N minutes ago".
    """

    source: Literal["api", "cache"] = Field(..., description="Whether the report was freshly computed")
    cached_at: int | None = Field(None, description="Store write time of a cached report (epoch ms)")


class ErrorBody(CamelModel):
    """Stable, client-safe error description."""

    kind: ErrorKind
    message: str
    retry_after_seconds: int | None = None


class ErrorResponse(BaseModel):
    """Response DTO for every failed request."""

    error: ErrorBody


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    store_healthy: bool = Field(..., description="Whether the blob store is reachable")
    provider_healthy: bool | None = Field(
        None,
        description="Whether the AI provider is configured and reachable",
    )
