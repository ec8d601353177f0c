"""HTTP handlers for analysis requests.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, headers and error bodies.
No stack trace, store url or upstream detail ever reaches a response.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from kol_trust.dto import AnalysisResponse, AnalyzeRequest, ErrorBody, ErrorResponse, HealthCheckResponse
from kol_trust.entities import RateLimitDecision
from kol_trust.errors import AnalysisError, ErrorKind
from kol_trust.services import AnalysisService

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.UPSTREAM_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error: AnalysisError) -> JSONResponse:
    """Render an AnalysisError as a structured JSON error."""
    body = ErrorResponse(
        error=ErrorBody(
            kind=error.kind,
            message=error.message,
            retry_after_seconds=error.retry_after_seconds,
        )
    )
    headers = {}
    if error.retry_after_seconds is not None:
        headers["Retry-After"] = str(error.retry_after_seconds)
    return JSONResponse(
        status_code=STATUS_BY_KIND[error.kind],
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=headers,
    )


def client_identity(request: Request) -> str:
    """Best-effort source address of the caller.

    Uses the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _rate_limit_headers(decision: RateLimitDecision | None) -> dict[str, str]:
    if decision is None:
        return {}
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
    }


class AnalyzeHandler:
    """HTTP handlers for analysis operations.

    This handler delegates business logic to AnalysisService
    and handles HTTP-specific concerns like:
    - Converting outcomes to DTOs
    - Setting status codes and rate-limit headers
    - Rendering structured errors

    Example:
        ```python
        handler = AnalyzeHandler(analysis_service=service)

        @app.post("/api/analyze")
        async def analyze(body: AnalyzeRequest, request: Request):
            return await handler.analyze(body, request)
        ```
    """

    def __init__(self, analysis_service: AnalysisService) -> None:
        """Initialize the handler.

        Args:
            analysis_service: The analysis service for business logic (required).
        """
        self._service = analysis_service

    async def analyze(self, body: AnalyzeRequest, request: Request) -> JSONResponse:
        """Handle POST /api/analyze requests.

        Args:
            body: The analyze request DTO
            request: The raw request, used for the client identity

        Returns:
            JSONResponse with the report, or a structured error
        """
        try:
            outcome = await self._service.analyze(
                body.handle,
                language=body.language,
                mode=body.mode,
                force_refresh=body.force_refresh,
                client_identity=client_identity(request),
            )
        except AnalysisError as e:
            return error_response(e)

        response = AnalysisResponse.model_validate(
            {**outcome.payload, "source": outcome.source, "cachedAt": outcome.cached_at}
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=response.model_dump(mode="json", by_alias=True, exclude_none=True),
            headers=_rate_limit_headers(outcome.rate_limit),
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Returns:
            HealthCheckResponse with store and provider status
        """
        store_healthy, provider_healthy = await self._service.is_healthy()

        return HealthCheckResponse(
            status="healthy" if store_healthy and provider_healthy else "unhealthy",
            store_healthy=store_healthy,
            provider_healthy=provider_healthy,
        )
