from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kol_trust.api.dependencies import HandlerDep, lifespan
from kol_trust.config import settings
from kol_trust.dto import AnalyzeRequest, ErrorResponse, HealthCheckResponse
from kol_trust.errors import AnalysisError, ErrorKind
from kol_trust.handlers import error_response

app = FastAPI(
    title="KOL Trust Report API",
    description="Cached, rate-limited trust reports for social-media handles",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
)


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies with the INVALID_INPUT kind."""
    return error_response(AnalysisError(ErrorKind.INVALID_INPUT, "Invalid request body."))


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "KOL Trust Report API",
        "version": "0.1.0",
        "description": "Cached, rate-limited trust reports for social-media handles",
        "endpoints": {
            "analyze": "/api/analyze",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post(
    "/api/analyze",
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def analyze(body: AnalyzeRequest, request: Request, handler: HandlerDep) -> JSONResponse:
    """
    Produce a trust report for a handle.

    Served from the cache when a fresh report exists; otherwise rate limited
    per client and computed by the AI service.
    """
    return await handler.analyze(body, request)


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "kol_trust.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    run()
