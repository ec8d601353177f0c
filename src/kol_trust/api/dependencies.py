"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from kol_trust.config import configure_logging, settings
from kol_trust.handlers import AnalyzeHandler
from kol_trust.repositories import GeminiAnalysisProvider, create_blob_store
from kol_trust.services import AnalysisService

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> AnalyzeHandler:
    """Dependency injection for AnalyzeHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The AnalyzeHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "analyze_handler", None)
    if handler is None:
        raise RuntimeError("AnalyzeHandler not initialized. Check lifespan setup.")
    return handler


async def _close(resource: object) -> None:
    close = getattr(resource, "close", None)
    if close is not None:
        await close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Blob store and AI provider (data access) - created explicitly
    2. Service (business logic) - stored in app.state.analysis_service
    3. Handler (HTTP endpoints) - stored in app.state.analyze_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Closes network clients and removes all services from app.state
    """
    configure_logging()

    # One store backs both the content cache and the rate limiter
    store = create_blob_store()
    provider = GeminiAnalysisProvider.create()

    analysis_service = AnalysisService.create(store=store, provider=provider)
    analyze_handler = AnalyzeHandler(analysis_service=analysis_service)

    app.state.analysis_service = analysis_service
    app.state.analyze_handler = analyze_handler
    app.state.blob_store = store
    app.state.provider = provider

    logger.info("Analysis service initialized")
    logger.info("Blob backend: %s", settings.blob_backend)
    logger.info("Model: %s", provider.model_name)
    logger.info("Cache TTL: %ds", settings.cache_ttl_seconds)
    logger.info(
        "Rate limit: %d requests / %ds",
        settings.rate_limit_max_requests,
        settings.rate_limit_window_seconds,
    )

    yield

    await _close(provider)
    await _close(store)

    del app.state.analyze_handler
    del app.state.analysis_service
    del app.state.blob_store
    del app.state.provider
    logger.info("Analysis service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[AnalyzeHandler, Depends(get_handler)]
