"""KOL Trust - cached, rate-limited AI trust reports for social-media handles.

This package provides a layered architecture around one expensive,
non-deterministic upstream call:

Layers:
    - protocols: Interface contracts (BlobStore, AnalysisProvider)
    - repositories: Data access implementations (Vercel Blob, Redis, Gemini)
    - services: Business logic (normalizer, content cache, rate limiter, orchestrator)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts and the report schema)
    - entities: Domain models (internal)

Usage:
    ```python
    from kol_trust.repositories import GeminiAnalysisProvider, VercelBlobStore
    from kol_trust.services import AnalysisService

    service = AnalysisService.create(
        store=VercelBlobStore.create(),
        provider=GeminiAnalysisProvider.create(),
    )
    outcome = await service.analyze("@pentosh1", language="en", client_identity=ip)
    ```

For HTTP API:
    ```python
    from kol_trust.api.app import app
    ```
"""

from kol_trust.config import get_settings, settings
from kol_trust.dto import AnalyzeRequest, KOLReport
from kol_trust.entities import AnalysisMode, AnalysisOutcome, Language, QueryMode
from kol_trust.errors import AnalysisError, ErrorKind
from kol_trust.handlers import AnalyzeHandler
from kol_trust.protocols import AnalysisProvider, BlobStore
from kol_trust.repositories import GeminiAnalysisProvider, InMemoryBlobStore, RedisBlobStore, VercelBlobStore
from kol_trust.services import AnalysisService, ContentCache, QueryNormalizer, RateLimiter

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    # Protocols (interfaces)
    "AnalysisProvider",
    "BlobStore",
    # Services (business logic)
    "AnalysisService",
    "ContentCache",
    "QueryNormalizer",
    "RateLimiter",
    # Handlers (HTTP)
    "AnalyzeHandler",
    # Repositories (data access)
    "GeminiAnalysisProvider",
    "InMemoryBlobStore",
    "RedisBlobStore",
    "VercelBlobStore",
    # Entities (domain models)
    "AnalysisMode",
    "AnalysisOutcome",
    "Language",
    "QueryMode",
    # DTOs (API contracts)
    "AnalyzeRequest",
    "KOLReport",
    # Errors
    "AnalysisError",
    "ErrorKind",
]
