"""Repository layer for data access.

This layer abstracts external dependencies (blob stores, the generative AI
API) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Vercel Blob -> Redis, Gemini -> another model)
- Unit testing with in-memory implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from kol_trust.config import settings
from kol_trust.protocols import AnalysisProvider, BlobStore

from .gemini_analysis_provider import GeminiAnalysisProvider
from .memory_blob_store import InMemoryBlobStore
from .redis_blob_store import RedisBlobStore
from .vercel_blob_store import VercelBlobStore


def create_blob_store(backend: str | None = None) -> BlobStore:
    """Build the blob store selected by ``BLOB_BACKEND``."""
    backend = backend or settings.blob_backend
    if backend == "redis":
        return RedisBlobStore.create()
    if backend == "memory":
        return InMemoryBlobStore.create()
    return VercelBlobStore.create()


__all__ = [
    "AnalysisProvider",
    "BlobStore",
    "GeminiAnalysisProvider",
    "InMemoryBlobStore",
    "RedisBlobStore",
    "VercelBlobStore",
    "create_blob_store",
]
