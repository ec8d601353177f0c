"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Vercel Blob -> Redis, Gemini -> another model)
- Unit testing with in-memory or scripted implementations
- Clear separation of concerns

Usage:
    ```python
    from kol_trust.protocols import AnalysisProvider, BlobStore

    # Type hints work with any implementation
    store: BlobStore = VercelBlobStore.create()  # works
    store: BlobStore = RedisBlobStore.create()   # also works
    ```
"""

from .analysis_provider import AnalysisProvider
from .blob_store import BlobInfo, BlobStore

__all__ = [
    "AnalysisProvider",
    "BlobInfo",
    "BlobStore",
]
