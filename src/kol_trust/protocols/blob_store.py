"""Blob store protocol.

Defines the interface for a key-prefix-addressable object store. The only
primitives assumed are list-by-prefix (``list_blobs``), whole-object put and plain fetch:
there is no atomic increment, lock, compare-and-swap or transaction, so
every mutation built on top of it is a full read-modify-write.

Implementations can include:
- Vercel Blob (default)
- Redis
- In-process dictionary (development and tests)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class BlobInfo:
    """Listing entry for a stored object.

    Attributes:
        pathname: The key the object was written under
        url: Address to pass to ``BlobStore.fetch``
        uploaded_at: Write time assigned by the store, never by the client
    """

    pathname: str
    url: str
    uploaded_at: datetime


@runtime_checkable
class BlobStore(Protocol):
    """Protocol for blob storage backends.

    Any type that implements these methods satisfies the protocol,
    no explicit inheritance needed. Implementations raise
    ``kol_trust.errors.BlobStoreError`` when the store misbehaves.
    """

    async def list_blobs(self, prefix: str) -> list[BlobInfo]:
        """List objects whose pathname starts with ``prefix``.

        Args:
            prefix: Pathname prefix

        Returns:
            Matching objects, in store order
        """
        ...

    async def put(self, pathname: str, body: bytes, content_type: str) -> BlobInfo:
        """Write a whole object, superseding any prior object at ``pathname``.

        Args:
            pathname: Target key
            body: Object bytes
            content_type: MIME type

        Returns:
            The listing entry of the written object
        """
        ...

    async def fetch(self, url: str) -> bytes:
        """Read a whole object.

        Args:
            url: The ``BlobInfo.url`` of the object

        Returns:
            The object bytes
        """
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
