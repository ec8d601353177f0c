"""In-process implementation of BlobStore.

Keeps objects in a dictionary. Useful for local development without any
credentials and as the backing store in tests. State is lost on restart and
is not shared between processes, so it must never be the only store of a
multi-instance deployment.
"""

from datetime import datetime, timezone

from kol_trust.errors import BlobStoreError
from kol_trust.protocols import BlobInfo
from kol_trust.utils import Clock, now_ms

_URL_SCHEME = "memory://"


class InMemoryBlobStore:
    """Dictionary-backed implementation of the BlobStore protocol.

    Write timestamps come from the injected clock, standing in for the
    server-side clock of a real store.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        """Initialize the store.

        Args:
            clock: Epoch-millisecond clock. Defaults to wall-clock time.
        """
        self._clock = clock or now_ms
        self._objects: dict[str, tuple[bytes, str, datetime]] = {}

    @classmethod
    def create(cls, clock: Clock | None = None) -> "InMemoryBlobStore":
        """Factory method to create InMemoryBlobStore with defaults."""
        return cls(clock=clock)

    def _info(self, pathname: str) -> BlobInfo:
        _, _, uploaded_at = self._objects[pathname]
        return BlobInfo(pathname=pathname, url=f"{_URL_SCHEME}{pathname}", uploaded_at=uploaded_at)

    async def list_blobs(self, prefix: str) -> list[BlobInfo]:
        return [self._info(pathname) for pathname in sorted(self._objects) if pathname.startswith(prefix)]

    async def put(self, pathname: str, body: bytes, content_type: str) -> BlobInfo:
        uploaded_at = datetime.fromtimestamp(self._clock() / 1000, tz=timezone.utc)
        self._objects[pathname] = (bytes(body), content_type, uploaded_at)
        return self._info(pathname)

    async def fetch(self, url: str) -> bytes:
        pathname = url.removeprefix(_URL_SCHEME)
        if pathname not in self._objects:
            raise BlobStoreError(f"Blob not found: {pathname}")
        return self._objects[pathname][0]

    async def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._objects)
