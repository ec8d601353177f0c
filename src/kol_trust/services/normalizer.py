"""Input normalization.

Turns a raw user string into the canonical key used for cache addressing.
Two variants are supported:

- strict: social handles, ``[A-Za-z0-9_]`` only, lower-cased
- permissive: display names, any printable Unicode except characters used
  in injection attacks; casing is kept for display and folded for the key

Normalization is a pure function of its input and configuration.
Re-normalizing ``display`` always yields the same ``key``.
"""

import re
import unicodedata

from kol_trust.config import settings
from kol_trust.entities import NormalizedQuery, QueryMode, Rejection

DENYLIST = frozenset("<>{}()[];`$\\|&")
_HANDLE_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
_WHITESPACE = re.compile(r"\s+")


class QueryNormalizer:
    """Validates and canonicalizes raw queries."""

    def __init__(
        self,
        mode: QueryMode | str | None = None,
        max_length: int | None = None,
    ) -> None:
        """Initialize the normalizer.

        Args:
            mode: Strict handle mode or permissive display-name mode. Defaults to settings.
            max_length: Maximum code points after normalization. Defaults to settings.
        """
        self._mode = QueryMode(mode or settings.query_mode)
        self._max_length = max_length or settings.max_query_length

    @classmethod
    def create(cls, mode: QueryMode | str | None = None, max_length: int | None = None) -> "QueryNormalizer":
        """Factory method to create QueryNormalizer with defaults."""
        return cls(mode=mode, max_length=max_length)

    @property
    def mode(self) -> QueryMode:
        return self._mode

    def normalize(self, raw: object) -> NormalizedQuery | Rejection:
        """Normalize a raw query.

        Args:
            raw: User-supplied value

        Returns:
            NormalizedQuery on success, Rejection describing the problem otherwise
        """
        if not isinstance(raw, str):
            return Rejection("Query must be a string.")

        text = raw.strip()
        if text.startswith("@"):
            text = text[1:].lstrip()

        if self._mode is QueryMode.PERMISSIVE:
            text = _WHITESPACE.sub(" ", unicodedata.normalize("NFKC", text)).strip()

        if not text:
            return Rejection("Query cannot be empty.")
        if len(text) > self._max_length:
            return Rejection(f"Query must be at most {self._max_length} characters.")

        if self._mode is QueryMode.STRICT:
            return self._strict(text)
        return self._permissive(text)

    def _strict(self, text: str) -> NormalizedQuery | Rejection:
        if not _HANDLE_PATTERN.match(text):
            return Rejection("Invalid handle format. Use alphanumeric characters and underscores only.")
        key = text.lower()
        return NormalizedQuery(key=key, display=key)

    def _permissive(self, text: str) -> NormalizedQuery | Rejection:
        # A second "@" would be stripped by a re-normalization and change the key
        if text.startswith("@"):
            return Rejection("Query may start with at most one '@'.")
        if any(char in DENYLIST for char in text):
            return Rejection("Query contains characters that are not allowed.")
        if any(unicodedata.category(char).startswith("C") for char in text):
            return Rejection("Query contains control characters.")
        return NormalizedQuery(key=text.casefold(), display=text)
