"""Content cache entities."""

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from .enums import AnalysisMode, Language


@dataclass(frozen=True)
class CacheKey:
    """Composite cache address: (normalized query, language, mode).

    Attributes:
        query: Normalized (case-folded) query key
        language: Report language
        mode: Analysis mode
    """

    query: str
    language: Language
    mode: AnalysisMode

    @property
    def path(self) -> str:
        """Store pathname, ``{mode}/{query}-{language}.json``."""
        return f"{self.mode.value}/{quote(self.query, safe='_')}-{self.language.value}.json"


@dataclass(frozen=True)
class CachedReport:
    """A cache hit.

    Attributes:
        payload: The stored report (shape owned by the producer)
        stored_at: Store-assigned write time in epoch milliseconds
    """

    payload: dict[str, Any]
    stored_at: int

    def age_ms(self, now: int) -> int:
        return now - self.stored_at
