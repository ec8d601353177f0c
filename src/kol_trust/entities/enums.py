"""Enumerations shared across layers."""

from enum import Enum


class Language(str, Enum):
    """Output language of a report."""

    EN = "en"
    ZH_TW = "zh-TW"

    @classmethod
    def parse(cls, value: str | None) -> "Language":
        """Coerce a raw language tag, falling back to English."""
        for member in cls:
            if value == member.value:
                return member
        return cls.EN


class AnalysisMode(str, Enum):
    """Depth of the research prompt; also the cache namespace."""

    QUICK = "quick"
    ENHANCED = "enhanced"


class QueryMode(str, Enum):
    """Input normalization variant."""

    STRICT = "strict"  # social handles: [A-Za-z0-9_]
    PERMISSIVE = "permissive"  # display names: any text minus an injection denylist
