"""Report payload schema.

This is the shape stored in the content cache and returned to clients.
Stored payloads are re-validated through ``KOLReport`` on every cache read,
which is how old entries survive schema changes:

- fields added since the entry was written get their defaults
- fields that are no longer part of the contract are dropped
- unknown enum values degrade to the neutral member

Field names are camelCase on the wire and snake_case in Python.
"""

import math
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class EventType(str, Enum):
    PREDICTION_WIN = "PREDICTION_WIN"
    PREDICTION_LOSS = "PREDICTION_LOSS"
    CONTROVERSY = "CONTROVERSY"
    NEUTRAL_NEWS = "NEUTRAL_NEWS"


class Sentiment(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class EngagementQuality(str, Enum):
    ORGANIC = "ORGANIC"
    MIXED = "MIXED"
    SUSPICIOUS = "SUSPICIOUS"
    BOT_HEAVY = "BOT_HEAVY"


def _coerce_enum(enum_cls: type[Enum], value: Any, default: Any) -> Any:
    if isinstance(value, str):
        candidate = value.strip().upper().replace(" ", "_")
        if candidate in enum_cls.__members__:
            return enum_cls[candidate]
    return default


def _finite_number(value: Any) -> float:
    """Numeric value of a JSON scalar; raises ValueError for anything else."""
    if isinstance(value, str):
        value = value.strip()
    elif not isinstance(value, (int, float)):
        raise ValueError(f"expected a number, got {type(value).__name__}")
    try:
        number = float(value)
    except OverflowError as e:
        raise ValueError(f"number out of range: {value!r}") from e
    if not math.isfinite(number):
        raise ValueError(f"expected a finite number, got {value!r}")
    return number


class CamelModel(BaseModel):
    """Base model with camelCase aliases that ignores unknown fields."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SourceLinkModel(CamelModel):
    """A web citation."""

    title: str = ""
    url: str


class HistoryEvent(CamelModel):
    """One notable event in the KOL's track record."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    date: str = "Recent"
    description: str = ""
    type: EventType = EventType.NEUTRAL_NEWS
    token: str | None = None
    sentiment: Sentiment = Sentiment.NEUTRAL
    details: str = ""
    source_url: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Any:
        if value is None or value == "":
            return uuid4().hex[:12]
        return str(value)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> EventType:
        return _coerce_enum(EventType, value, EventType.NEUTRAL_NEWS)

    @field_validator("sentiment", mode="before")
    @classmethod
    def _coerce_sentiment(cls, value: Any) -> Sentiment:
        return _coerce_enum(Sentiment, value, Sentiment.NEUTRAL)


class KOLReport(CamelModel):
    """Structured trust report for one handle."""

    handle: str
    display_name: str = ""
    bio_summary: str = ""
    trust_score: int = 50
    total_wins: int = 0
    total_losses: int = 0
    followers_count: str | None = None
    verdict: str = ""
    engagement_quality: EngagementQuality | None = None
    risk_factors: list[str] = Field(default_factory=list)
    wallet_addresses: list[str] = Field(default_factory=list)
    history: list[HistoryEvent] = Field(default_factory=list)
    sources: list[SourceLinkModel] = Field(default_factory=list)
    search_queries: list[str] = Field(default_factory=list)
    last_analyzed: str = ""

    @field_validator("trust_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int:
        if value is None:
            return 50
        return max(0, min(100, round(_finite_number(value))))

    @field_validator("total_wins", "total_losses", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        if value is None:
            return 0
        return max(0, round(_finite_number(value)))

    @field_validator("followers_count", mode="before")
    @classmethod
    def _followers_to_str(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("engagement_quality", mode="before")
    @classmethod
    def _coerce_engagement(cls, value: Any) -> EngagementQuality | None:
        return _coerce_enum(EngagementQuality, value, None)

    @field_validator("risk_factors", "wallet_addresses", "search_queries", mode="before")
    @classmethod
    def _string_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"expected a list of strings, got {type(value).__name__}")
        return [str(item) for item in value if item is not None]

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the stored / wire form."""
        return self.model_dump(mode="json", by_alias=True)
