"""Entities describing the raw output of the generative AI service."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SourceLink:
    """A web citation the AI service grounded its answer on."""

    title: str
    url: str


@dataclass(frozen=True)
class UpstreamResponse:
    """Raw result of one AI call.

    Attributes:
        text: Free or shape-constrained text produced by the model
        sources: Grounding citations
        search_queries: Web searches the model issued internally
    """

    text: str
    sources: list[SourceLink] = field(default_factory=list)
    search_queries: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Recognized:
    """Model text that decoded to a JSON object."""

    data: dict[str, Any]


@dataclass(frozen=True)
class Malformed:
    """Model text that could not be decoded."""

    raw_text: str


ParsedOutput = Recognized | Malformed
