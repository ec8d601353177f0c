"""Normalized query entities."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NormalizedQuery:
    """A validated user query.

    Attributes:
        key: Case-insensitive canonical form used for cache addressing
        display: Form shown back to the user (original casing in permissive mode)
    """

    key: str
    display: str


@dataclass(frozen=True)
class Rejection:
    """Why a raw query was refused."""

    reason: str
