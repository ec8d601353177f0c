"""Utility helpers for kol_trust."""

from .clock import Clock, datetime_to_ms, now_ms
from .hashing import fnv1a_64, pseudonymize

__all__ = [
    "Clock",
    "datetime_to_ms",
    "now_ms",
    "fnv1a_64",
    "pseudonymize",
]
