"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .analyze_handler import AnalyzeHandler, error_response

__all__ = [
    "AnalyzeHandler",
    "error_response",
]
