"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract and the stored
report payload. They are used for request/response validation and
serialization.

Internal domain logic should use entities from the entities package.
"""

from .report import EngagementQuality, EventType, HistoryEvent, KOLReport, Sentiment, SourceLinkModel
from .requests import AnalyzeRequest
from .responses import AnalysisResponse, ErrorBody, ErrorResponse, HealthCheckResponse

__all__ = [
    "AnalyzeRequest",
    "AnalysisResponse",
    "EngagementQuality",
    "ErrorBody",
    "ErrorResponse",
    "EventType",
    "HealthCheckResponse",
    "HistoryEvent",
    "KOLReport",
    "Sentiment",
    "SourceLinkModel",
]
