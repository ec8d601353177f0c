"""Request DTOs for API endpoints."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from kol_trust.entities import AnalysisMode


class AnalyzeRequest(BaseModel):
    """Request DTO for analyzing a handle.

    The handler passes the raw values to the analysis service, which owns
    validation of the query itself.
    """

    model_config = ConfigDict(populate_by_name=True)

    handle: str = Field(
        ...,
        description="Social-media handle or display name to research",
        validation_alias=AliasChoices("handle", "query"),
    )
    language: str | None = Field(None, description="Report language: 'en' or 'zh-TW'")
    mode: AnalysisMode = Field(AnalysisMode.QUICK, description="Analysis depth: 'quick' or 'enhanced'")
    force_refresh: bool = Field(
        False,
        description="Skip the cache and recompute (still rate limited)",
        validation_alias=AliasChoices("forceRefresh", "force_refresh"),
    )
