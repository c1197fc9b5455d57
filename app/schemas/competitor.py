from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from uuid import UUID
from datetime import datetime


class AnalysisOptions(BaseModel):
    """Collection bounds and AI section toggles; unset toggles default to on."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    max_posts: int = Field(default=50, ge=1, le=200)
    time_period_days: int = Field(default=30, ge=1, le=365)
    include_content_analysis: bool = True
    include_engagement_analysis: bool = True
    include_audience_analysis: bool = True
    include_competitive_insights: bool = True
    include_recommendations: bool = True


class AnalyzeCompetitorsRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Count and URL checks happen in the service so they share its error shape
    competitor_urls: list[str] = Field(default_factory=list)
    campaign_id: UUID | None = None
    analysis_type: str = Field(default="comprehensive", max_length=50)
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class CompetitorAnalysisResponse(BaseModel):
    id: UUID
    user_id: UUID
    campaign_id: UUID | None
    result_type: str
    analysis_type: str
    status: str
    input_data: dict
    competitor_analysis: dict | None = None
    ai_metadata: dict | None = None
    error_details: dict | None = None
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CompetitorAnalysisSummary(BaseModel):
    """History row without the (large) AI result body."""

    id: UUID
    campaign_id: UUID | None
    analysis_type: str
    status: str
    input_data: dict
    ai_metadata: dict | None = None
    expires_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class CacheStatsResponse(BaseModel):
    available: bool
    total_entries: int = 0
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    freshness_window_hours: float = 0.0
