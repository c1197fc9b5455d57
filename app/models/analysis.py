import uuid
from datetime import datetime, timedelta, timezone
from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.config import get_settings
from app.database import Base

settings = get_settings()


def _default_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=settings.analysis_retention_days)


class CompetitorAnalysis(Base):
    """One competitor analysis request and its AI results."""

    __tablename__ = "competitor_analyses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    campaign_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), index=True)
    result_type: Mapped[str] = mapped_column(String(50), default="competitor_analysis")
    analysis_type: Mapped[str] = mapped_column(String(50), default="comprehensive")
    # processing | completed | failed | expired
    status: Mapped[str] = mapped_column(String(30), default="processing", index=True)

    # Input: {competitor_urls, analysis_type, options}
    input_data: Mapped[dict] = mapped_column(JSONB, default=dict)
    # AI results: competitors, market_insights, benchmark_metrics,
    # competitive_landscape, recommendations, ai_insights
    competitor_analysis: Mapped[dict | None] = mapped_column(JSONB)
    ai_metadata: Mapped[dict | None] = mapped_column(JSONB)
    error_details: Mapped[dict | None] = mapped_column(JSONB)

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_default_expiry, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", back_populates="competitor_analyses")
