import logging
from typing import AsyncGenerator
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_current_admin, get_current_user
from app.exceptions import AllCollectionsFailedError, AnalysisFailedError, InputValidationError
from app.models.analysis import CompetitorAnalysis
from app.models.user import User
from app.schemas.competitor import (
    AnalyzeCompetitorsRequest,
    CacheStatsResponse,
    CompetitorAnalysisResponse,
    CompetitorAnalysisSummary,
)
from app.scraping.collector import CompetitorDataCollector
from app.scraping.rate_limiter import RateLimiter
from app.services.ai_client import get_ai_client
from app.services.competitor_analysis import CompetitorAnalysisService
from app.services.competitor_cache import CompetitorCache, get_redis
from app.utils.pagination import PaginatedResponse, PaginationParams, pagination_params

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


# ── Dependencies ─────────────────────────────────────────────────────


def get_competitor_cache() -> CompetitorCache:
    return CompetitorCache(get_redis())


async def get_analysis_service(
    cache: CompetitorCache = Depends(get_competitor_cache),
) -> AsyncGenerator[CompetitorAnalysisService, None]:
    collector = CompetitorDataCollector(rate_limiter=RateLimiter(redis_client=get_redis()))
    ai_client = get_ai_client()
    try:
        yield CompetitorAnalysisService(cache, collector, ai_client)
    finally:
        await collector.close()
        await ai_client.close()


async def _get_user_analysis(db: AsyncSession, analysis_id: UUID, user_id) -> CompetitorAnalysis:
    """Load an analysis belonging to a user, or raise 404."""
    result = await db.execute(
        select(CompetitorAnalysis).where(
            CompetitorAnalysis.id == analysis_id,
            CompetitorAnalysis.user_id == user_id,
        )
    )
    analysis = result.scalar_one_or_none()
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return analysis


# ── Analyze ──────────────────────────────────────────────────────────


@router.post("/analyze", status_code=201)
@limiter.limit(settings.analyze_rate_limit)
async def analyze_competitors(
    request: Request,
    data: AnalyzeCompetitorsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: CompetitorAnalysisService = Depends(get_analysis_service),
):
    # Errors are returned rather than raised so get_db still commits the
    # failed-analysis record written by the service.
    try:
        return await service.analyze(
            db,
            user.id,
            data.competitor_urls,
            campaign_id=data.campaign_id,
            analysis_type=data.analysis_type,
            options=data.options.model_dump(),
        )
    except InputValidationError as e:
        return JSONResponse(status_code=400, content={"detail": e.message, "error": e.detail})
    except AllCollectionsFailedError as e:
        return JSONResponse(
            status_code=400,
            content={
                "detail": e.message,
                "errors": [
                    {"profile_url": f["profile_url"], "error": f["error"], "error_type": f["error_type"]}
                    for f in e.failures
                ],
            },
        )
    except AnalysisFailedError as e:
        return JSONResponse(
            status_code=500,
            content={"detail": e.message, "error": e.detail, "analysis_id": e.analysis_id},
        )


# ── Read / delete ────────────────────────────────────────────────────


@router.get("/analysis/{analysis_id}", response_model=CompetitorAnalysisResponse)
async def get_analysis(
    analysis_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _get_user_analysis(db, analysis_id, user.id)


@router.get("/history", response_model=PaginatedResponse[CompetitorAnalysisSummary])
async def list_analyses(
    status: str | None = Query(None),
    params: PaginationParams = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    base = select(CompetitorAnalysis).where(CompetitorAnalysis.user_id == user.id)
    if status:
        base = base.where(CompetitorAnalysis.status == status)

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.order_by(CompetitorAnalysis.created_at.desc())
        .offset(params.offset)
        .limit(params.limit)
    )
    items = [CompetitorAnalysisSummary.model_validate(a) for a in result.scalars().all()]
    return PaginatedResponse[CompetitorAnalysisSummary].create(items, total or 0, params)


@router.delete("/analysis/{analysis_id}", status_code=204)
async def delete_analysis(
    analysis_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    analysis = await _get_user_analysis(db, analysis_id, user.id)
    await db.delete(analysis)
    await db.flush()


# ── Cache administration ─────────────────────────────────────────────


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(
    admin: User = Depends(get_current_admin),
    cache: CompetitorCache = Depends(get_competitor_cache),
):
    return await cache.stats()


@router.delete("/cache")
async def clear_cache(
    admin: User = Depends(get_current_admin),
    cache: CompetitorCache = Depends(get_competitor_cache),
):
    cleared = await cache.clear()
    logger.info("Competitor cache cleared by %s (%d entries)", admin.email, cleared)
    return {"cleared": cleared}
