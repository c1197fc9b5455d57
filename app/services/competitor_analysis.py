"""Competitor analysis orchestration.

Validates the requested profile URLs, serves what it can from the cache,
collects the rest, sends the combined payload to the AI backend and stores
one CompetitorAnalysis record per request.
"""

import logging
import time
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.exceptions import (
    AllCollectionsFailedError,
    AnalysisFailedError,
    NoProfilesError,
    TooManyProfilesError,
)
from app.models.analysis import CompetitorAnalysis
from app.scraping.collector import CompetitorDataCollector, is_failed_result
from app.scraping.url_parser import validate_profile_url
from app.services.competitor_cache import CompetitorCache, normalize_options, normalize_url

logger = logging.getLogger(__name__)
settings = get_settings()

ANALYSIS_TOGGLES = (
    "include_content_analysis",
    "include_engagement_analysis",
    "include_audience_analysis",
    "include_competitive_insights",
    "include_recommendations",
)

RECENT_POSTS_IN_PAYLOAD = 10

AI_RESULT_SECTIONS = {
    "competitors": list,
    "market_insights": dict,
    "benchmark_metrics": dict,
    "competitive_landscape": dict,
    "recommendations": list,
    "ai_insights": dict,
}


def prepare_urls(competitor_urls: list[str] | None) -> list[str]:
    """Validate the request URLs and drop any naming an already-listed profile.

    The first spelling of each profile is kept.
    """
    if not competitor_urls:
        raise NoProfilesError()
    limit = settings.max_competitors_per_analysis
    if len(competitor_urls) > limit:
        raise TooManyProfilesError(limit, len(competitor_urls))

    urls: list[str] = []
    seen: set[str] = set()
    for url in competitor_urls:
        value = validate_profile_url(url)
        identity = normalize_url(value)
        if identity not in seen:
            seen.add(identity)
            urls.append(value)
    return urls


def analysis_options(options: dict | None) -> dict:
    options = options or {}
    opts = normalize_options(options)
    for toggle in ANALYSIS_TOGGLES:
        value = options.get(toggle)
        opts[toggle] = True if value is None else bool(value)
    return opts


def build_ai_payload(
    successes: list[dict],
    analysis_type: str,
    options: dict,
    user_id: uuid.UUID,
    campaign_id: uuid.UUID | None,
) -> dict:
    competitors_data = []
    for result in successes:
        content = result["content"]
        competitors_data.append({
            "profile_url": result["profile_url"],
            "platform": result["profile"]["platform"],
            "profile_metrics": result["profile"],
            "content_analysis": {
                "total_posts": content["total_posts"],
                "average_posts_per_week": content["average_posts_per_week"],
                "content_types": content["content_types"],
                "top_hashtags": content["top_hashtags"],
                "posting_schedule": content["posting_schedule"],
            },
            "engagement_metrics": result["engagement"],
            "recent_posts": content["posts"][:RECENT_POSTS_IN_PAYLOAD],
            "data_quality": result["data_quality"],
        })

    return {
        "competitors_data": competitors_data,
        "analysis_type": analysis_type,
        "analysis_options": {toggle: options[toggle] for toggle in ANALYSIS_TOGGLES},
        "user_id": str(user_id),
        "campaign_id": str(campaign_id) if campaign_id else None,
        "collected_at": datetime.now(timezone.utc).isoformat(),
    }


def ai_sections(ai_response: dict) -> dict:
    results = ai_response.get("results") or {}
    return {
        name: results.get(name) or kind()
        for name, kind in AI_RESULT_SECTIONS.items()
    }


def competitor_summary(result: dict) -> dict:
    profile = result["profile"]
    return {
        "profile_url": result["profile_url"],
        "platform": profile["platform"],
        "username": profile.get("username"),
        "display_name": profile.get("display_name"),
        "followers": profile.get("followers", 0),
        "total_posts": result["content"]["total_posts"],
        "engagement_rate": result["engagement"]["engagement_rate"],
        "engagement_trend": result["engagement"]["engagement_trend"],
        "data_quality_score": result["data_quality"]["score"],
        "collected_at": result["collected_at"],
    }


class CompetitorAnalysisService:
    def __init__(self, cache: CompetitorCache, collector: CompetitorDataCollector, ai_client):
        self.cache = cache
        self.collector = collector
        self.ai_client = ai_client

    async def _collect(self, urls: list[str], options: dict) -> tuple[list[dict], dict]:
        """Cached results plus fresh collections, in input order."""
        cached = await self.cache.get_multiple(urls, options)
        # Entries may have been stored under another spelling of the same profile
        by_url: dict[str, dict] = {
            url: {**data, "profile_url": url} for url, data in cached["results"].items()
        }

        if cached["misses"]:
            collected = await self.collector.collect_multiple(cached["misses"], options)
            fresh = {}
            for result in collected:
                by_url[result["profile_url"]] = result
                if not is_failed_result(result):
                    fresh[result["profile_url"]] = result
            await self.cache.set_multiple(fresh, options)

        cache_info = {"hits": len(cached["hits"]), "misses": len(cached["misses"])}
        return [by_url[url] for url in urls], cache_info

    async def _persist_failure(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        campaign_id: uuid.UUID | None,
        analysis_type: str,
        input_data: dict,
        error: Exception,
    ) -> str | None:
        try:
            if isinstance(error, SQLAlchemyError):
                await db.rollback()
            record = CompetitorAnalysis(
                user_id=user_id,
                campaign_id=campaign_id,
                analysis_type=analysis_type,
                input_data=input_data,
                status="failed",
                error_details={
                    "message": str(error),
                    "error_type": type(error).__name__,
                    "failed_at": datetime.now(timezone.utc).isoformat(),
                },
            )
            db.add(record)
            await db.flush()
            return str(record.id)
        except SQLAlchemyError:
            logger.error("Could not persist failed competitor analysis record", exc_info=True)
            await db.rollback()
            return None

    async def analyze(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        competitor_urls: list[str],
        campaign_id: uuid.UUID | None = None,
        analysis_type: str = "comprehensive",
        options: dict | None = None,
    ) -> dict:
        """
        Run a full competitor analysis.

        Raises:
            InputValidationError: empty, oversized or malformed URL list. No work is done.
            AllCollectionsFailedError: no profile could be collected. Nothing is persisted.
            AnalysisFailedError: the AI step (or anything after collection) failed;
                a ``failed`` record has been written when possible.
        """
        urls = prepare_urls(competitor_urls)
        opts = analysis_options(options)
        started = time.monotonic()

        logger.info("Starting competitor analysis of %d profiles for user %s", len(urls), user_id)
        results, cache_info = await self._collect(urls, opts)

        successes = [r for r in results if not is_failed_result(r)]
        failures = [r for r in results if is_failed_result(r)]
        if not successes:
            logger.warning("Competitor analysis aborted: all %d collections failed", len(failures))
            raise AllCollectionsFailedError(failures)

        input_data = {
            "competitor_urls": urls,
            "analysis_type": analysis_type,
            "options": opts,
        }

        try:
            payload = build_ai_payload(successes, analysis_type, opts, user_id, campaign_id)
            ai_response = await self.ai_client.competitor_analysis(payload)
            sections = ai_sections(ai_response)

            quality_scores = [r["data_quality"]["score"] for r in successes]
            data_quality_score = round(sum(quality_scores) / len(quality_scores))
            platforms = sorted({r["profile"]["platform"] for r in successes})
            total_posts = sum(r["content"]["total_posts"] for r in successes)
            processing_time_ms = ai_response.get("processing_time_ms") or 0

            record = CompetitorAnalysis(
                user_id=user_id,
                campaign_id=campaign_id,
                analysis_type=analysis_type,
                input_data=input_data,
                competitor_analysis=sections,
                ai_metadata={
                    "model_version": ai_response.get("model_version") or "unknown",
                    "processing_time": processing_time_ms,
                    "confidence_score": ai_response.get("confidence_score") or 0,
                    "data_sources": platforms,
                    "competitors_analyzed": len(successes),
                    "data_quality_score": data_quality_score,
                    "platforms_analyzed": platforms,
                    "total_posts_analyzed": total_posts,
                },
                status="completed",
            )
            db.add(record)
            await db.flush()
        except Exception as e:
            logger.error("Competitor analysis failed after collection: %s", e, exc_info=True)
            analysis_id = await self._persist_failure(db, user_id, campaign_id, analysis_type, input_data, e)
            raise AnalysisFailedError(str(e), analysis_id=analysis_id) from e

        logger.info(
            "Competitor analysis %s completed: %d analyzed, %d failed, cache %d/%d, %dms",
            record.id, len(successes), len(failures),
            cache_info["hits"], len(urls), int((time.monotonic() - started) * 1000),
        )

        response = {
            "analysis_id": str(record.id),
            "competitors_analyzed": len(successes),
            "competitors_failed": len(failures),
            "results": {
                "ai_insights": sections["ai_insights"],
                "competitive_landscape": sections["competitive_landscape"],
                "market_insights": sections["market_insights"],
                "benchmark_metrics": sections["benchmark_metrics"],
                "recommendations": sections["recommendations"],
                "competitors_data": [competitor_summary(r) for r in successes],
                "metadata": {
                    "generated_at": datetime.now(timezone.utc).isoformat(),
                    "processing_time_ms": processing_time_ms,
                    "data_quality_score": data_quality_score,
                    "platforms_analyzed": platforms,
                    "total_posts_analyzed": total_posts,
                },
            },
            "cache": cache_info,
        }
        if failures:
            response["warnings"] = {
                "failed_competitors": [
                    {"profile_url": f["profile_url"], "error": f["error"]} for f in failures
                ],
            }
        return response
