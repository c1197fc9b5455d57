"""Periodic housekeeping for competitor analysis records and the competitor cache."""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.celery_app import celery_app
from app.models.analysis import CompetitorAnalysis
from app.services.competitor_cache import CompetitorCache

logger = logging.getLogger(__name__)


async def expire_analyses(db: AsyncSession, now: datetime | None = None) -> int:
    """Mark every record past its ``expires_at`` as expired. Returns the count."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        update(CompetitorAnalysis)
        .where(
            CompetitorAnalysis.expires_at <= now,
            CompetitorAnalysis.status != "expired",
        )
        .values(status="expired", updated_at=now)
    )
    return result.rowcount or 0


def _run(coro):
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _expire_with_local_engine() -> int:
    # Fresh engine per invocation: each prefork task runs on a new event loop
    from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
    from app.config import get_settings

    settings = get_settings()
    local_engine = create_async_engine(settings.async_database_url, pool_pre_ping=True)
    local_session = async_sessionmaker(local_engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with local_session() as db:
            expired = await expire_analyses(db)
            await db.commit()
            return expired
    finally:
        await local_engine.dispose()


async def _cleanup_with_local_redis() -> int:
    import redis.asyncio as redis
    from app.config import get_settings

    client = redis.from_url(get_settings().redis_url, decode_responses=True)
    try:
        return await CompetitorCache(client).cleanup()
    finally:
        await client.close()


@celery_app.task(name="app.scraping.tasks.expire_competitor_analyses")
def expire_competitor_analyses():
    """Periodic task: mark competitor analyses past their retention window as expired."""
    expired = _run(_expire_with_local_engine())
    if expired:
        logger.info("Marked %d competitor analyses as expired", expired)
    return {"expired": expired}


@celery_app.task(name="app.scraping.tasks.cleanup_competitor_cache")
def cleanup_competitor_cache():
    """Periodic task: purge stale competitor cache entries."""
    removed = _run(_cleanup_with_local_redis())
    return {"removed": removed}
