"""Celery tasks for recommendation pre-generation."""

import asyncio
import logging
from datetime import datetime, timezone, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from recengine.config import get_settings
from recengine.tasks.celery_app import celery_app
from recengine.models.base import SyncSessionLocal
from recengine.models.user_preference import UserPreference
from recengine.recommendations.engine import RecommendationEngine

logger = logging.getLogger(__name__)
settings = get_settings()


def active_user_ids(session, now: datetime) -> list[UUID]:
    """Users whose profile saw activity inside the window, most recent first."""
    cutoff = now - timedelta(hours=settings.active_user_window_hours)
    return list(session.execute(
        select(UserPreference.user_id)
        .where(UserPreference.last_active_at >= cutoff)
        .order_by(UserPreference.last_active_at.desc())
        .limit(settings.max_users_per_run)
    ).scalars().all())


async def pregenerate_for_users(session_factory: async_sessionmaker[AsyncSession], user_ids: list[UUID]) -> dict:
    """Refresh the cached feed for each user; one failure does not stop the run."""
    engine = RecommendationEngine(session_factory)
    refreshed = failed = 0
    for user_id in user_ids:
        try:
            result = await engine.refresh(user_id)
            refreshed += 1
            logger.debug("Pre-generated %d recommendations for user %s", len(result.product_ids), user_id)
        except Exception:
            failed += 1
            logger.exception("Failed to pre-generate recommendations for user %s", user_id)
    return {"users": len(user_ids), "refreshed": refreshed, "failed": failed}


async def _run(user_ids: list[UUID]) -> dict:
    # Fresh engine per run; pooled connections cannot cross event loops
    task_engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        session_factory = async_sessionmaker(task_engine, class_=AsyncSession, expire_on_commit=False)
        return await pregenerate_for_users(session_factory, user_ids)
    finally:
        await task_engine.dispose()


@celery_app.task(name="recengine.tasks.recommendation_tasks.pregenerate_recommendations")
def pregenerate_recommendations():
    """Warm the cache for recently active users (runs every 15 min via beat)."""
    with SyncSessionLocal() as session:
        user_ids = active_user_ids(session, datetime.now(timezone.utc))

    if not user_ids:
        logger.info("No active users to pre-generate recommendations for")
        return {"users": 0, "refreshed": 0, "failed": 0}

    stats = asyncio.run(_run(user_ids))
    logger.info(
        "Pre-generated recommendations for %d/%d users (%d failed)",
        stats["refreshed"], stats["users"], stats["failed"],
    )
    return stats
