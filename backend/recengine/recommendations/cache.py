"""Recommendation cache manager — expiring per-user feed snapshots.

Entries are append-only: ``put`` inserts a new row, readers take the newest
unexpired row, and only ``invalidate`` deletes. Every operation is best
effort. A failing cache read is a miss and a failing write is a no-op, so the
cache can never break a recommendation request.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recengine.models.recommendation_cache import RecommendationCache

logger = logging.getLogger(__name__)

PERSONALIZED = "personalized"


class RecommendationCacheManager:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], algorithm_version: str):
        self.session_factory = session_factory
        self.algorithm_version = algorithm_version

    async def get(self, user_id: UUID, recommendation_type: str = PERSONALIZED) -> list[UUID] | None:
        """Newest unexpired product list for the key, or None on a miss."""
        try:
            async with self.session_factory() as session:
                entry = (await session.execute(
                    select(RecommendationCache)
                    .where(
                        RecommendationCache.user_id == user_id,
                        RecommendationCache.recommendation_type == recommendation_type,
                        RecommendationCache.expires_at > datetime.now(timezone.utc),
                    )
                    .order_by(RecommendationCache.created_at.desc())
                    .limit(1)
                )).scalar_one_or_none()
        except Exception:
            logger.exception("Cache lookup failed for user %s (%s)", user_id, recommendation_type)
            return None

        if entry is None:
            return None
        try:
            return [UUID(str(pid)) for pid in entry.recommended_products]
        except (TypeError, ValueError):
            logger.warning("Discarding malformed cache entry %s for user %s", entry.id, user_id)
            return None

    async def put(
        self,
        user_id: UUID,
        product_ids: list[UUID],
        ttl: timedelta,
        recommendation_type: str = PERSONALIZED,
    ) -> bool:
        """Insert a new entry. Returns False if the write failed."""
        try:
            async with self.session_factory() as session:
                now = datetime.now(timezone.utc)
                session.add(RecommendationCache(
                    user_id=user_id,
                    recommendation_type=recommendation_type,
                    recommended_products=[str(pid) for pid in product_ids],
                    score=1.0,
                    algorithm_version=self.algorithm_version,
                    created_at=now,
                    expires_at=now + ttl,
                ))
                await session.commit()
        except Exception:
            logger.exception("Cache write failed for user %s (%s)", user_id, recommendation_type)
            return False
        return True

    async def invalidate(self, user_id: UUID, recommendation_type: str = PERSONALIZED) -> int:
        """Delete every entry for the key. Returns the number of rows removed."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    delete(RecommendationCache).where(
                        RecommendationCache.user_id == user_id,
                        RecommendationCache.recommendation_type == recommendation_type,
                    )
                )
                await session.commit()
        except Exception:
            logger.exception("Cache invalidation failed for user %s (%s)", user_id, recommendation_type)
            return 0
        return result.rowcount or 0
