"""Maintenance tasks — recommendation cache cleanup."""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete

from recengine.tasks.celery_app import celery_app
from recengine.models.base import SyncSessionLocal
from recengine.models.recommendation_cache import RecommendationCache

logger = logging.getLogger(__name__)


@celery_app.task(name="recengine.tasks.maintenance_tasks.clean_expired_recommendations")
def clean_expired_recommendations():
    """Delete cached feeds past their expiry."""
    db = SyncSessionLocal()
    try:
        result = db.execute(
            delete(RecommendationCache).where(RecommendationCache.expires_at < datetime.now(timezone.utc))
        )
        db.commit()
        deleted = result.rowcount or 0
        logger.info("Deleted %d expired recommendation cache entries", deleted)
        return {"deleted": deleted}
    except Exception:
        db.rollback()
        logger.exception("Failed to clean expired recommendations")
        raise
    finally:
        db.close()
