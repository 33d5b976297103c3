"""Celery tasks for product score recomputation."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from recengine.tasks.celery_app import celery_app
from recengine.models.base import SyncSessionLocal
from recengine.models.product import Product
from recengine.models.product_score import ProductScore
from recengine.services.score_service import engagement_score, popularity_score, trending_score

logger = logging.getLogger(__name__)


def ensure_baseline_scores(session, now: datetime) -> int:
    """Give active products without a score row a minimal one so they can surface."""
    missing = session.execute(
        select(Product.id)
        .outerjoin(ProductScore, ProductScore.product_id == Product.id)
        .where(Product.is_active == True, ProductScore.product_id.is_(None))  # noqa: E712
    ).scalars().all()

    for product_id in missing:
        session.add(ProductScore(
            product_id=product_id,
            view_count=1,
            click_count=0,
            like_count=0,
            conversion_count=0,
            popularity_score=1.0,
            trending_score=1.0,
            last_interaction_at=now,
            created_at=now,
            updated_at=now,
        ))
    session.flush()
    return len(missing)


def recompute_scores(session, now: datetime) -> int:
    scores = session.execute(select(ProductScore)).scalars().all()
    for score in scores:
        engagement = engagement_score(score.view_count, score.click_count, score.like_count, score.conversion_count)
        score.popularity_score = popularity_score(engagement, score.created_at, now)
        score.trending_score = trending_score(engagement, score.last_interaction_at, now)
    return len(scores)


@celery_app.task(name="recengine.tasks.score_tasks.refresh_product_scores")
def refresh_product_scores():
    """Recompute popularity and trending scores for every product (runs every 15 min via beat)."""
    with SyncSessionLocal() as session:
        try:
            now = datetime.now(timezone.utc)
            created = ensure_baseline_scores(session, now)
            updated = recompute_scores(session, now)
            session.commit()
            logger.info("Refreshed product scores: %d baseline rows created, %d rows updated", created, updated)
            return {"created": created, "updated": updated}

        except Exception:
            session.rollback()
            logger.exception("Failed to refresh product scores")
            raise
