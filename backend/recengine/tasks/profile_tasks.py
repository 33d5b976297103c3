"""Celery tasks for user preference profile updates."""

import logging
from datetime import datetime, timezone, timedelta
from uuid import UUID

from sqlalchemy import select, func

from recengine.config import get_settings
from recengine.tasks.celery_app import celery_app
from recengine.models.base import SyncSessionLocal
from recengine.models.product import Product
from recengine.models.user_interaction import UserInteraction
from recengine.models.user_preference import UserPreference
from recengine.services.preference_service import derive_preferences

logger = logging.getLogger(__name__)
settings = get_settings()


@celery_app.task(name="recengine.tasks.profile_tasks.update_user_preferences")
def update_user_preferences(user_id: str):
    """Rebuild the user's preference profile from the last 30 days of interactions.

    Queued by the tracking endpoint after each batch from a logged-in user.
    """
    uid = UUID(str(user_id))
    with SyncSessionLocal() as session:
        try:
            now = datetime.now(timezone.utc)
            cutoff = now - timedelta(days=settings.preference_window_days)

            rows = session.execute(
                select(UserInteraction.interaction_type, Product)
                .join(Product, UserInteraction.product_id == Product.id)
                .where(UserInteraction.user_id == uid, UserInteraction.created_at > cutoff)
                .order_by(UserInteraction.created_at.desc())
            ).all()

            interaction_count = session.execute(
                select(func.count(UserInteraction.id))
                .where(UserInteraction.user_id == uid, UserInteraction.created_at > cutoff)
            ).scalar() or 0

            fields = derive_preferences([(row[0], row[1]) for row in rows], interaction_count)

            # Get or create profile
            profile = session.execute(
                select(UserPreference).where(UserPreference.user_id == uid)
            ).scalar_one_or_none()

            if not profile:
                profile = UserPreference(user_id=uid)
                session.add(profile)

            for field, value in fields.items():
                setattr(profile, field, value)
            profile.last_active_at = now

            session.commit()
            logger.info(
                "Updated preferences for user %s (%d interactions, %d keywords)",
                user_id, interaction_count, len(fields["favorite_keywords"]),
            )
            return fields

        except Exception:
            session.rollback()
            logger.exception("Failed to update preferences for user %s", user_id)
            raise


@celery_app.task(name="recengine.tasks.profile_tasks.update_active_user_preferences")
def update_active_user_preferences():
    """Rebuild profiles for every user with interactions in the active window (runs every 30 min)."""
    cutoff = datetime.now(timezone.utc) - timedelta(hours=settings.active_user_window_hours)
    with SyncSessionLocal() as session:
        user_ids = session.execute(
            select(UserInteraction.user_id)
            .where(UserInteraction.user_id.is_not(None), UserInteraction.created_at >= cutoff)
            .distinct()
            .limit(settings.max_users_per_run)
        ).scalars().all()

    updated = failed = 0
    for uid in user_ids:
        try:
            update_user_preferences(str(uid))
            updated += 1
        except Exception:
            # Already logged by update_user_preferences
            failed += 1

    if user_ids:
        logger.info("Updated preferences for %d active users (%d failed)", updated, failed)
    return {"updated": updated, "failed": failed}
