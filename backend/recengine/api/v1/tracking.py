"""Interaction tracking endpoint — batched client events."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from recengine.config import get_settings
from recengine.dependencies.auth import get_current_user_id
from recengine.dependencies.rate_limit import limit_tracking_requests
from recengine.models.base import get_db
from recengine.schemas.tracking import TrackingRequest, TrackingResponse
from recengine.services.tracking_service import (
    build_interactions,
    counter_updates,
    increment_product_counters,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.post("", response_model=TrackingResponse, dependencies=[Depends(limit_tracking_requests)])
async def track_interactions(
    body: TrackingRequest,
    user_id: UUID | None = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Store a batch of interaction events. Unknown interaction types are skipped."""
    if len(body.interactions) > settings.tracking_batch_limit:
        raise HTTPException(
            status_code=400,
            detail=f"Batch too large: maximum {settings.tracking_batch_limit} interactions per request",
        )

    rows = build_interactions(body.interactions, user_id)
    if not rows:
        return TrackingResponse(processed=0)

    db.add_all(rows)
    await db.commit()

    # Counters are best effort; the events are already stored
    try:
        touched = await increment_product_counters(db, counter_updates(rows))
        await db.commit()
        logger.debug("Updated counters for %d products", touched)
    except Exception:
        await db.rollback()
        logger.exception("Failed to update product counters")

    if user_id:
        dispatch_preference_update(user_id)

    logger.info("Tracked %d interactions for %s", len(rows), user_id or "anonymous")
    return TrackingResponse(processed=len(rows))


def dispatch_preference_update(user_id: UUID):
    """Queue a preference profile rebuild for the user."""
    try:
        from recengine.tasks.profile_tasks import update_user_preferences
        update_user_preferences.delay(str(user_id))
    except Exception:
        logger.warning("Could not queue preference update for user %s", user_id, exc_info=True)
