"""Tracking service — stores client interaction batches and bumps product counters."""

import logging
from collections import Counter, defaultdict
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from recengine.models.product import Product
from recengine.models.product_score import ProductScore
from recengine.models.user_interaction import InteractionType, UserInteraction
from recengine.schemas.tracking import TrackedInteraction

logger = logging.getLogger(__name__)

VALID_INTERACTION_TYPES = {t.value for t in InteractionType}

# interaction type -> (view, click, like) counter deltas
COUNTER_DELTAS = {
    "view": (1, 0, 0),
    "click": (0, 1, 0),
    "like": (0, 0, 1),
    "unlike": (0, 0, -1),
}


def build_interactions(items: list[TrackedInteraction], session_user_id: UUID | None) -> list[UserInteraction]:
    """Valid events as model rows. The session user wins over a client-supplied id."""
    rows = []
    for item in items:
        if item.interaction_type not in VALID_INTERACTION_TYPES:
            logger.debug("Skipping interaction with unknown type %r", item.interaction_type)
            continue
        row = UserInteraction(
            user_id=session_user_id or item.user_id,
            session_id=item.session_id,
            product_id=item.product_id,
            interaction_type=item.interaction_type,
            dwell_time_seconds=item.dwell_time_seconds,
            metadata_=item.metadata,
        )
        if item.timestamp:
            row.created_at = item.timestamp
        rows.append(row)
    return rows


def counter_updates(rows: list[UserInteraction]) -> dict[UUID, list[int]]:
    """Summed (view, click, like) deltas per product."""
    totals: dict[UUID, list[int]] = defaultdict(lambda: [0, 0, 0])
    counts = Counter(
        (row.product_id, row.interaction_type)
        for row in rows
        if row.product_id and row.interaction_type in COUNTER_DELTAS
    )
    for (product_id, interaction_type), n in counts.items():
        deltas = COUNTER_DELTAS[interaction_type]
        for i, delta in enumerate(deltas):
            totals[product_id][i] += delta * n
    return dict(totals)


async def increment_product_counters(db: AsyncSession, updates: dict[UUID, list[int]]) -> int:
    """Apply counter deltas, creating score rows as needed. Returns products touched."""
    if not updates:
        return 0

    known = set((await db.execute(
        select(Product.id).where(Product.id.in_(list(updates)))
    )).scalars().all())

    now = datetime.now(timezone.utc)
    touched = 0
    for product_id, (views, clicks, likes) in updates.items():
        if product_id not in known:
            logger.debug("Skipping counters for unknown product %s", product_id)
            continue

        new_likes = ProductScore.like_count + likes
        result = await db.execute(
            update(ProductScore)
            .where(ProductScore.product_id == product_id)
            .values(
                view_count=ProductScore.view_count + views,
                click_count=ProductScore.click_count + clicks,
                like_count=case((new_likes < 0, 0), else_=new_likes),
                last_interaction_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            db.add(ProductScore(
                product_id=product_id,
                view_count=views,
                click_count=clicks,
                like_count=max(likes, 0),
                conversion_count=0,
                last_interaction_at=now,
            ))
        touched += 1

    await db.flush()
    return touched
