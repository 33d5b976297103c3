"""Collaborative generator — users who viewed what you viewed also viewed.

A plain user-based nearest-neighbour filter over raw view counts:

1. the user's views in the last 30 days (at most 20)
2. other users' views of those products in the same window (at most 1000 rows)
3. the 10 users with the largest overlap
4. everything those neighbours viewed, minus what the user already saw,
   ranked by how many neighbour views it received
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recengine.models.product import Product
from recengine.models.user_interaction import UserInteraction, InteractionType
from recengine.recommendations.generators.base import SignalGenerator, of_listing_type
from recengine.recommendations.generators.registry import register_generator
from recengine.recommendations.types import GeneratorContext, COLLABORATIVE

WINDOW_DAYS = 30
MAX_USER_VIEWS = 20
MAX_NEIGHBOUR_ROWS = 1000
TOP_NEIGHBOURS = 10


def top_by_count(items) -> list:
    """Distinct items ordered by frequency desc; ties keep first appearance."""
    counts = Counter(items)
    first_seen = {}
    for position, item in enumerate(items):
        first_seen.setdefault(item, position)
    return sorted(counts, key=lambda item: (-counts[item], first_seen[item]))


@register_generator(COLLABORATIVE)
class CollaborativeGenerator(SignalGenerator):
    weight = 0.8

    async def _candidates(self, session: AsyncSession, context: GeneratorContext) -> list[UUID]:
        since = datetime.now(timezone.utc) - timedelta(days=WINDOW_DAYS)
        is_recent_view = (
            UserInteraction.interaction_type == InteractionType.view.value,
            UserInteraction.created_at >= since,
            UserInteraction.product_id.isnot(None),
        )

        own = await session.execute(
            select(UserInteraction.product_id)
            .where(UserInteraction.user_id == context.user_id, *is_recent_view)
            .order_by(UserInteraction.created_at.desc())
            .limit(MAX_USER_VIEWS)
        )
        viewed_ids = list(dict.fromkeys(own.scalars().all()))
        if not viewed_ids:
            return []

        overlap_rows = await session.execute(
            select(UserInteraction.user_id)
            .where(
                UserInteraction.product_id.in_(viewed_ids),
                UserInteraction.user_id.isnot(None),
                UserInteraction.user_id != context.user_id,
                *is_recent_view,
            )
            .order_by(UserInteraction.created_at.desc())
            .limit(MAX_NEIGHBOUR_ROWS)
        )
        neighbours = top_by_count(list(overlap_rows.scalars().all()))[:TOP_NEIGHBOURS]
        if not neighbours:
            return []

        query = select(UserInteraction.product_id).where(UserInteraction.user_id.in_(neighbours), *is_recent_view)
        if context.listing_type:
            query = of_listing_type(query.join(Product, Product.id == UserInteraction.product_id), context)
        neighbour_views = await session.execute(
            query.order_by(UserInteraction.created_at.desc(), UserInteraction.id)
        )
        seen = set(viewed_ids) | set(context.exclude_product_ids)
        candidates = [pid for pid in neighbour_views.scalars().all() if pid not in seen]

        return top_by_count(candidates)[:context.limit]
