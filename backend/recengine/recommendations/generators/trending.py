"""Trending generator — recent engagement velocity, same for every user."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recengine.models.product import Product
from recengine.models.product_score import ProductScore
from recengine.recommendations.generators.base import SignalGenerator, exclude, of_listing_type
from recengine.recommendations.generators.registry import register_generator
from recengine.recommendations.types import GeneratorContext, TRENDING


class ScoreTierGenerator(SignalGenerator):
    """Top products by one precomputed ``product_scores`` column.

    Only rows with a strictly positive score qualify. A listing type is part
    of the query, so the top-N is drawn from matching products only. The
    category filter and the exclusion set narrow the fetched top-N; they do
    not backfill it.
    """

    score_field: str = ""

    async def _candidates(self, session: AsyncSession, context: GeneratorContext) -> list[UUID]:
        column = getattr(ProductScore, self.score_field)
        query = select(ProductScore.product_id).where(column > 0)
        if context.listing_type:
            query = of_listing_type(query.join(Product, Product.id == ProductScore.product_id), context)
        result = await session.execute(
            query.order_by(column.desc(), ProductScore.product_id).limit(context.limit)
        )
        product_ids = list(result.scalars().all())

        if context.category_filter and product_ids:
            product_ids = await self._in_category(session, product_ids, context.category_filter)

        return exclude(product_ids, context.exclude_product_ids)

    @staticmethod
    async def _in_category(session: AsyncSession, product_ids: list[UUID], category: str) -> list[UUID]:
        result = await session.execute(
            select(Product.id).where(
                Product.id.in_(product_ids),
                Product.marketplace_category == category,
                Product.is_active == True,  # noqa: E712
            )
        )
        allowed = set(result.scalars().all())
        return [pid for pid in product_ids if pid in allowed]


@register_generator(TRENDING)
class TrendingGenerator(ScoreTierGenerator):
    weight = 1.0
    score_field = "trending_score"
