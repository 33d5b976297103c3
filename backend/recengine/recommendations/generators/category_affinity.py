"""Category-affinity generator — popular products in the user's top categories."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recengine.models.product import Product
from recengine.models.product_score import ProductScore
from recengine.models.user_preference import UserPreference
from recengine.recommendations.generators.base import SignalGenerator, of_listing_type, ranked_by_score
from recengine.recommendations.generators.registry import register_generator
from recengine.recommendations.generators.trending import TrendingGenerator
from recengine.recommendations.types import GeneratorContext, CATEGORY_BASED

TOP_CATEGORIES = 3
# Stated price preferences are loose; widen the band 30% on each side
PRICE_BAND_LOW = 0.7
PRICE_BAND_HIGH = 1.3


@register_generator(CATEGORY_BASED)
class CategoryAffinityGenerator(SignalGenerator):
    weight = 0.9

    async def _candidates(self, session: AsyncSession, context: GeneratorContext) -> list[UUID]:
        profile = (await session.execute(
            select(UserPreference).where(UserPreference.user_id == context.user_id)
        )).scalar_one_or_none()

        top_categories = []
        if profile:
            top_categories = [
                entry["category"]
                for entry in ranked_by_score(profile.favorite_categories, "category")[:TOP_CATEGORIES]
            ]

        if not top_categories:
            # No usable profile yet: borrow the trending list
            return await TrendingGenerator(self.session_factory)._candidates(session, context)

        popularity = func.coalesce(ProductScore.popularity_score, 0)
        query = (
            select(Product.id)
            .outerjoin(ProductScore, ProductScore.product_id == Product.id)
            .where(
                Product.is_active == True,  # noqa: E712
                Product.marketplace_category.in_(top_categories),
            )
        )

        price_range = profile.favorite_price_range or {}
        if price_range.get("min") is not None and price_range.get("max") is not None:
            query = query.where(
                Product.price >= float(price_range["min"]) * PRICE_BAND_LOW,
                Product.price <= float(price_range["max"]) * PRICE_BAND_HIGH,
            )

        if context.exclude_product_ids:
            query = query.where(Product.id.not_in(list(context.exclude_product_ids)))

        result = await session.execute(
            of_listing_type(query, context).order_by(popularity.desc(), Product.id).limit(context.limit)
        )
        return list(result.scalars().all())
