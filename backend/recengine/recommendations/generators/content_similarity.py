"""Content-similarity generator — "more like what you recently viewed"."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recengine.models.product import Product
from recengine.models.product_score import ProductScore
from recengine.models.user_interaction import UserInteraction, InteractionType
from recengine.recommendations.generators.base import SignalGenerator, of_listing_type
from recengine.recommendations.generators.registry import register_generator
from recengine.recommendations.types import GeneratorContext, SIMILAR

RECENT_VIEWS = 10

# Similarity points
CATEGORY_MATCH = 3
SUBCATEGORY_MATCH = 2
SELLER_MATCH = 1
PRICE_CLOSE = 2  # within 20% of the mean viewed price
PRICE_NEAR = 1  # within 50%


def similarity_score(product, categories: set, subcategories: set, sellers: set, avg_price: float) -> int:
    score = 0
    if product.marketplace_category in categories:
        score += CATEGORY_MATCH
    if product.marketplace_subcategory in subcategories:
        score += SUBCATEGORY_MATCH
    if product.seller_id in sellers:
        score += SELLER_MATCH
    if avg_price > 0 and product.price and product.price > 0:
        price_diff = abs(product.price - avg_price) / avg_price
        if price_diff < 0.2:
            score += PRICE_CLOSE
        elif price_diff < 0.5:
            score += PRICE_NEAR
    return score


@register_generator(SIMILAR)
class ContentSimilarityGenerator(SignalGenerator):
    weight = 0.85

    async def _candidates(self, session: AsyncSession, context: GeneratorContext) -> list[UUID]:
        recent = await session.execute(
            select(UserInteraction.product_id)
            .where(
                UserInteraction.user_id == context.user_id,
                UserInteraction.interaction_type == InteractionType.view.value,
                UserInteraction.product_id.isnot(None),
            )
            .order_by(UserInteraction.created_at.desc())
            .limit(RECENT_VIEWS)
        )
        viewed_ids = list(dict.fromkeys(recent.scalars().all()))
        if not viewed_ids:
            return []

        viewed = (await session.execute(
            select(
                Product.marketplace_category,
                Product.marketplace_subcategory,
                Product.price,
                Product.seller_id,
            ).where(Product.id.in_(viewed_ids))
        )).all()
        if not viewed:
            return []

        categories = {row.marketplace_category for row in viewed if row.marketplace_category}
        subcategories = {row.marketplace_subcategory for row in viewed if row.marketplace_subcategory}
        sellers = {row.seller_id for row in viewed if row.seller_id}
        prices = [row.price for row in viewed if row.price and row.price > 0]
        avg_price = sum(prices) / len(prices) if prices else 0.0

        query = (
            select(
                Product.id,
                Product.marketplace_category,
                Product.marketplace_subcategory,
                Product.price,
                Product.seller_id,
            )
            .outerjoin(ProductScore, ProductScore.product_id == Product.id)
            .where(
                Product.is_active == True,  # noqa: E712
                Product.id.not_in(viewed_ids + list(context.exclude_product_ids)),
            )
        )
        if categories:
            query = query.where(Product.marketplace_category.in_(sorted(categories)))
        if avg_price > 0:
            query = query.where(Product.price >= avg_price * 0.5, Product.price <= avg_price * 1.5)

        popularity = func.coalesce(ProductScore.popularity_score, 0)
        candidates = (await session.execute(
            of_listing_type(query, context).order_by(popularity.desc(), Product.id).limit(context.limit)
        )).all()

        scored = [
            (row.id, similarity_score(row, categories, subcategories, sellers, avg_price))
            for row in candidates
        ]
        # sorted() is stable: equal scores keep the popularity order from the query
        scored.sort(key=lambda item: item[1], reverse=True)
        return [product_id for product_id, _ in scored]
