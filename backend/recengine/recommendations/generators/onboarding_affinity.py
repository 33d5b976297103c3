"""Onboarding-affinity generator — cold-start picks from signup answers.

Users state riding styles, brands, interests and a budget when they sign up.
Products inside the budget are scored against those answers so a brand new
account gets a personal feed before it has any browsing history.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recengine.models.product import Product
from recengine.models.user import User
from recengine.recommendations.generators.base import SignalGenerator, of_listing_type
from recengine.recommendations.generators.registry import register_generator
from recengine.recommendations.types import GeneratorContext, ONBOARDING_BASED

logger = logging.getLogger(__name__)

MAX_SCORED_PRODUCTS = 500
OPEN_ENDED_MAX = 999999

BRAND_MATCH = 5
RIDING_STYLE_MATCH = 3
INTEREST_MATCH = 2
IN_BUDGET = 1

RIDING_STYLE_BIKE_TYPES = {
    "mountain": "Mountain",
    "road": "Road",
    "gravel": "Gravel",
    "track": "Track",
    "bmx": "BMX",
    "commuter": "Commuter",
}

INTEREST_CATEGORIES = {
    "complete-bikes": "Bicycles",
    "wheels": "Wheels & Tyres",
    "accessories": "Parts",
    "components": "Parts",
    "apparel": "Apparel",
    "nutrition": "Nutrition",
    "frames": "Frames",
    "groupsets": "Drivetrain",
}


def parse_budget_range(budget_range: str) -> tuple[float, float]:
    """Parse "1000-2500" or "2500+" into (min, max)."""
    value = budget_range.strip()
    if value.endswith("+"):
        return float(int(value[:-1].strip() or 0)), float(OPEN_ENDED_MAX)

    low, _, high = value.partition("-")
    low = int(low.strip()) if low.strip().isdigit() else 0
    high = int(high.strip()) if high.strip().isdigit() else OPEN_ENDED_MAX
    return float(low or 0), float(high or OPEN_ENDED_MAX)


def onboarding_match_score(product, prefs: dict, budget: tuple[float, float] | None) -> int:
    score = 0
    text = " ".join(
        part for part in (product.display_name, product.description, product.manufacturer_name) if part
    ).lower()

    for brand in prefs.get("preferred_brands") or []:
        if brand and str(brand).lower() in text:
            score += BRAND_MATCH

    for style in prefs.get("riding_styles") or []:
        bike_type = RIDING_STYLE_BIKE_TYPES.get(str(style).lower())
        if bike_type and product.bike_type == bike_type:
            score += RIDING_STYLE_MATCH

    for interest in prefs.get("interests") or []:
        category = INTEREST_CATEGORIES.get(str(interest).lower())
        if category and product.marketplace_category == category:
            score += INTEREST_MATCH

    if budget and product.price and budget[0] <= product.price <= budget[1]:
        score += IN_BUDGET

    return score


@register_generator(ONBOARDING_BASED)
class OnboardingAffinityGenerator(SignalGenerator):
    weight = 1.0

    async def _candidates(self, session: AsyncSession, context: GeneratorContext) -> list[UUID]:
        prefs = (await session.execute(
            select(User.preferences).where(User.id == context.user_id)
        )).scalar_one_or_none()
        if not prefs or not isinstance(prefs, dict):
            logger.debug("No onboarding preferences for user %s", context.user_id)
            return []

        query = select(
            Product.id,
            Product.display_name,
            Product.description,
            Product.manufacturer_name,
            Product.marketplace_category,
            Product.bike_type,
            Product.price,
        ).where(Product.is_active == True)  # noqa: E712

        budget = None
        if prefs.get("budget_range"):
            budget = parse_budget_range(str(prefs["budget_range"]))
            query = query.where(Product.price >= budget[0], Product.price <= budget[1])

        if context.exclude_product_ids:
            query = query.where(Product.id.not_in(list(context.exclude_product_ids)))

        products = (await session.execute(
            of_listing_type(query, context).order_by(Product.id).limit(MAX_SCORED_PRODUCTS)
        )).all()

        scored = [(row.id, onboarding_match_score(row, prefs, budget)) for row in products]
        scored.sort(key=lambda item: item[1], reverse=True)
        # In-budget products stay relevant even with no other match
        return [product_id for product_id, _ in scored[:context.limit]]
