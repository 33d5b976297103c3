"""Keyword-affinity generator — products mentioning the user's favourite keywords."""

import re
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from recengine.models.product import Product
from recengine.models.product_score import ProductScore
from recengine.models.user_preference import UserPreference
from recengine.recommendations.generators.base import SignalGenerator, exclude, of_listing_type, ranked_by_score
from recengine.recommendations.generators.registry import register_generator
from recengine.recommendations.types import GeneratorContext, KEYWORD_BASED

TOP_KEYWORDS = 5
# Fetch extra rows so the in-memory keyword scoring has room to reorder
OVERFETCH = 3
KEYWORD_MATCH_FACTOR = 10


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")


def keyword_match_score(text: str, keywords: list[dict]) -> float:
    """Sum of keyword weight times occurrences in the lowercased text."""
    score = 0.0
    for entry in keywords:
        keyword = str(entry["keyword"]).lower()
        occurrences = len(re.findall(re.escape(keyword), text))
        if occurrences:
            score += (entry["score"] or 1) * occurrences
    return score


@register_generator(KEYWORD_BASED)
class KeywordAffinityGenerator(SignalGenerator):
    weight = 0.95

    async def _candidates(self, session: AsyncSession, context: GeneratorContext) -> list[UUID]:
        profile = (await session.execute(
            select(UserPreference).where(UserPreference.user_id == context.user_id)
        )).scalar_one_or_none()
        if not profile:
            return []

        keywords = ranked_by_score(profile.favorite_keywords, "keyword")[:TOP_KEYWORDS]
        if not keywords:
            return []

        conditions = []
        for entry in keywords:
            pattern = f"%{_escape_like(str(entry['keyword']))}%"
            conditions.append(Product.display_name.ilike(pattern, escape="\\"))
            conditions.append(Product.description.ilike(pattern, escape="\\"))

        query = (
            select(
                Product.id,
                Product.display_name,
                Product.description,
                func.coalesce(ProductScore.popularity_score, 0).label("popularity"),
            )
            .outerjoin(ProductScore, ProductScore.product_id == Product.id)
            .where(Product.is_active == True, or_(*conditions))  # noqa: E712
        )
        rows = (await session.execute(
            of_listing_type(query, context).order_by(Product.id).limit(context.limit * OVERFETCH)
        )).all()

        scored = []
        for row in rows:
            text = f"{row.display_name or ''} {row.description or ''}".lower()
            match = keyword_match_score(text, keywords)
            if match > 0:
                scored.append((row.id, match * KEYWORD_MATCH_FACTOR + float(row.popularity or 0)))

        scored.sort(key=lambda item: item[1], reverse=True)
        ranked = [product_id for product_id, _ in scored]
        return exclude(ranked, context.exclude_product_ids)[:context.limit]
