"""Base signal generator abstract class."""

import logging
from abc import ABC, abstractmethod
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recengine.models.product import Product
from recengine.recommendations.types import GeneratorContext, GeneratorResult

logger = logging.getLogger(__name__)


class SignalGenerator(ABC):
    """Abstract base class for all recommendation signal generators.

    Subclasses set ``name`` and ``weight`` and implement:
        _candidates(session, context) -> list[UUID]  — ranked product ids

    ``generate`` never raises: any failure inside ``_candidates`` is logged
    and reported as an empty result with zero weight, so one broken signal
    cannot take down a feed request.
    """

    name: str = ""
    weight: float = 0.0

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @abstractmethod
    async def _candidates(self, session: AsyncSession, context: GeneratorContext) -> list[UUID]:
        """Return ranked candidate product ids for the context."""
        ...

    async def generate(self, context: GeneratorContext) -> GeneratorResult:
        try:
            async with self.session_factory() as session:
                product_ids = await self._candidates(session, context)
        except Exception:
            logger.exception("[%s] Generator failed for user %s", self.name, context.user_id)
            return GeneratorResult.empty(self.name)

        if not product_ids:
            logger.debug("[%s] No candidates for user %s", self.name, context.user_id)
            return GeneratorResult.empty(self.name)

        logger.debug("[%s] %d candidates for user %s", self.name, len(product_ids), context.user_id)
        return GeneratorResult(
            product_ids=tuple(product_ids),
            weight=self.weight,
            algorithm_name=self.name,
        )


def exclude(product_ids: list[UUID], excluded) -> list[UUID]:
    """Drop excluded ids while keeping rank order."""
    if not excluded:
        return list(product_ids)
    return [pid for pid in product_ids if pid not in excluded]


def ranked_by_score(entries, key: str) -> list[dict]:
    """Sort ``[{key: ..., "score": n}, ...]`` by score desc, skipping malformed rows."""
    cleaned = []
    for entry in entries or []:
        if not isinstance(entry, dict) or not entry.get(key):
            continue
        try:
            score = float(entry.get("score") or 0)
        except (TypeError, ValueError):
            continue
        cleaned.append({key: entry[key], "score": max(score, 0.0)})
    return sorted(cleaned, key=lambda e: e["score"], reverse=True)


def of_listing_type(query, context: GeneratorContext):
    """Narrow a query over ``products`` to the requested listing type, if any."""
    if context.listing_type:
        query = query.where(Product.listing_type == context.listing_type)
    return query
