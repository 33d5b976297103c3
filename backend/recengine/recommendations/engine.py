"""Hybrid recommendation engine — the public entry point for feed requests.

Flow for one request:

1. identified users: serve the newest unexpired cache entry unless a
   refresh is forced
2. otherwise plan generators from identity and history depth, run them
   concurrently and aggregate the results
3. if no personalized signal produced anything, serve the trending-then-
   popular fallback chain instead
4. cache non-empty results for identified users (anonymous feeds are cheap
   and have no key to cache under)

A listing type narrows every generator query, so a filtered feed is ranked
from matching products only and is cached under its own key. Identified
feeds are built and cached at the maximum limit and sliced per request, so
a small first request never truncates a later, larger one.

Only a non-positive limit is rejected. No internal failure reaches the
caller; the worst case is the same trending/popular list an anonymous
visitor would get.
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recengine.config import Settings, get_settings
from recengine.models.product import ListingType
from recengine.models.user_interaction import UserInteraction
from recengine.recommendations.aggregator import aggregate
from recengine.recommendations.cache import PERSONALIZED, RecommendationCacheManager
from recengine.recommendations.generators.base import SignalGenerator
from recengine.recommendations.generators.registry import build_generators
from recengine.recommendations.orchestrator import GeneratorOrchestrator
from recengine.recommendations.planner import plan_generators
from recengine.recommendations.types import (
    NON_PERSONALIZED_ALGORITHMS,
    ONBOARDING_BASED,
    POPULAR,
    TRENDING,
    GeneratorResult,
    RecommendationResult,
)

logger = logging.getLogger(__name__)


class RecommendationEngine:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
        generators: dict[str, SignalGenerator] | None = None,
        cache: RecommendationCacheManager | None = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory

        if generators is None:
            # Import generators package to trigger @register_generator decorators
            import recengine.recommendations.generators  # noqa: F401
            generators = build_generators(session_factory)
        self.generators = generators

        self.orchestrator = GeneratorOrchestrator(
            generators,
            timeout_seconds=self.settings.generator_timeout_seconds,
            candidate_limits={ONBOARDING_BASED: self.settings.onboarding_candidate_limit},
            default_candidate_limit=self.settings.generator_candidate_limit,
        )
        self.cache = cache or RecommendationCacheManager(session_factory, self.settings.algorithm_version)

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.recommendation_cache_ttl_minutes)

    def _clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.settings.default_recommendation_limit
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        return min(limit, self.settings.max_recommendation_limit)

    async def generate_recommendations(
        self,
        user_id: UUID | None = None,
        limit: int | None = None,
        force_refresh: bool = False,
        listing_type: ListingType | None = None,
    ) -> RecommendationResult:
        """Ordered product ids for a feed, plus cache/personalization metadata."""
        limit = self._clamp_limit(limit)
        listing = ListingType(listing_type).value if listing_type is not None else None
        product_ids: list[UUID] = []
        cache_hit = False

        if user_id:
            key = cache_key(listing)
            if not force_refresh:
                cached = await self.cache.get(user_id, key)
                if cached:
                    product_ids = cached[:limit]
                    cache_hit = True
                    logger.info("Cache hit for user %s (%s): %d products", user_id, key, len(product_ids))

            if not cache_hit:
                if force_refresh:
                    removed = await self.cache.invalidate(user_id, key)
                    logger.info("Invalidated %d cache entries for user %s (%s)", removed, user_id, key)
                full = await self._personalized(user_id, self.settings.max_recommendation_limit, listing)
                if full:
                    await self.cache.put(user_id, full, self.cache_ttl, key)
                product_ids = full[:limit]
        else:
            product_ids = await self.fallback_chain(limit, listing)

        return RecommendationResult(
            product_ids=product_ids,
            cache_hit=cache_hit,
            personalized=user_id is not None,
            algorithm_version=self.settings.algorithm_version,
        )

    async def refresh(self, user_id: UUID, limit: int | None = None) -> RecommendationResult:
        """Drop the user's cached feed and compute a new one."""
        return await self.generate_recommendations(user_id, limit=limit, force_refresh=True)

    async def fallback_chain(self, limit: int, listing_type: str | None = None) -> list[UUID]:
        """Top trending products, padded with popular ones when trending runs short."""
        trending, = await self.orchestrator.run((TRENDING,), None, limit=limit, listing_type=listing_type)
        product_ids = list(trending.product_ids[:limit])
        if len(product_ids) >= limit:
            return product_ids

        popular, = await self.orchestrator.run((POPULAR,), None, limit=limit, listing_type=listing_type)
        seen = set(product_ids)
        for product_id in popular.product_ids:
            if len(product_ids) >= limit:
                break
            if product_id not in seen:
                seen.add(product_id)
                product_ids.append(product_id)

        logger.info("Fallback chain: %d trending, %d total", len(trending.product_ids), len(product_ids))
        return product_ids

    async def _personalized(self, user_id: UUID, limit: int, listing_type: str | None) -> list[UUID]:
        try:
            interaction_count = await self._interaction_count(user_id)
            names = plan_generators(user_id, interaction_count)
            results = await self.orchestrator.run(names, user_id, listing_type=listing_type)
        except Exception:
            logger.exception("Hybrid generation failed for user %s, using fallback chain", user_id)
            return await self.fallback_chain(limit, listing_type)

        if not has_personal_signal(results):
            logger.info("No personalized signals for user %s, using fallback chain", user_id)
            return await self.fallback_chain(limit, listing_type)

        product_ids = aggregate(results, limit)
        logger.info("Hybrid recommendations for user %s: %d products", user_id, len(product_ids))
        return product_ids

    async def _interaction_count(self, user_id: UUID) -> int:
        """Rows in the interaction log for the user. Unknown counts as cold start."""
        try:
            async with self.session_factory() as session:
                count = (await session.execute(
                    select(func.count(UserInteraction.id)).where(UserInteraction.user_id == user_id)
                )).scalar()
        except Exception:
            logger.exception("Could not count interactions for user %s", user_id)
            return 0
        return count or 0


def cache_key(listing_type: str | None) -> str:
    """Cache entries for filtered feeds live beside the unfiltered one."""
    return f"{PERSONALIZED}:{listing_type}" if listing_type else PERSONALIZED


def has_personal_signal(results: list[GeneratorResult]) -> bool:
    return any(
        not result.is_empty
        for result in results
        if result.algorithm_name not in NON_PERSONALIZED_ALGORITHMS
    )
