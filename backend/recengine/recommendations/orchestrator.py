"""Orchestrator — fan planned generators out concurrently and wait for all."""

import asyncio
import logging
from uuid import UUID

from recengine.recommendations.generators.base import SignalGenerator
from recengine.recommendations.types import GeneratorContext, GeneratorResult

logger = logging.getLogger(__name__)


class GeneratorOrchestrator:
    """Runs a set of generators for one request.

    Every call gets its own timeout. A timeout, a missing generator or any
    error that escapes a generator becomes an empty result, so the gather
    barrier always yields one result per planned name.
    """

    def __init__(
        self,
        generators: dict[str, SignalGenerator],
        timeout_seconds: float,
        candidate_limits: dict[str, int] | None = None,
        default_candidate_limit: int = 30,
    ):
        self.generators = generators
        self.timeout_seconds = timeout_seconds
        self.candidate_limits = candidate_limits or {}
        self.default_candidate_limit = default_candidate_limit

    async def run(
        self,
        names: tuple[str, ...],
        user_id: UUID | None,
        limit: int | None = None,
        listing_type: str | None = None,
    ) -> list[GeneratorResult]:
        """One result per name, in plan order. ``limit`` overrides the candidate limits."""
        logger.info("Running %d generators for user %s: %s", len(names), user_id or "anonymous", ", ".join(names))
        results = await asyncio.gather(*(self._run_one(name, user_id, limit, listing_type) for name in names))

        for result in results:
            logger.debug("[%s] %d products, weight %.2f", result.algorithm_name, len(result.product_ids), result.weight)
        return list(results)

    async def _run_one(
        self, name: str, user_id: UUID | None, limit: int | None, listing_type: str | None
    ) -> GeneratorResult:
        generator = self.generators.get(name)
        if generator is None:
            logger.warning("No generator registered for %s", name)
            return GeneratorResult.empty(name)

        context = GeneratorContext(
            user_id=user_id,
            limit=limit or self.candidate_limits.get(name, self.default_candidate_limit),
            listing_type=listing_type,
        )
        try:
            return await asyncio.wait_for(generator.generate(context), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("[%s] Timed out after %.1fs for user %s", name, self.timeout_seconds, user_id)
        except Exception:
            logger.exception("[%s] Unexpected generator error for user %s", name, user_id)
        return GeneratorResult.empty(name)
