"""Score aggregator — merge generator outputs into one ranked list."""

from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID

from recengine.recommendations.types import GeneratorResult

# Last rank in a list keeps 10% of the generator weight
POSITION_DECAY = 0.9


@dataclass
class ScoredCandidate:
    score: float = 0.0
    sources: set[str] = field(default_factory=set)


def position_score(index: int, length: int) -> float:
    """Linear rank discount: 1.0 at rank 0, falling to 0.1 at the last rank."""
    return 1.0 - (index / length) * POSITION_DECAY


def accumulate(results: Iterable[GeneratorResult]) -> dict[UUID, ScoredCandidate]:
    """Sum weighted position scores per product across all results.

    A product surfaced by several generators collects every contribution,
    so corroborated candidates outrank single-source ones.
    """
    candidates: dict[UUID, ScoredCandidate] = {}
    for result in results:
        length = len(result.product_ids)
        for index, product_id in enumerate(result.product_ids):
            contribution = result.weight * position_score(index, length)
            candidate = candidates.setdefault(product_id, ScoredCandidate())
            candidate.score += contribution
            candidate.sources.add(result.algorithm_name)
    return candidates


def rank(candidates: dict[UUID, ScoredCandidate], limit: int) -> list[UUID]:
    """Order by score desc, then product id, and keep the top ``limit``."""
    ordered = sorted(candidates.items(), key=lambda item: (-item[1].score, str(item[0])))
    return [product_id for product_id, _ in ordered[:limit]]


def aggregate(results: Iterable[GeneratorResult], limit: int) -> list[UUID]:
    return rank(accumulate(results), limit)
