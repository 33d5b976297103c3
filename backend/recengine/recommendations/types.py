"""Value types shared by the recommendation pipeline."""

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class GeneratorContext:
    """Per-request inputs handed to every signal generator."""

    user_id: UUID | None
    limit: int
    exclude_product_ids: frozenset[UUID] = field(default_factory=frozenset)
    category_filter: str | None = None
    listing_type: str | None = None


@dataclass(frozen=True)
class GeneratorResult:
    """Ranked candidates from one generator. Index in product_ids is rank."""

    product_ids: tuple[UUID, ...]
    weight: float
    algorithm_name: str

    @classmethod
    def empty(cls, algorithm_name: str) -> "GeneratorResult":
        return cls(product_ids=(), weight=0.0, algorithm_name=algorithm_name)

    @property
    def is_empty(self) -> bool:
        return not self.product_ids


@dataclass(frozen=True)
class RecommendationResult:
    """Engine response: ordered product ids plus request metadata."""

    product_ids: list[UUID]
    cache_hit: bool
    personalized: bool
    algorithm_version: str


# Algorithm names, as recorded in aggregated sources
TRENDING = "trending"
POPULAR = "popular"
CATEGORY_BASED = "category_based"
SIMILAR = "similar"
COLLABORATIVE = "collaborative"
KEYWORD_BASED = "keyword_based"
ONBOARDING_BASED = "onboarding_based"

NON_PERSONALIZED_ALGORITHMS = frozenset({TRENDING, POPULAR})
