"""Generator planner — which signals to run for a request.

The choice is a lookup in a small decision table keyed by who is asking
and how much history they have, so it can be tested without a database.
"""

import enum
from uuid import UUID

from recengine.recommendations.types import (
    CATEGORY_BASED,
    COLLABORATIVE,
    KEYWORD_BASED,
    ONBOARDING_BASED,
    POPULAR,
    SIMILAR,
    TRENDING,
)


class IdentityState(str, enum.Enum):
    anonymous = "anonymous"
    identified = "identified"


class HistoryDepth(str, enum.Enum):
    cold = "cold"  # no interactions yet
    warm = "warm"


FLOOR = (TRENDING, POPULAR)

GENERATOR_PLAN: dict[tuple[IdentityState, HistoryDepth], tuple[str, ...]] = {
    (IdentityState.anonymous, HistoryDepth.cold): FLOOR,
    (IdentityState.anonymous, HistoryDepth.warm): FLOOR,
    (IdentityState.identified, HistoryDepth.cold): (ONBOARDING_BASED, *FLOOR),
    (IdentityState.identified, HistoryDepth.warm): (
        ONBOARDING_BASED,
        CATEGORY_BASED,
        SIMILAR,
        COLLABORATIVE,
        KEYWORD_BASED,
        *FLOOR,
    ),
}


def classify(user_id: UUID | None, interaction_count: int) -> tuple[IdentityState, HistoryDepth]:
    identity = IdentityState.identified if user_id else IdentityState.anonymous
    depth = HistoryDepth.warm if interaction_count > 0 else HistoryDepth.cold
    return identity, depth


def plan_generators(user_id: UUID | None, interaction_count: int) -> tuple[str, ...]:
    """Ordered algorithm names to run for this caller."""
    return GENERATOR_PLAN[classify(user_id, interaction_count)]
