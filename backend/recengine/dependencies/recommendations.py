"""Recommendation engine dependency."""

from functools import lru_cache

from recengine.models.base import get_session_factory
from recengine.recommendations.engine import RecommendationEngine


@lru_cache
def get_recommendation_engine() -> RecommendationEngine:
    return RecommendationEngine(get_session_factory())
