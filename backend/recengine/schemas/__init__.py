"""Pydantic schemas package."""

from recengine.schemas.recommendation import (
    RecommendationMeta,
    RecommendationResponse,
    RecommendedProduct,
    RefreshRequest,
)
from recengine.schemas.tracking import (
    TrackedInteraction,
    TrackingRequest,
    TrackingResponse,
)

__all__ = [
    # Recommendations
    "RecommendationMeta",
    "RecommendationResponse",
    "RecommendedProduct",
    "RefreshRequest",
    # Tracking
    "TrackedInteraction",
    "TrackingRequest",
    "TrackingResponse",
]
