"""Pydantic schemas for the recommendation feed API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class RecommendedProduct(BaseModel):
    id: UUID


class RecommendationMeta(BaseModel):
    """Feed metadata; ``refreshed_at`` is only set by the refresh endpoint."""

    total: int
    cache_hit: bool
    personalized: bool
    algorithm_version: str
    refreshed_at: datetime | None = None


class RecommendationResponse(BaseModel):
    success: bool = True
    recommendations: list[RecommendedProduct]
    meta: RecommendationMeta


class RefreshRequest(BaseModel):
    limit: int = Field(50, ge=1, le=100)
