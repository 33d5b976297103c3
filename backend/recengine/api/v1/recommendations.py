"""Recommendation feed API endpoints."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from recengine.dependencies.auth import get_current_user_id, require_user_id
from recengine.dependencies.recommendations import get_recommendation_engine
from recengine.models.product import ListingType
from recengine.recommendations.engine import RecommendationEngine
from recengine.recommendations.types import RecommendationResult
from recengine.schemas.recommendation import (
    RecommendationMeta,
    RecommendationResponse,
    RecommendedProduct,
    RefreshRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def _to_response(result: RecommendationResult, refreshed_at: datetime | None = None) -> RecommendationResponse:
    return RecommendationResponse(
        recommendations=[RecommendedProduct(id=pid) for pid in result.product_ids],
        meta=RecommendationMeta(
            total=len(result.product_ids),
            cache_hit=result.cache_hit,
            personalized=result.personalized,
            algorithm_version=result.algorithm_version,
            refreshed_at=refreshed_at,
        ),
    )


@router.get("/for-you", response_model=RecommendationResponse)
async def for_you(
    limit: int = Query(50, ge=1, le=100),
    refresh: bool = Query(False, description="Bypass the cached feed"),
    listing_type: ListingType | None = Query(None, description="Only store inventory or private listings"),
    user_id: UUID | None = Depends(get_current_user_id),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """Personalized feed for the session user, trending/popular for anonymous visitors."""
    result = await engine.generate_recommendations(
        user_id=user_id,
        limit=limit,
        force_refresh=refresh,
        listing_type=listing_type,
    )
    logger.info(
        "Served %d recommendations to %s (cache_hit=%s)",
        len(result.product_ids), user_id or "anonymous", result.cache_hit,
    )
    return _to_response(result)


@router.post("/for-you/refresh", response_model=RecommendationResponse)
async def refresh_for_you(
    body: RefreshRequest | None = None,
    user_id: UUID = Depends(require_user_id),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """Drop the cached feed and return a freshly computed one."""
    limit = body.limit if body else None
    result = await engine.refresh(user_id, limit=limit)
    return _to_response(result, refreshed_at=datetime.now(timezone.utc))
