"""API v1 router aggregation."""

from fastapi import APIRouter

from recengine.api.v1.recommendations import router as recommendations_router
from recengine.api.v1.tracking import router as tracking_router

router = APIRouter(prefix="/api/v1")

router.include_router(recommendations_router)
router.include_router(tracking_router)
