"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware
from sqlalchemy import func, select, text

import recengine.models  # noqa: F401
from recengine.config import get_settings
from recengine.models.base import engine, AsyncSessionLocal, Base
from recengine.models.product import Product
from recengine.models.product_score import ProductScore
from recengine.api.v1 import router as api_v1_router

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting %s...", settings.app_name)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")
    yield
    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Hybrid product recommendations for the marketplace feed",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Identity comes from the signed session cookie set at login
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key, https_only=not settings.debug)

app.include_router(api_v1_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}


async def check_recommendation_pipeline(session_factory) -> dict:
    """Counts behind the anonymous feed. No trending scores means an empty trending tier."""
    async with session_factory() as session:
        active = (await session.execute(
            select(func.count(Product.id)).where(Product.is_active == True)  # noqa: E712
        )).scalar() or 0
        scored = (await session.execute(select(func.count(ProductScore.product_id)))).scalar() or 0
        trending = (await session.execute(
            select(func.count(ProductScore.product_id)).where(ProductScore.trending_score > 0)
        )).scalar() or 0

    check = {
        "ok": trending > 0,
        "active_products": active,
        "scored_products": scored,
        "trending_products": trending,
    }
    if not trending:
        check["message"] = "No products have a trending score; feeds fall back to popularity"
    return check


@app.get("/health/detailed")
async def detailed_health_check():
    checks = {}

    # Database
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            checks["database"] = {"ok": True}
    except Exception as e:
        checks["database"] = {"ok": False, "message": str(e)}

    # Recommendation pipeline
    try:
        checks["recommendations"] = await check_recommendation_pipeline(AsyncSessionLocal)
    except Exception as e:
        checks["recommendations"] = {"ok": False, "message": str(e)}

    # Redis
    try:
        r = redis.from_url(settings.redis_url, socket_timeout=5)
        r.ping()
        checks["redis"] = {"ok": True}
    except Exception as e:
        checks["redis"] = {"ok": False, "message": str(e)}

    # Celery workers
    try:
        from recengine.tasks.celery_app import celery_app
        inspect = celery_app.control.inspect(timeout=5)
        active_workers = inspect.active()
        checks["celery_workers"] = {
            "ok": bool(active_workers),
            "workers": list(active_workers.keys()) if active_workers else [],
        }
    except Exception as e:
        checks["celery_workers"] = {"ok": False, "message": str(e)}

    all_ok = all(check.get("ok", False) for check in checks.values())
    status = "healthy" if all_ok else "degraded"

    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
