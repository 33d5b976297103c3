import asyncio
import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone

import pytest

TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "recengine_test.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{TEST_DB_PATH}")
os.environ.setdefault("SECRET_KEY", "test-secret")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from recengine import models
from recengine.config import get_settings
from recengine.models.base import Base, SyncSessionLocal, sync_engine
from recengine.recommendations.generators.base import SignalGenerator
from recengine.recommendations.types import GeneratorResult


@pytest.fixture(scope="session", autouse=True)
def _ensure_schema():
    Base.metadata.drop_all(bind=sync_engine)
    Base.metadata.create_all(bind=sync_engine)
    yield
    Base.metadata.drop_all(bind=sync_engine)


@pytest.fixture()
def db_session():
    db = SyncSessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
        yield db
    finally:
        db.close()


@pytest.fixture()
async def session_factory(db_session):
    engine = create_async_engine(get_settings().database_url, poolclass=NullPool)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


def _now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture()
def factory(db_session):
    """Row builders that commit immediately so async sessions can see them."""

    def make_user(preferences: dict | None = None) -> models.User:
        user = models.User(email=f"{uuid.uuid4().hex[:10]}@example.com", preferences=preferences)
        db_session.add(user)
        db_session.commit()
        return user

    def make_product(
        display_name: str = "Product",
        category: str | None = "Bicycles",
        price: float | None = 1000.0,
        score: tuple[float, float] | None = None,
        **fields,
    ) -> models.Product:
        """``score`` is ``(trending, popularity)``; omitted means no score row."""
        product = models.Product(
            seller_id=fields.pop("seller_id", uuid.uuid4()),
            display_name=display_name,
            marketplace_category=category,
            price=price,
            **fields,
        )
        db_session.add(product)
        db_session.flush()
        if score is not None:
            trending, popularity = score
            db_session.add(models.ProductScore(
                product_id=product.id,
                trending_score=trending,
                popularity_score=popularity,
            ))
        db_session.commit()
        return product

    def make_interaction(
        user: models.User | None,
        product: models.Product | None,
        interaction_type: str = "view",
        minutes_ago: float = 0,
    ) -> models.UserInteraction:
        interaction = models.UserInteraction(
            user_id=user.id if user else None,
            session_id=uuid.uuid4(),
            product_id=product.id if product else None,
            interaction_type=interaction_type,
            created_at=_now() - timedelta(minutes=minutes_ago),
        )
        db_session.add(interaction)
        db_session.commit()
        return interaction

    def make_preference(user: models.User, **fields) -> models.UserPreference:
        preference = models.UserPreference(user_id=user.id, **fields)
        db_session.add(preference)
        db_session.commit()
        return preference

    return {
        "db": db_session,
        "make_user": make_user,
        "make_product": make_product,
        "make_interaction": make_interaction,
        "make_preference": make_preference,
    }


class StubGenerator(SignalGenerator):
    """Generator with canned output that records every call it receives."""

    def __init__(self, name: str, weight: float = 1.0, product_ids=(), error: Exception | None = None, delay: float = 0):
        super().__init__(session_factory=None)
        self.name = name
        self.weight = weight
        self.product_ids = tuple(product_ids)
        self.error = error
        self.delay = delay
        self.calls = []

    async def _candidates(self, session, context):
        return list(self.product_ids)

    async def generate(self, context):
        self.calls.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        if not self.product_ids:
            return GeneratorResult.empty(self.name)
        return GeneratorResult(self.product_ids[:context.limit], self.weight, self.name)


@pytest.fixture()
def stub_generator():
    return StubGenerator
