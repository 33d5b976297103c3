import math
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from recengine.models.product_score import ProductScore
from recengine.models.recommendation_cache import RecommendationCache
from recengine.models.user_preference import UserPreference
from recengine.tasks.maintenance_tasks import clean_expired_recommendations
from recengine.tasks.profile_tasks import update_active_user_preferences, update_user_preferences
from recengine.tasks.recommendation_tasks import active_user_ids, pregenerate_for_users
from recengine.tasks.score_tasks import refresh_product_scores


def _now():
    return datetime.now(timezone.utc)


def test_refresh_product_scores(factory):
    db = factory["db"]
    scored = factory["make_product"]("Scored")
    unscored = factory["make_product"]("New listing")
    factory["make_product"]("Sold", is_active=False)
    db.add(ProductScore(
        product_id=scored.id,
        view_count=10,
        click_count=2,
        like_count=1,
        conversion_count=0,
        last_interaction_at=_now() - timedelta(days=2),
    ))
    db.commit()

    stats = refresh_product_scores()

    assert stats == {"created": 1, "updated": 2}
    db.expire_all()
    rows = {row.product_id: row for row in db.execute(select(ProductScore)).scalars()}
    assert set(rows) == {scored.id, unscored.id}
    assert rows[scored.id].popularity_score == pytest.approx(19, rel=1e-3)
    assert rows[scored.id].trending_score == pytest.approx(19 * math.exp(-0.2), rel=1e-3)
    assert rows[unscored.id].view_count == 1
    assert rows[unscored.id].trending_score == pytest.approx(1.0, rel=1e-3)


def test_update_user_preferences_upserts_profile(factory):
    db = factory["db"]
    user = factory["make_user"]()
    interact = factory["make_interaction"]
    wheels = factory["make_product"]("Carbon wheelset Zipp", category="Wheels & Tyres", price=1000, manufacturer_name="Zipp")
    frame = factory["make_product"]("Carbon frame Canyon", category="Frames", price=2000, manufacturer_name="Canyon")
    interact(user, wheels, "view", minutes_ago=3)
    interact(user, wheels, "view", minutes_ago=2)
    interact(user, frame, "click", minutes_ago=1)
    interact(user, None, "search")
    interact(user, frame, "view", minutes_ago=60 * 24 * 40)

    update_user_preferences(str(user.id))
    update_user_preferences(str(user.id))

    profiles = db.execute(select(UserPreference)).scalars().all()
    assert len(profiles) == 1
    profile = profiles[0]
    assert profile.interaction_count == 4
    assert profile.favorite_categories[0] == {"category": "Wheels & Tyres", "score": 2}
    assert profile.favorite_keywords[0] == {"keyword": "carbon", "score": 3}
    assert profile.favorite_price_range == {"min": 1000, "max": 1500}


def test_update_active_user_preferences(factory):
    interact = factory["make_interaction"]
    product = factory["make_product"]("A")
    active, idle = factory["make_user"](), factory["make_user"]()
    interact(active, product, "view")
    interact(idle, product, "view", minutes_ago=60 * 48)
    interact(None, product, "view")

    assert update_active_user_preferences() == {"updated": 1, "failed": 0}
    user_ids = factory["db"].execute(select(UserPreference.user_id)).scalars().all()
    assert user_ids == [active.id]


def test_clean_expired_recommendations(factory):
    db = factory["db"]
    user = factory["make_user"]()
    now = _now()
    for expires in (now - timedelta(minutes=1), now + timedelta(minutes=10)):
        db.add(RecommendationCache(
            user_id=user.id,
            recommendation_type="personalized",
            recommended_products=[],
            algorithm_version="v1.0",
            expires_at=expires,
        ))
    db.commit()

    assert clean_expired_recommendations() == {"deleted": 1}
    assert len(db.execute(select(RecommendationCache)).scalars().all()) == 1


def test_active_user_ids_respects_window(factory):
    db = factory["db"]
    recent, stale = factory["make_user"](), factory["make_user"]()
    factory["make_preference"](recent, last_active_at=_now() - timedelta(hours=1))
    factory["make_preference"](stale, last_active_at=_now() - timedelta(hours=30))

    assert active_user_ids(db, _now()) == [recent.id]


async def test_pregenerate_for_users_warms_cache(session_factory, factory):
    users = [factory["make_user"]() for _ in range(2)]
    factory["make_product"]("A", score=(1.0, 1.0))

    stats = await pregenerate_for_users(session_factory, [u.id for u in users])

    assert stats == {"users": 2, "refreshed": 2, "failed": 0}
    cached = factory["db"].execute(select(RecommendationCache.user_id)).scalars().all()
    assert sorted(cached, key=str) == sorted((u.id for u in users), key=str)
