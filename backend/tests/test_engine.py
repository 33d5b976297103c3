import uuid

import pytest
from sqlalchemy import select

from recengine.config import Settings
from recengine.models.product import ListingType
from recengine.models.recommendation_cache import RecommendationCache
from recengine.recommendations import engine as engine_module
from recengine.recommendations.engine import RecommendationEngine
from recengine.recommendations.types import (
    CATEGORY_BASED,
    COLLABORATIVE,
    KEYWORD_BASED,
    ONBOARDING_BASED,
    POPULAR,
    SIMILAR,
    TRENDING,
)

PERSONAL = (ONBOARDING_BASED, CATEGORY_BASED, SIMILAR, COLLABORATIVE, KEYWORD_BASED)


def _ids(n):
    return [uuid.uuid4() for _ in range(n)]


@pytest.fixture()
def stub_engine(session_factory, stub_generator):
    """Engine over stub generators; pass per-name product ids or errors as keyword args."""

    def build(**overrides):
        generators = {}
        for name in PERSONAL + (TRENDING, POPULAR):
            spec = overrides.get(name, {})
            generators[name] = stub_generator(name, spec.get("weight", 1.0), spec.get("ids", ()), spec.get("error"))
        settings = Settings(generator_timeout_seconds=1.0)
        return RecommendationEngine(session_factory, settings=settings, generators=generators), generators

    return build


def _warm_user(factory):
    user = factory["make_user"]()
    factory["make_interaction"](user, factory["make_product"]("Seen"), "view")
    return user


# --- Anonymous requests ---

async def test_anonymous_gets_top_trending(session_factory, factory):
    make = factory["make_product"]
    products = [make(f"P{i}", score=(float(i + 1), 1.0)) for i in range(12)]

    result = await RecommendationEngine(session_factory).generate_recommendations(None, limit=10)

    expected = [p.id for p in reversed(products)][:10]
    assert result.product_ids == expected
    assert result.personalized is False
    assert result.cache_hit is False
    assert result.algorithm_version == "v1.0"


async def test_anonymous_trending_is_padded_with_popular(session_factory, factory):
    make = factory["make_product"]
    trending = [make(f"T{i}", score=(10.0 - i, 50.0 + i)) for i in range(4)]
    popular_only = [make(f"P{i}", score=(0.0, 40.0 - i)) for i in range(8)]

    result = await RecommendationEngine(session_factory).generate_recommendations(None, limit=10)

    expected = [p.id for p in trending] + [p.id for p in popular_only[:6]]
    assert result.product_ids == expected
    assert len(set(result.product_ids)) == 10


async def test_anonymous_results_are_not_cached(session_factory, factory):
    factory["make_product"]("A", score=(1.0, 1.0))

    recommender = RecommendationEngine(session_factory)
    await recommender.generate_recommendations(None)

    assert factory["db"].execute(select(RecommendationCache)).first() is None


async def test_empty_catalog_returns_empty_list(session_factory, factory):
    user = factory["make_user"]()
    recommender = RecommendationEngine(session_factory)

    anonymous = await recommender.generate_recommendations(None)
    identified = await recommender.generate_recommendations(user.id)

    assert anonymous.product_ids == []
    assert identified.product_ids == []
    assert identified.personalized is True


# --- Planning and call counts ---

async def test_cold_start_user_skips_history_generators(stub_engine, factory):
    user = factory["make_user"]()
    recommender, generators = stub_engine(**{
        ONBOARDING_BASED: {"ids": _ids(3)},
        TRENDING: {"ids": _ids(3)},
        POPULAR: {"ids": _ids(3)},
    })

    result = await recommender.generate_recommendations(user.id, limit=5)

    assert len(generators[ONBOARDING_BASED].calls) == 1
    for name in (CATEGORY_BASED, SIMILAR, COLLABORATIVE, KEYWORD_BASED):
        assert generators[name].calls == []
    assert len(generators[TRENDING].calls) == 1
    assert len(generators[POPULAR].calls) == 1
    assert len(result.product_ids) == 5


async def test_warm_user_runs_every_generator_once(stub_engine, factory):
    user = _warm_user(factory)
    recommender, generators = stub_engine(**{name: {"ids": _ids(2)} for name in PERSONAL + (TRENDING, POPULAR)})

    await recommender.generate_recommendations(user.id)

    for name, generator in generators.items():
        assert len(generator.calls) == 1, name
    assert generators[ONBOARDING_BASED].calls[0].limit == 40
    assert generators[SIMILAR].calls[0].limit == 30


# --- Fallback and failure isolation ---

async def test_empty_personal_signals_fall_back_to_trending_then_popular(stub_engine, factory):
    user = _warm_user(factory)
    trending, popular = _ids(5), _ids(6)
    recommender, _ = stub_engine(**{
        TRENDING: {"ids": trending},
        POPULAR: {"ids": trending[:2] + popular},
    })

    result = await recommender.generate_recommendations(user.id, limit=8)

    assert result.product_ids == trending + popular[:3]
    assert result.product_ids == await recommender.fallback_chain(8)
    assert result.personalized is True


async def test_failing_generator_does_not_break_the_feed(stub_engine, factory):
    user = _warm_user(factory)
    broken_ids = _ids(3)
    onboarding, trending = _ids(2), _ids(2)
    recommender, _ = stub_engine(**{
        ONBOARDING_BASED: {"ids": onboarding},
        SIMILAR: {"ids": broken_ids, "error": RuntimeError("query failed")},
        TRENDING: {"ids": trending},
    })

    result = await recommender.generate_recommendations(user.id)

    assert set(result.product_ids) == set(onboarding + trending)
    assert not set(broken_ids) & set(result.product_ids)


async def test_unexpected_planning_error_degrades_to_fallback(stub_engine, factory, monkeypatch):
    user = _warm_user(factory)
    trending = _ids(4)
    recommender, _ = stub_engine(**{ONBOARDING_BASED: {"ids": _ids(4)}, TRENDING: {"ids": trending}})

    def explode(*args):
        raise RuntimeError("planner bug")

    monkeypatch.setattr(engine_module, "plan_generators", explode)

    result = await recommender.generate_recommendations(user.id)

    assert result.product_ids == trending


async def test_result_size_is_bounded_and_unique(stub_engine, factory):
    user = _warm_user(factory)
    recommender, _ = stub_engine(**{name: {"ids": _ids(30)} for name in PERSONAL + (TRENDING, POPULAR)})

    result = await recommender.generate_recommendations(user.id, limit=20)

    assert len(result.product_ids) == 20
    assert len(set(result.product_ids)) == 20


async def test_shared_candidates_rank_first(stub_engine, factory):
    user = _warm_user(factory)
    shared = uuid.uuid4()
    recommender, _ = stub_engine(**{
        ONBOARDING_BASED: {"ids": _ids(1) + [shared] + _ids(2)},
        CATEGORY_BASED: {"ids": _ids(1) + [shared] + _ids(2)},
        SIMILAR: {"ids": _ids(1) + [shared] + _ids(2)},
    })

    result = await recommender.generate_recommendations(user.id, limit=5)

    assert result.product_ids[0] == shared


# --- Limits ---

async def test_limit_is_validated_and_capped(stub_engine, factory):
    recommender, _ = stub_engine(**{TRENDING: {"ids": _ids(150)}})

    with pytest.raises(ValueError):
        await recommender.generate_recommendations(None, limit=0)

    capped = await recommender.generate_recommendations(None, limit=500)
    default = await recommender.generate_recommendations(None)

    assert len(capped.product_ids) == 100
    assert len(default.product_ids) == 50


# --- Caching ---

async def test_second_request_is_served_from_cache(session_factory, factory):
    user = factory["make_user"]()
    make = factory["make_product"]
    for i in range(5):
        make(f"P{i}", score=(float(i + 1), 1.0))
    recommender = RecommendationEngine(session_factory)

    first = await recommender.generate_recommendations(user.id, limit=5)
    second = await recommender.generate_recommendations(user.id, limit=5)

    assert first.cache_hit is False
    assert second.cache_hit is True
    assert second.product_ids == first.product_ids


async def test_force_refresh_replaces_the_cache_entry(session_factory, factory):
    user = factory["make_user"]()
    db = factory["db"]
    factory["make_product"]("A", score=(1.0, 1.0))
    recommender = RecommendationEngine(session_factory)

    await recommender.generate_recommendations(user.id)
    before = db.execute(select(RecommendationCache.created_at)).scalar_one()

    refreshed = await recommender.refresh(user.id)
    rows = db.execute(select(RecommendationCache.created_at)).scalars().all()

    assert refreshed.cache_hit is False
    assert len(rows) == 1
    assert rows[0] > before


async def test_refresh_flag_bypasses_cache(session_factory, factory):
    user = factory["make_user"]()
    factory["make_product"]("A", score=(1.0, 1.0))
    recommender = RecommendationEngine(session_factory)

    await recommender.generate_recommendations(user.id)
    result = await recommender.generate_recommendations(user.id, force_refresh=True)

    assert result.cache_hit is False


# --- Listing type filter ---

async def test_listing_type_is_ranked_before_the_limit(session_factory, factory):
    make = factory["make_product"]
    for i in range(12):
        make(f"Shop {i}", score=(100.0 - i, 1.0))
    private = [
        make(f"Used {i}", score=(5.0 - i, 1.0), listing_type=ListingType.private_listing.value)
        for i in range(3)
    ]

    result = await RecommendationEngine(session_factory).generate_recommendations(
        None, limit=10, listing_type=ListingType.private_listing,
    )

    assert result.product_ids == [p.id for p in private]


async def test_filtered_feed_is_cached_under_its_own_key(session_factory, factory):
    user = factory["make_user"]()
    make = factory["make_product"]
    shop = make("Shop", score=(9.0, 1.0))
    used = make("Used", score=(1.0, 1.0), listing_type=ListingType.private_listing.value)
    recommender = RecommendationEngine(session_factory)

    everything = await recommender.generate_recommendations(user.id)
    filtered = await recommender.generate_recommendations(user.id, listing_type=ListingType.private_listing)
    filtered_again = await recommender.generate_recommendations(user.id, listing_type=ListingType.private_listing)

    assert everything.product_ids == [shop.id, used.id]
    assert filtered.cache_hit is False
    assert filtered.product_ids == [used.id]
    assert filtered_again.cache_hit is True
    assert filtered_again.product_ids == [used.id]
    keys = factory["db"].execute(select(RecommendationCache.recommendation_type)).scalars().all()
    assert sorted(keys) == ["personalized", "personalized:private_listing"]


# --- Cache sizing ---

async def test_small_first_request_does_not_truncate_later_larger_one(session_factory, factory):
    user = factory["make_user"]()
    make = factory["make_product"]
    products = [make(f"P{i}", score=(float(30 - i), 1.0)) for i in range(25)]
    recommender = RecommendationEngine(session_factory)

    small = await recommender.generate_recommendations(user.id, limit=5)
    large = await recommender.generate_recommendations(user.id, limit=20)

    assert small.product_ids == [p.id for p in products[:5]]
    assert large.cache_hit is True
    assert large.product_ids == [p.id for p in products[:20]]
