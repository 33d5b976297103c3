"""Preference service — derives a user's affinity profile from recent interactions."""

import re
from collections import Counter

from recengine.models.product import Product
from recengine.models.user_preference import DEFAULT_PRICE_RANGE

TOP_AFFINITIES = 10
TOP_KEYWORDS = 30
MIN_KEYWORD_LENGTH = 4
MIN_KEYWORD_OCCURRENCES = 2

# Interactions whose product titles feed keyword extraction
KEYWORD_INTERACTIONS = {"view", "click", "like"}

STOP_WORDS = {
    "with", "from", "this", "that", "have", "been",
    "your", "more", "will", "bike", "product", "item",
    "sale", "good", "great", "best", "new", "used",
}

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9\s]")


def percentile(values: list[float], fraction: float) -> float | None:
    """Continuous percentile with linear interpolation between closest ranks."""
    if not values:
        return None
    ordered = sorted(values)
    position = fraction * (len(ordered) - 1)
    lower = int(position)
    upper = min(lower + 1, len(ordered) - 1)
    return ordered[lower] + (ordered[upper] - ordered[lower]) * (position - lower)


def price_range(products: list[Product]) -> dict:
    """Interquartile price band of the products a user engaged with."""
    prices = [p.price for p in products if p.price and p.price > 0]
    if not prices:
        return dict(DEFAULT_PRICE_RANGE)
    return {"min": percentile(prices, 0.25), "max": percentile(prices, 0.75)}


def extract_keywords(text: str | None) -> list[str]:
    words = _NON_ALNUM.sub("", text or "").lower().split()
    return [w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOP_WORDS]


def _top(counter: Counter, key: str, limit: int) -> list[dict]:
    return [{key: value, "score": count} for value, count in counter.most_common(limit)]


def derive_preferences(interactions: list[tuple[str, Product]], interaction_count: int) -> dict:
    """Build the preference profile fields from ``(interaction_type, product)`` pairs.

    ``interactions`` covers product interactions inside the preference
    window; ``interaction_count`` is every interaction in that window,
    searches included.
    """
    categories: Counter = Counter()
    brands: Counter = Counter()
    stores: Counter = Counter()
    keywords: Counter = Counter()

    for interaction_type, product in interactions:
        if product.marketplace_category:
            categories[product.marketplace_category] += 1
        if product.manufacturer_name:
            brands[product.manufacturer_name] += 1
        if product.seller_id:
            stores[str(product.seller_id)] += 1
        if interaction_type in KEYWORD_INTERACTIONS:
            keywords.update(extract_keywords(product.display_name or product.description))

    frequent_keywords = Counter({k: n for k, n in keywords.items() if n >= MIN_KEYWORD_OCCURRENCES})

    return {
        "favorite_categories": _top(categories, "category", TOP_AFFINITIES),
        "favorite_brands": _top(brands, "brand", TOP_AFFINITIES),
        "favorite_stores": _top(stores, "store_id", TOP_AFFINITIES),
        "favorite_keywords": _top(frequent_keywords, "keyword", TOP_KEYWORDS),
        "favorite_price_range": price_range([product for _, product in interactions]),
        "interaction_count": interaction_count,
    }
