"""Score service — engagement, popularity and trending formulas for product scores."""

import math
from datetime import datetime, timezone

# Counter weights for engagement
VIEW_WEIGHT = 1
CLICK_WEIGHT = 2
LIKE_WEIGHT = 5
CONVERSION_WEIGHT = 10

# Trending decays ~10% per day since the last interaction
TRENDING_DECAY_RATE = 0.1


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(earlier: datetime | None, now: datetime) -> float:
    if earlier is None:
        return 0.0
    return max((now - as_utc(earlier)).total_seconds() / 86400, 0.0)


def engagement_score(view_count: int, click_count: int, like_count: int, conversion_count: int) -> int:
    return (
        (view_count or 0) * VIEW_WEIGHT
        + (click_count or 0) * CLICK_WEIGHT
        + (like_count or 0) * LIKE_WEIGHT
        + (conversion_count or 0) * CONVERSION_WEIGHT
    )


def popularity_score(engagement: float, created_at: datetime | None, now: datetime) -> float:
    """Engagement per day of listing age; new listings are not buried by old ones."""
    return engagement / (days_between(created_at, now) + 1)


def trending_score(engagement: float, last_interaction_at: datetime | None, now: datetime) -> float:
    return engagement * math.exp(-TRENDING_DECAY_RATE * days_between(last_interaction_at, now))
