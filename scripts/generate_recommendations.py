"""Print the recommendation feed for a user (or an anonymous visitor).

Handy for checking what the engine serves without going through the API.
Product names are looked up after ranking, the same way the web app
enriches the id list.

Usage:
    docker compose exec backend python -m scripts.generate_recommendations
    # Personalized feed, bypassing the cache:
    docker compose exec backend python -m scripts.generate_recommendations --user <uuid> --refresh
    # Only private listings:
    docker compose exec backend python -m scripts.generate_recommendations --listing-type private_listing
"""

import argparse
import asyncio
import logging
import uuid

from sqlalchemy import select

import recengine.models  # noqa: F401
from recengine.models.base import AsyncSessionLocal, engine
from recengine.models.product import ListingType, Product
from recengine.recommendations.engine import RecommendationEngine

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


async def generate(user_id: uuid.UUID | None, limit: int, refresh: bool, listing_type: ListingType | None):
    recommender = RecommendationEngine(AsyncSessionLocal)
    try:
        result = await recommender.generate_recommendations(
            user_id=user_id,
            limit=limit,
            force_refresh=refresh,
            listing_type=listing_type,
        )

        names = {}
        if result.product_ids:
            async with AsyncSessionLocal() as session:
                rows = await session.execute(
                    select(Product.id, Product.display_name).where(Product.id.in_(result.product_ids))
                )
                names = {row.id: row.display_name for row in rows}

        print(
            f"{len(result.product_ids)} recommendations "
            f"(cache_hit={result.cache_hit}, personalized={result.personalized}, "
            f"version={result.algorithm_version})"
        )
        for rank, product_id in enumerate(result.product_ids, 1):
            print(f"{rank:3d}. {product_id}  {names.get(product_id) or ''}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show the recommendation feed for a user")
    parser.add_argument("--user", type=uuid.UUID, default=None, help="User id (omit for anonymous)")
    parser.add_argument("--limit", type=int, default=20, help="Number of products (max 100)")
    parser.add_argument("--refresh", action="store_true", help="Ignore and replace the cached feed")
    parser.add_argument(
        "--listing-type",
        choices=[t.value for t in ListingType],
        default=None,
        help="Only this listing type",
    )
    args = parser.parse_args()
    listing_type = ListingType(args.listing_type) if args.listing_type else None
    asyncio.run(generate(args.user, args.limit, args.refresh, listing_type))
