"""Import all models so metadata and relationships resolve."""

from recengine.models.product import Product, ListingType  # noqa: F401
from recengine.models.product_score import ProductScore  # noqa: F401
from recengine.models.user import User  # noqa: F401
from recengine.models.user_interaction import UserInteraction, InteractionType  # noqa: F401
from recengine.models.user_preference import UserPreference  # noqa: F401
from recengine.models.recommendation_cache import RecommendationCache  # noqa: F401
