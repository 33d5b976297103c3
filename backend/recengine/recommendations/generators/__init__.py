"""Generator package — import all generators to trigger @register_generator decorators."""

from recengine.recommendations.generators.trending import TrendingGenerator  # noqa: F401
from recengine.recommendations.generators.popular import PopularGenerator  # noqa: F401
from recengine.recommendations.generators.category_affinity import CategoryAffinityGenerator  # noqa: F401
from recengine.recommendations.generators.content_similarity import ContentSimilarityGenerator  # noqa: F401
from recengine.recommendations.generators.collaborative import CollaborativeGenerator  # noqa: F401
from recengine.recommendations.generators.keyword_affinity import KeywordAffinityGenerator  # noqa: F401
from recengine.recommendations.generators.onboarding_affinity import OnboardingAffinityGenerator  # noqa: F401
