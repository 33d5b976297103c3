"""Popular generator — cumulative popularity, the lowest fallback tier."""

from recengine.recommendations.generators.registry import register_generator
from recengine.recommendations.generators.trending import ScoreTierGenerator
from recengine.recommendations.types import POPULAR


@register_generator(POPULAR)
class PopularGenerator(ScoreTierGenerator):
    weight = 0.7
    score_field = "popularity_score"
