"""Composite product scoring.

Combines the four dimension scores into one overall score:

| Dimension   | Weight |
|-------------|--------|
| Fit         | 30%    |
| Feature     | 25%    |
| Integration | 25%    |
| Review      | 20%    |

Overall Score = round(0.30*fit + 0.25*feature + 0.25*integration + 0.20*review)
"""

from typing import Mapping, Optional, Sequence

from saas_market.scoring.calculator import (
    calculate_feature_score,
    calculate_fit_score,
    calculate_integration_score,
    calculate_overall_score,
    calculate_review_score,
)
from saas_market.scoring.models import (
    BuyerProfile,
    MetricDefinition,
    MetricValue,
    ProductFeature,
    ScoreBreakdown,
    ScoringConfig,
    ScoringProduct,
)


def compute_scores(
    product: ScoringProduct,
    metric_values: Mapping[str, MetricValue],
    reviews: Sequence[float],
    features: Sequence[ProductFeature],
    buyer: Optional[BuyerProfile] = None,
    config: Optional[ScoringConfig] = None,
    definitions: Optional[Sequence[MetricDefinition]] = None,
) -> ScoreBreakdown:
    """Calculate the complete score breakdown for a product.

    This is the main entry point for scoring a product. It is a pure
    function: unset metrics, zero reviews and zero features all flow
    through as 0 factors, so it always returns integers in [0, 100].

    Args:
        product: Product to score
        metric_values: Metric values keyed by metric code
        reviews: Review ratings (1-5)
        features: Product features
        buyer: Optional viewing buyer for personalized factors
        config: Scoring configuration
        definitions: Category metric definitions, for metric coverage

    Returns:
        ScoreBreakdown with four dimension scores and the overall score
    """
    if config is None:
        config = ScoringConfig()

    fit = calculate_fit_score(metric_values, buyer)
    feature = calculate_feature_score(product, metric_values, features, definitions, config)
    integration = calculate_integration_score(product.category, metric_values, buyer)
    review = calculate_review_score(reviews, config)

    overall = calculate_overall_score(
        fit.score,
        feature.score,
        integration.score,
        review.score,
        config,
    )

    return ScoreBreakdown(
        product_id=product.id,
        fit=fit,
        feature=feature,
        integration=integration,
        review=review,
        overall_score=overall,
    )
