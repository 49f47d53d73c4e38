"""Product scoring module."""

from saas_market.scoring.calculator import (
    calculate_feature_score,
    calculate_fit_score,
    calculate_integration_score,
    calculate_overall_score,
    calculate_review_score,
    confidence_adjustment,
    round_half_up,
)
from saas_market.scoring.models import (
    CATEGORY_ORDER,
    BuyerProfile,
    CategoryKey,
    DimensionScore,
    MetricDataType,
    MetricDefinition,
    MetricValue,
    ProductFeature,
    ScoreBreakdown,
    ScoringConfig,
    ScoringProduct,
)
from saas_market.scoring.normalizer import MetricScale, normalize, normalize_values
from saas_market.scoring.scorer import compute_scores

__all__ = [
    # Models
    "CATEGORY_ORDER",
    "BuyerProfile",
    "CategoryKey",
    "DimensionScore",
    "MetricDataType",
    "MetricDefinition",
    "MetricValue",
    "ProductFeature",
    "ScoreBreakdown",
    "ScoringConfig",
    "ScoringProduct",
    # Normalizer
    "MetricScale",
    "normalize",
    "normalize_values",
    # Calculator
    "calculate_fit_score",
    "calculate_feature_score",
    "calculate_integration_score",
    "calculate_review_score",
    "calculate_overall_score",
    "confidence_adjustment",
    "round_half_up",
    # Scorer
    "compute_scores",
]
