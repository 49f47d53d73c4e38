"""Dimension score calculations.

Every dimension is a weighted average of named 0-100 factors:

    Fit (30%)          implementation_time, deployment_model, complexity,
                       buyer_match (only with a buyer profile)
    Feature (25%)      completeness, description_quality, feature_count,
                       high_value_features
    Integration (25%)  deployment_type, category_ecosystem, api_availability,
                       buyer_compatibility (only with a buyer profile)
    Review (20%)       average_rating (confidence adjusted), review_count

A factor whose input is missing contributes 0; optional buyer factors only
join the weighting when a BuyerProfile is passed.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Sequence

from saas_market.scoring.models import (
    BuyerProfile,
    CategoryKey,
    DimensionScore,
    MetricDefinition,
    MetricValue,
    ProductFeature,
    ScoringConfig,
    ScoringProduct,
)
from saas_market.scoring.normalizer import clamp, metric_raw, normalize

# Factor weights per dimension
FIT_WEIGHTS: dict[str, float] = {
    "implementation_time": 0.40,
    "deployment_model": 0.30,
    "complexity": 0.30,
}
FIT_BUYER_WEIGHT = 0.20

FEATURE_WEIGHTS: dict[str, float] = {
    "completeness": 0.35,
    "description_quality": 0.20,
    "feature_count": 0.25,
    "high_value_features": 0.20,
}

INTEGRATION_WEIGHTS: dict[str, float] = {
    "deployment_type": 0.35,
    "category_ecosystem": 0.25,
    "api_availability": 0.40,
}
INTEGRATION_BUYER_WEIGHT = 0.20

REVIEW_WEIGHTS: dict[str, float] = {
    "average_rating": 0.80,
    "review_count": 0.20,
}

# Integration friendliness of each deployment model
DEPLOYMENT_TYPE_SCORES: dict[str, float] = {
    "cloud": 100,
    "hybrid": 70,
    "client": 30,
}

# Maturity of the third-party integration ecosystem per category
CATEGORY_ECOSYSTEM_SCORES: dict[CategoryKey, float] = {
    CategoryKey.DEVTOOLS: 100,
    CategoryKey.HR: 70,
    CategoryKey.MARKETING: 60,
    CategoryKey.LEGAL: 40,
}

# Each access level (e.g. "read,write,admin") adds configuration work
COMPLEXITY_PENALTY_PER_LEVEL = 15

SMALL_COMPANY_SIZE = 50
LARGE_COMPANY_SIZE = 500
FAST_IMPLEMENTATION_DAYS = 14
SLOW_IMPLEMENTATION_DAYS = 30

MIN_RATING = 1.0
MAX_RATING = 5.0


def round_half_up(value: float | Decimal) -> int:
    """Round to the nearest integer, halves away from zero (66.5 -> 67)."""
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_score(value: float) -> int:
    """Clamp and round a factor or dimension value to an int in [0, 100]."""
    return round_half_up(clamp(value))


def weighted_average(factors: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """Weighted average over the factors named in weights (missing = 0)."""
    total_weight = sum(weights.values())
    if total_weight <= 0:
        return 0.0
    total = sum(clamp(factors.get(name, 0.0)) * weight for name, weight in weights.items())
    return total / total_weight


def _metric(values: Mapping[str, MetricValue], code: str) -> float:
    """Normalized score of one metric, built from its value metadata."""
    metric = values.get(code)
    if metric is None:
        return 0.0
    definition = MetricDefinition(
        id=code,
        code=code,
        label=metric.label,
        unit=metric.unit,
        data_type=metric.data_type,
    )
    return normalize(definition, metric.value)


def _number(values: Mapping[str, MetricValue], code: str) -> Optional[float]:
    value = metric_raw(values, code)
    if value is None or isinstance(value, (bool, str)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _text(values: Mapping[str, MetricValue], code: str) -> Optional[str]:
    value = metric_raw(values, code)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip().lower()


def _access_levels(values: Mapping[str, MetricValue]) -> list[str]:
    access_depth = _text(values, "access_depth")
    if access_depth is None:
        return []
    return [level.strip() for level in access_depth.split(",") if level.strip()]


def _dimension(factors: dict[str, float], weights: dict[str, float]) -> DimensionScore:
    rounded = {name: float(to_score(value)) for name, value in factors.items()}
    return DimensionScore(
        score=to_score(weighted_average(rounded, weights)),
        factors=rounded,
        weights=dict(weights),
    )


# --- Fit ---


def calculate_fit_score(
    metric_values: Mapping[str, MetricValue],
    buyer: Optional[BuyerProfile] = None,
) -> DimensionScore:
    """Calculate fit score from implementation effort and deployment model.

    Args:
        metric_values: Product metric values keyed by metric code
        buyer: Optional buyer profile for the buyer_match factor

    Returns:
        Fit DimensionScore (0-100)
    """
    factors: dict[str, float] = {
        "implementation_time": _metric(metric_values, "implementation_time_days"),
        "deployment_model": _metric(metric_values, "cloud_client_classification"),
        "complexity": 0.0,
    }
    weights = dict(FIT_WEIGHTS)

    levels = _access_levels(metric_values)
    if levels:
        factors["complexity"] = 100 - len(levels) * COMPLEXITY_PENALTY_PER_LEVEL

    if buyer is not None and buyer.company_size is not None:
        weights["buyer_match"] = FIT_BUYER_WEIGHT
        factors["buyer_match"] = _buyer_match(
            buyer.company_size, _number(metric_values, "implementation_time_days")
        )

    return _dimension(factors, weights)


def _buyer_match(company_size: int, implementation_days: Optional[float]) -> float:
    """Small companies want fast rollouts; large ones tolerate long ones."""
    if implementation_days is None:
        return 0.0
    if company_size < SMALL_COMPANY_SIZE:
        return 100.0 if implementation_days < FAST_IMPLEMENTATION_DAYS else 40.0
    if company_size > LARGE_COMPANY_SIZE:
        return 100.0 if implementation_days > SLOW_IMPLEMENTATION_DAYS else 80.0
    return 70.0 if implementation_days <= SLOW_IMPLEMENTATION_DAYS else 50.0


# --- Feature ---


def _completeness(
    product: ScoringProduct,
    metric_values: Mapping[str, MetricValue],
    definitions: Optional[Sequence[MetricDefinition]],
) -> float:
    profile_fields = [
        product.short_description,
        product.long_description,
        product.logo_url,
        product.demo_visual_url,
    ]
    profile = sum(1 for field in profile_fields if field and field.strip()) / len(profile_fields)

    populated = {code for code, metric in metric_values.items() if metric.value is not None}
    if definitions:
        coverage = len(populated & {d.code for d in definitions}) / len(definitions)
    elif metric_values:
        coverage = len(populated) / len(metric_values)
    else:
        coverage = 0.0

    return 100 * (0.6 * profile + 0.4 * coverage)


def _description_quality(description: Optional[str], word_target: int) -> float:
    """80 points for length, 20 for structure (paragraphs or bullet lists)."""
    if not description or not description.strip():
        return 0.0
    words = len(description.split())
    score = min(words / word_target, 1.0) * 80

    lines = [line.strip() for line in description.splitlines()]
    has_paragraphs = "\n\n" in description.strip()
    has_bullets = sum(1 for line in lines if line[:1] in ("-", "*", "•")) >= 2
    if has_paragraphs or has_bullets:
        score += 20
    return score


def calculate_feature_score(
    product: ScoringProduct,
    metric_values: Mapping[str, MetricValue],
    features: Sequence[ProductFeature],
    definitions: Optional[Sequence[MetricDefinition]] = None,
    config: Optional[ScoringConfig] = None,
) -> DimensionScore:
    """Calculate feature score from listing completeness and capability richness.

    Args:
        product: Product listing fields
        metric_values: Product metric values keyed by metric code
        features: Product features
        definitions: Category metric definitions (for metric coverage)
        config: Scoring configuration

    Returns:
        Feature DimensionScore (0-100)
    """
    if config is None:
        config = ScoringConfig()

    high_value = sum(1 for f in features if f.relevance_score > config.high_value_relevance)
    factors = {
        "completeness": _completeness(product, metric_values, definitions),
        "description_quality": _description_quality(
            product.long_description, config.description_word_target
        ),
        "feature_count": min(len(features) / config.feature_count_saturation, 1.0) * 100,
        "high_value_features": min(high_value / config.high_value_saturation, 1.0) * 100,
    }
    return _dimension(factors, FEATURE_WEIGHTS)


# --- Integration ---


def calculate_integration_score(
    category: Optional[CategoryKey],
    metric_values: Mapping[str, MetricValue],
    buyer: Optional[BuyerProfile] = None,
) -> DimensionScore:
    """Calculate integration score from deployment, ecosystem and API access.

    Args:
        category: Product category key (None scores 0 for the ecosystem)
        metric_values: Product metric values keyed by metric code
        buyer: Optional buyer profile for the buyer_compatibility factor

    Returns:
        Integration DimensionScore (0-100)
    """
    deployment = _text(metric_values, "cloud_client_classification")

    api_flag = metric_raw(metric_values, "api_available")
    if api_flag is not None:
        api_available = _metric(metric_values, "api_available") > 0
    else:
        api_available = any("api" in level for level in _access_levels(metric_values))

    factors: dict[str, float] = {
        "deployment_type": DEPLOYMENT_TYPE_SCORES.get(deployment or "", 0.0),
        "category_ecosystem": CATEGORY_ECOSYSTEM_SCORES.get(category, 0.0) if category else 0.0,
        "api_availability": 100.0 if api_available else 0.0,
    }
    weights = dict(INTEGRATION_WEIGHTS)

    if buyer is not None:
        weights["buyer_compatibility"] = INTEGRATION_BUYER_WEIGHT
        interests = {interest.strip().lower() for interest in buyer.interests}
        factors["buyer_compatibility"] = (
            100.0 if category is not None and category.value in interests else 0.0
        )

    return _dimension(factors, weights)


# --- Review ---


def confidence_adjustment(review_count: int, config: Optional[ScoringConfig] = None) -> float:
    """Share of the observed rating trusted over the neutral prior.

    Bayesian weight n / (n + prior_weight): 1 review -> 0.17, 20 -> 0.8,
    200 -> 0.98 with the default prior of 5 pseudo-reviews.
    """
    if config is None:
        config = ScoringConfig()
    if review_count <= 0:
        return 0.0
    return review_count / (review_count + config.prior_weight)


def calculate_review_score(
    ratings: Sequence[float],
    config: Optional[ScoringConfig] = None,
) -> DimensionScore:
    """Calculate review score from buyer ratings.

    The average rating is pulled toward the neutral prior when the sample
    is small, so one 5-star review does not outrank hundreds of 4-star ones.

    Args:
        ratings: Individual ratings (1-5 scale)
        config: Scoring configuration

    Returns:
        Review DimensionScore (0-100); 0 when there are no reviews
    """
    if config is None:
        config = ScoringConfig()

    valid = [
        min(MAX_RATING, max(MIN_RATING, float(r)))
        for r in ratings
        if r is not None and math.isfinite(float(r))
    ]
    count = len(valid)
    weights = dict(REVIEW_WEIGHTS)

    if count == 0:
        return DimensionScore(
            score=0,
            factors={"average_rating": 0.0, "review_count": 0.0, "confidence_adjustment": 0.0},
            weights=weights,
        )

    average = sum(valid) / count
    confidence = confidence_adjustment(count, config)
    adjusted = confidence * average + (1 - confidence) * config.neutral_rating

    factors = {
        "average_rating": (adjusted - MIN_RATING) / (MAX_RATING - MIN_RATING) * 100,
        "review_count": min(count / config.review_count_saturation, 1.0) * 100,
    }
    dimension = _dimension(factors, weights)
    dimension.factors["confidence_adjustment"] = round(confidence, 4)
    return dimension


# --- Overall ---


def calculate_overall_score(
    fit: int,
    feature: int,
    integration: int,
    review: int,
    config: Optional[ScoringConfig] = None,
) -> int:
    """Overall = 0.30*fit + 0.25*feature + 0.25*integration + 0.20*review.

    Computed in decimal so halves round up exactly (66.5 -> 67).
    """
    if config is None:
        config = ScoringConfig()

    overall = (
        Decimal(str(config.fit_weight)) * fit
        + Decimal(str(config.feature_weight)) * feature
        + Decimal(str(config.integration_weight)) * integration
        + Decimal(str(config.review_weight)) * review
    )
    return max(0, min(100, round_half_up(overall)))
