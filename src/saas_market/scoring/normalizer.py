"""Metric normalization.

Converts a raw, typed metric value plus its definition into a 0-100
comparable sub-score:

    number  -> position within the metric's expected range (inverted when
               lower is better), clamped to [0, 100]
    boolean -> True = 100, False = 0
    string  -> fixed lookup table per metric, unknown strings = 0
    absent  -> 0
"""

import math
from dataclasses import dataclass
from typing import Mapping, Optional

from saas_market.scoring.models import (
    MetricDataType,
    MetricDefinition,
    MetricRawValue,
    MetricValue,
)

MIN_SCORE = 0.0
MAX_SCORE = 100.0


@dataclass(frozen=True)
class MetricScale:
    """Expected range of a numeric metric."""

    low: float
    high: float
    higher_is_better: bool = True

    def scale(self, value: float) -> float:
        """Map value into [0, 100] relative to this range."""
        if self.high == self.low:
            return MAX_SCORE if value >= self.high else MIN_SCORE
        position = (value - self.low) / (self.high - self.low)
        if not self.higher_is_better:
            position = 1.0 - position
        return clamp(position * 100)


# Expected ranges by metric code
METRIC_SCALES: dict[str, MetricScale] = {
    # Shared
    "implementation_time_days": MetricScale(0, 180, higher_is_better=False),
    "roi_percentage": MetricScale(0, 300),
    "retention_rate": MetricScale(0, 100),
    "quarter_over_quarter_change": MetricScale(-50, 50),
    # HR
    "payroll_error_rate_percentage": MetricScale(0, 5, higher_is_better=False),
    "onboarding_time_days": MetricScale(0, 30, higher_is_better=False),
    "time_to_fill_days": MetricScale(0, 90, higher_is_better=False),
    "compliance_tasks_automated_count": MetricScale(0, 50),
    "employee_record_completeness_percentage": MetricScale(0, 100),
    # Legal
    "contract_cycle_time_days": MetricScale(0, 60, higher_is_better=False),
    "redlines_per_contract_avg": MetricScale(0, 20, higher_is_better=False),
    "template_reuse_rate_percentage": MetricScale(0, 100),
    "risk_flag_detection_rate_percentage": MetricScale(0, 100),
    "version_count_avg": MetricScale(1, 15, higher_is_better=False),
    "workflow_automation_steps_count": MetricScale(0, 30),
    # Marketing
    "conversion_lift_percentage": MetricScale(0, 50),
    "lead_cost_usd": MetricScale(0, 200, higher_is_better=False),
    "attribution_accuracy_error_percentage": MetricScale(0, 30, higher_is_better=False),
    "email_deliverability_percentage": MetricScale(50, 100),
    "audience_match_rate_percentage": MetricScale(0, 100),
    "engagement_rate_percentage": MetricScale(0, 30),
    # Devtools
    "build_time_reduction_percentage": MetricScale(0, 80),
    "deployment_frequency_per_week": MetricScale(0, 50),
    "error_rate_percentage": MetricScale(0, 10, higher_is_better=False),
    "mean_time_to_recovery_hours": MetricScale(0, 48, higher_is_better=False),
}

# Fixed scores for categorical metrics, keyed by metric code
STRING_LOOKUPS: dict[str, dict[str, float]] = {
    "cloud_client_classification": {
        "cloud": 100,
        "hybrid": 75,
        "client": 40,
    },
    "support_tier": {
        "enterprise": 100,
        "premium": 80,
        "standard": 50,
        "community": 20,
    },
    "compliance_level": {
        "soc2_type2": 100,
        "soc2_type1": 80,
        "iso27001": 90,
        "gdpr": 60,
        "none": 0,
    },
}

# Generic percentage scale for unregistered metrics carrying a % unit
PERCENT_SCALE = MetricScale(0, 100)


def clamp(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    """Clamp value into [low, high]; NaN collapses to low."""
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def _normalize_number(definition: MetricDefinition, raw: MetricRawValue) -> float:
    if isinstance(raw, bool):
        return MAX_SCORE if raw else MIN_SCORE
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return MIN_SCORE
    if not math.isfinite(value):
        return MIN_SCORE

    scale = METRIC_SCALES.get(definition.code)
    if scale is None and definition.unit == "%":
        scale = PERCENT_SCALE
    if scale is None:
        return clamp(value)
    return scale.scale(value)


def _normalize_boolean(raw: MetricRawValue) -> float:
    if isinstance(raw, str):
        return MAX_SCORE if raw.strip().lower() in ("true", "yes", "1") else MIN_SCORE
    return MAX_SCORE if raw is True or raw == 1 else MIN_SCORE


def _normalize_string(definition: MetricDefinition, raw: MetricRawValue) -> float:
    text = str(raw).strip().lower()
    if not text:
        return MIN_SCORE
    lookup = STRING_LOOKUPS.get(definition.code)
    if lookup is None:
        # Free-text metric: populated counts, content is not ranked
        return MAX_SCORE
    return float(lookup.get(text, MIN_SCORE))


def normalize(definition: MetricDefinition, raw_value: MetricRawValue) -> float:
    """Normalize one metric value to a 0-100 sub-score.

    Never raises: unset, malformed and unknown values all score 0.

    Args:
        definition: Metric definition (code, data type, unit)
        raw_value: Recorded value, or None when the product has no row

    Returns:
        Sub-score in [0, 100]
    """
    if raw_value is None:
        return MIN_SCORE

    if definition.data_type == MetricDataType.NUMBER:
        return _normalize_number(definition, raw_value)
    if definition.data_type == MetricDataType.BOOLEAN:
        return _normalize_boolean(raw_value)
    if definition.data_type == MetricDataType.STRING:
        return _normalize_string(definition, raw_value)
    return MIN_SCORE


def normalize_values(
    definitions: list[MetricDefinition],
    values: Mapping[str, MetricValue],
) -> dict[str, float]:
    """Normalize a product's metric map, one entry per definition."""
    return {
        definition.code: normalize(
            definition,
            values[definition.code].value if definition.code in values else None,
        )
        for definition in definitions
    }


def metric_raw(values: Mapping[str, MetricValue], code: str) -> Optional[MetricRawValue]:
    """Raw value for a metric code, None when unset."""
    metric = values.get(code)
    return metric.value if metric is not None else None
