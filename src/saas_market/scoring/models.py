"""Data models for product scoring."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CategoryKey(str, Enum):
    """Stable category keys. Lookups never use the display name."""

    HR = "hr"
    LEGAL = "legal"
    MARKETING = "marketing"
    DEVTOOLS = "devtools"


# Fixed order used when the comparison view needs a fallback category
CATEGORY_ORDER: tuple[CategoryKey, ...] = (
    CategoryKey.HR,
    CategoryKey.LEGAL,
    CategoryKey.MARKETING,
    CategoryKey.DEVTOOLS,
)


def parse_category(value: Any) -> Optional[CategoryKey]:
    """Resolve a raw category value to a CategoryKey, or None."""
    if isinstance(value, CategoryKey):
        return value
    if not isinstance(value, str):
        return None
    try:
        return CategoryKey(value.strip().lower())
    except ValueError:
        return None


class MetricDataType(str, Enum):
    """Storage type of a metric value."""

    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"


MetricRawValue = Union[float, int, bool, str, None]


class MetricDefinition(BaseModel):
    """Category-scoped schema entry describing one measurable attribute."""

    id: str = Field(..., description="Metric definition identifier")
    code: str = Field(..., description="Stable code, unique within a category")
    label: str = Field(..., description="Human readable label")
    data_type: MetricDataType = Field(..., description="number, boolean or string")
    unit: Optional[str] = Field(None, description="Display unit (%, days, USD...)")
    description: Optional[str] = None
    category: Optional[CategoryKey] = None
    is_filterable: bool = True
    is_qualitative: bool = False
    sort_order: Optional[int] = None

    model_config = {"frozen": True}


class MetricValue(BaseModel):
    """Recorded value of one metric for one product, with display metadata."""

    model_config = ConfigDict(populate_by_name=True)

    value: MetricRawValue = None
    label: str
    unit: Optional[str] = None
    data_type: MetricDataType = Field(..., alias="dataType")


class ProductFeature(BaseModel):
    """A product capability listed by the seller."""

    feature_name: str
    feature_description: Optional[str] = None
    feature_category: Optional[str] = None
    relevance_score: float = Field(50, ge=0, le=100)


class BuyerProfile(BaseModel):
    """Viewing buyer's context for the optional personalization factors."""

    company_size: Optional[int] = Field(None, ge=0, description="Number of employees")
    industry: Optional[str] = None
    interests: list[str] = Field(default_factory=list, description="Category keys of interest")


class ScoringProduct(BaseModel):
    """Input product data for scoring."""

    id: str = Field(..., description="Unique product identifier")
    name: str = Field(..., description="Product name")
    category: Optional[CategoryKey] = Field(None, description="Resolved category key")
    price_cents: int = Field(0, ge=0, description="Price in minor currency units")
    short_description: str = ""
    long_description: Optional[str] = None
    logo_url: Optional[str] = None
    demo_visual_url: Optional[str] = None


class ScoringConfig(BaseModel):
    """Configuration for scoring calculations."""

    # Overall weights (must sum to 1.0)
    fit_weight: float = Field(0.30, description="Weight of the fit dimension")
    feature_weight: float = Field(0.25, description="Weight of the feature dimension")
    integration_weight: float = Field(0.25, description="Weight of the integration dimension")
    review_weight: float = Field(0.20, description="Weight of the review dimension")

    # Review confidence curve (Bayesian average toward a neutral prior)
    neutral_rating: float = Field(3.0, ge=1, le=5, description="Prior rating for few reviews")
    prior_weight: float = Field(
        5.0, gt=0, description="Pseudo-review count backing the neutral prior"
    )
    review_count_saturation: int = Field(50, gt=0, description="Reviews for full count credit")

    # Feature saturation
    feature_count_saturation: int = Field(20, gt=0, description="Features for full count credit")
    high_value_relevance: float = Field(80, description="Relevance above which a feature counts")
    high_value_saturation: int = Field(5, gt=0, description="High value features for full credit")
    description_word_target: int = Field(300, gt=0, description="Words for full length credit")


class DimensionScore(BaseModel):
    """One dimension score with its named factors and their weights."""

    score: int = Field(..., ge=0, le=100)
    factors: dict[str, float] = Field(default_factory=dict)
    weights: dict[str, float] = Field(default_factory=dict)


class ScoreBreakdown(BaseModel):
    """Complete derived score for a product."""

    product_id: str
    fit: DimensionScore
    feature: DimensionScore
    integration: DimensionScore
    review: DimensionScore
    overall_score: int = Field(..., ge=0, le=100)

    @property
    def fit_score(self) -> int:
        return self.fit.score

    @property
    def feature_score(self) -> int:
        return self.feature.score

    @property
    def integration_score(self) -> int:
        return self.integration.score

    @property
    def review_score(self) -> int:
        return self.review.score

    def breakdown_dict(self) -> dict[str, Any]:
        """Breakdown as stored in the score cache (no product id, no overall)."""
        return self.model_dump(include={"fit", "feature", "integration", "review"})
