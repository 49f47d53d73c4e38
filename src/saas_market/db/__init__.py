"""Database module."""

from saas_market.db.base import get_db
from saas_market.db.models import (
    Category,
    MetricDefinition,
    MetricType,
    Product,
    ProductFeature,
    ProductMetricValue,
    ProductScore,
    ProductStatus,
    Review,
)

__all__ = [
    "get_db",
    "Category",
    "MetricDefinition",
    "MetricType",
    "Product",
    "ProductFeature",
    "ProductMetricValue",
    "ProductScore",
    "ProductStatus",
    "Review",
]
