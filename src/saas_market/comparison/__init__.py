"""Side-by-side product comparison."""

from saas_market.comparison.sources import (
    ComparisonSource,
    ComparisonSourceError,
    DatabaseComparisonSource,
    HttpComparisonSource,
)
from saas_market.comparison.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorage,
    StorageError,
)
from saas_market.comparison.store import (
    DEFAULT_STORAGE_KEY,
    MAX_COMPARISON_PRODUCTS,
    AddResult,
    ComparisonState,
    ComparisonStore,
    ProductSummary,
    normalize_product_id,
)
from saas_market.comparison.view import (
    ComparisonColumn,
    ComparisonView,
    ComparisonViewAssembler,
)

__all__ = [
    # Storage
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorage",
    "StorageError",
    # Store
    "DEFAULT_STORAGE_KEY",
    "MAX_COMPARISON_PRODUCTS",
    "AddResult",
    "ComparisonState",
    "ComparisonStore",
    "ProductSummary",
    "normalize_product_id",
    # Sources
    "ComparisonSource",
    "ComparisonSourceError",
    "DatabaseComparisonSource",
    "HttpComparisonSource",
    # View
    "ComparisonColumn",
    "ComparisonView",
    "ComparisonViewAssembler",
]
