"""Business logic services."""

from saas_market.services.repositories import (
    ProductRecord,
    ProductRepository,
    RatingSummary,
    ReviewRepository,
)
from saas_market.services.scores import (
    EnrichedProduct,
    ProductNotFoundError,
    ProductScoreService,
)

__all__ = [
    # Repositories
    "ProductRecord",
    "ProductRepository",
    "RatingSummary",
    "ReviewRepository",
    # Scores
    "EnrichedProduct",
    "ProductNotFoundError",
    "ProductScoreService",
]
