"""Product Score Service - loads scoring inputs, calculates and caches scores.

The product_scores table is a cache: the source of truth is the metric
values, reviews and features, and scores are recalculated whenever those
change.

Usage:
    service = ProductScoreService(db_session)
    breakdown = await service.calculate_scores(product_id)
    products = await service.fetch_enriched(["id-1", "id-2"])
"""

import logging
import uuid
from typing import Any, Iterable, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from saas_market.db.models import ProductScore, ProductStatus
from saas_market.scoring.models import BuyerProfile, ScoreBreakdown, ScoringConfig
from saas_market.scoring.registry import CategoryMetricRegistry, parse_uuids
from saas_market.scoring.scorer import compute_scores
from saas_market.services.repositories import (
    ProductRepository,
    RatingSummary,
    ReviewRepository,
)

logger = logging.getLogger(__name__)


class ProductNotFoundError(Exception):
    """Raised when a product ID does not match any product."""

    def __init__(self, product_id: str | uuid.UUID):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = str(product_id)


class EnrichedProduct(BaseModel):
    """Product fields plus category key, rating summary and cached scores."""

    id: uuid.UUID
    seller_id: uuid.UUID
    name: str
    slug: Optional[str] = None
    short_description: str = ""
    long_description: Optional[str] = None
    logo_url: Optional[str] = None
    demo_visual_url: Optional[str] = None
    price_cents: int
    status: ProductStatus

    category: Optional[str] = None
    average_rating: float = 0.0
    review_count: int = 0

    fit_score: int = 0
    feature_score: int = 0
    integration_score: int = 0
    review_score: int = 0
    overall_score: int = 0
    score_breakdown: Optional[dict[str, Any]] = None

    def summary(self) -> dict[str, Any]:
        """Card-sized summary as kept in the comparison state."""
        return {
            "id": str(self.id),
            "name": self.name,
            "price_cents": self.price_cents,
            "category": self.category,
            "average_rating": self.average_rating,
            "review_count": self.review_count,
            "logo_url": self.logo_url,
            "short_description": self.short_description,
        }


class ProductScoreService:
    """Calculate, persist and read product scores."""

    def __init__(self, session: AsyncSession, config: ScoringConfig | None = None):
        self.session = session
        self.config = config or ScoringConfig()
        self.products = ProductRepository(session)
        self.reviews = ReviewRepository(session)
        self.registry = CategoryMetricRegistry(session)

    async def calculate_scores(
        self,
        product_id: str | uuid.UUID,
        buyer: BuyerProfile | None = None,
    ) -> ScoreBreakdown:
        """Calculate all scores for a product.

        Buyer-independent scores are written to the score cache; scores
        personalized for a buyer are returned without being persisted.

        Args:
            product_id: Product to score
            buyer: Optional viewing buyer profile

        Returns:
            ScoreBreakdown

        Raises:
            ProductNotFoundError: If the product does not exist
        """
        record = await self.products.get_product(product_id)
        if record is None:
            raise ProductNotFoundError(product_id)

        definitions = await self.registry.definitions_for(record.category)
        metric_values = await self.registry.values_for_product(record.id, definitions)
        ratings = (await self.reviews.ratings_for([record.id]))[record.id]
        features = (await self.products.get_features([record.id]))[record.id]

        breakdown = compute_scores(
            record.to_scoring(),
            metric_values,
            ratings,
            features,
            buyer=buyer,
            config=self.config,
            definitions=definitions,
        )

        if buyer is None:
            await self.save_scores(record.product.id, breakdown)

        return breakdown

    async def save_scores(self, product_id: uuid.UUID, breakdown: ScoreBreakdown) -> ProductScore:
        """Upsert the cached scores for a product."""
        result = await self.session.execute(
            select(ProductScore).where(ProductScore.product_id == product_id)
        )
        cached = result.scalar_one_or_none()
        if cached is None:
            cached = ProductScore(product_id=product_id)
            self.session.add(cached)

        cached.fit_score = breakdown.fit_score
        cached.feature_score = breakdown.feature_score
        cached.integration_score = breakdown.integration_score
        cached.review_score = breakdown.review_score
        cached.overall_score = breakdown.overall_score
        cached.score_breakdown = breakdown.breakdown_dict()

        await self.session.flush()
        return cached

    async def recalculate_all(self, batch_size: int = 50) -> int:
        """Recalculate scores for every published product.

        Useful after a change to the scoring formula. Failures are logged
        and skipped so one bad product does not stop the batch.

        Returns:
            Number of products processed
        """
        product_ids = await self.products.list_published_ids()
        processed = 0

        for start in range(0, len(product_ids), batch_size):
            batch = product_ids[start : start + batch_size]
            for product_id in batch:
                try:
                    async with self.session.begin_nested():
                        await self.calculate_scores(product_id)
                except Exception as e:
                    logger.error(f"Failed to calculate scores for product {product_id}: {e}")
            processed += len(batch)
            logger.info(f"Processed {processed} of {len(product_ids)} products")

        return processed

    async def get_scores(self, product_id: str | uuid.UUID) -> Optional[ProductScore]:
        """Cached scores for a product, None when never calculated."""
        ids = parse_uuids([product_id])
        if not ids:
            return None
        result = await self.session.execute(
            select(ProductScore).where(ProductScore.product_id == ids[0])
        )
        return result.scalar_one_or_none()

    async def fetch_enriched(self, product_ids: Iterable[str | uuid.UUID]) -> list[EnrichedProduct]:
        """Products with category, rating summary and cached scores.

        Unknown or malformed IDs are omitted. Products never scored carry
        zero scores and no breakdown.
        """
        records = await self.products.get_products(product_ids)
        if not records:
            return []

        ids = [record.product.id for record in records]
        summaries = await self.reviews.summaries_for(ids)
        result = await self.session.execute(
            select(ProductScore).where(ProductScore.product_id.in_(ids))
        )
        scores = {str(score.product_id): score for score in result.scalars().all()}

        enriched = []
        for record in records:
            product = record.product
            summary = summaries.get(record.id, RatingSummary())
            score = scores.get(record.id)
            enriched.append(
                EnrichedProduct(
                    id=product.id,
                    seller_id=product.seller_id,
                    name=product.name,
                    slug=product.slug,
                    short_description=product.short_description or "",
                    long_description=product.long_description,
                    logo_url=product.logo_url,
                    demo_visual_url=product.demo_visual_url,
                    price_cents=product.price_cents,
                    status=product.status,
                    category=record.category.value if record.category else None,
                    average_rating=summary.average_rating,
                    review_count=summary.review_count,
                    fit_score=score.fit_score if score else 0,
                    feature_score=score.feature_score if score else 0,
                    integration_score=score.integration_score if score else 0,
                    review_score=score.review_score if score else 0,
                    overall_score=score.overall_score if score else 0,
                    score_breakdown=score.score_breakdown if score else None,
                )
            )
        return enriched
