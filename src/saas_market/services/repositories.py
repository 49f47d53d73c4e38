"""Read-side repositories over the catalog tables.

Every method takes a list of product IDs and issues one query for the
whole list, never one per product.
"""

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from saas_market.db.models import Category, Product, ProductFeature, ProductStatus, Review
from saas_market.scoring.models import CategoryKey, ScoringProduct, parse_category
from saas_market.scoring.models import ProductFeature as ScoringFeature
from saas_market.scoring.registry import parse_uuids


@dataclass
class ProductRecord:
    """Product row with its resolved category key."""

    product: Product
    category: Optional[CategoryKey]

    @property
    def id(self) -> str:
        return str(self.product.id)

    def to_scoring(self) -> ScoringProduct:
        """Convert to the scoring input model."""
        return ScoringProduct(
            id=self.id,
            name=self.product.name,
            category=self.category,
            price_cents=self.product.price_cents,
            short_description=self.product.short_description or "",
            long_description=self.product.long_description,
            logo_url=self.product.logo_url,
            demo_visual_url=self.product.demo_visual_url,
        )


@dataclass
class RatingSummary:
    """Average rating and review count of a product."""

    average_rating: float = 0.0
    review_count: int = 0


class ProductRepository:
    """Product and feature lookups."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_products(self, product_ids: Iterable[str | uuid.UUID]) -> list[ProductRecord]:
        """Products for the given IDs, in request order. Unknown IDs are omitted."""
        ids = parse_uuids(product_ids)
        if not ids:
            return []

        result = await self.session.execute(
            select(Product, Category.key)
            .outerjoin(Category, Product.category_id == Category.id)
            .where(Product.id.in_(ids))
        )
        by_id = {
            product.id: ProductRecord(product=product, category=parse_category(key))
            for product, key in result.all()
        }
        return [by_id[product_id] for product_id in ids if product_id in by_id]

    async def get_product(self, product_id: str | uuid.UUID) -> Optional[ProductRecord]:
        """Single product, or None when unknown."""
        records = await self.get_products([product_id])
        return records[0] if records else None

    async def get_features(
        self, product_ids: Iterable[str | uuid.UUID]
    ) -> dict[str, list[ScoringFeature]]:
        """Features per product, most relevant first."""
        ids = parse_uuids(product_ids)
        features: dict[str, list[ScoringFeature]] = {str(product_id): [] for product_id in ids}
        if not ids:
            return features

        result = await self.session.execute(
            select(ProductFeature)
            .where(ProductFeature.product_id.in_(ids))
            .order_by(ProductFeature.relevance_score.desc())
        )
        for row in result.scalars().all():
            features[str(row.product_id)].append(
                ScoringFeature(
                    feature_name=row.feature_name,
                    feature_description=row.feature_description,
                    feature_category=row.feature_category,
                    relevance_score=float(row.relevance_score or 0),
                )
            )
        return features

    async def list_published_ids(self) -> list[uuid.UUID]:
        """IDs of all published products."""
        result = await self.session.execute(
            select(Product.id)
            .where(Product.status == ProductStatus.PUBLISHED)
            .order_by(Product.created_at, Product.id)
        )
        return list(result.scalars().all())


class ReviewRepository:
    """Review rating lookups."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def ratings_for(self, product_ids: Iterable[str | uuid.UUID]) -> dict[str, list[int]]:
        """Individual ratings per product."""
        ids = parse_uuids(product_ids)
        ratings: dict[str, list[int]] = {str(product_id): [] for product_id in ids}
        if not ids:
            return ratings

        result = await self.session.execute(
            select(Review.product_id, Review.rating).where(Review.product_id.in_(ids))
        )
        for product_id, rating in result.all():
            ratings[str(product_id)].append(rating)
        return ratings

    async def summaries_for(
        self, product_ids: Iterable[str | uuid.UUID]
    ) -> dict[str, RatingSummary]:
        """Average rating and count per product (zeros when unreviewed)."""
        ids = parse_uuids(product_ids)
        summaries = {str(product_id): RatingSummary() for product_id in ids}
        if not ids:
            return summaries

        result = await self.session.execute(
            select(Review.product_id, func.avg(Review.rating), func.count(Review.id))
            .where(Review.product_id.in_(ids))
            .group_by(Review.product_id)
        )
        for product_id, average, count in result.all():
            summaries[str(product_id)] = RatingSummary(
                average_rating=round(float(average or 0), 2),
                review_count=int(count),
            )
        return summaries
