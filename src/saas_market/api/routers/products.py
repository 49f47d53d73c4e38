"""Product API endpoints.

Endpoints:
- GET /products/with-scores - enriched products with cached scores
- GET /products/metrics - metric definitions and values for a category
- GET /products/{id}/score - cached score for a product
- POST /products/{id}/rescore - recalculate scores for a product
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from saas_market.db.base import get_db
from saas_market.scoring.models import BuyerProfile
from saas_market.scoring.registry import CategoryMetricRegistry, CategoryMetrics
from saas_market.services.scores import (
    EnrichedProduct,
    ProductNotFoundError,
    ProductScoreService,
)

router = APIRouter(prefix="/products", tags=["products"])


class EnrichedProductListResponse(BaseModel):
    """Response for the enriched product batch lookup."""

    products: list[EnrichedProduct]


class ProductScoreResponse(BaseModel):
    """Score of one product with its per-dimension breakdown."""

    product_id: UUID
    fit_score: int
    feature_score: int
    integration_score: int
    review_score: int
    overall_score: int
    score_breakdown: dict[str, Any] | None
    personalized: bool = False
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


def split_ids(value: str) -> list[str]:
    """Split a comma separated ID list, dropping blanks."""
    return [part.strip() for part in value.split(",") if part.strip()]


@router.get("/with-scores", response_model=EnrichedProductListResponse)
async def get_products_with_scores(
    product_ids: str = Query("", alias="productIds", description="Comma separated product IDs"),
    db: AsyncSession = Depends(get_db),
) -> EnrichedProductListResponse:
    """Get products with category, rating summary and cached scores.

    Unknown or malformed IDs are omitted from the response.
    """
    service = ProductScoreService(db)
    products = await service.fetch_enriched(split_ids(product_ids))
    return EnrichedProductListResponse(products=products)


@router.get("/metrics", response_model=CategoryMetrics)
async def get_product_metrics(
    category: str = Query(..., description="Category key (hr, legal, marketing, devtools)"),
    product_ids: str = Query("", alias="productIds", description="Comma separated product IDs"),
    db: AsyncSession = Depends(get_db),
) -> CategoryMetrics:
    """Get a category's metric definitions plus values for the given products.

    Unknown categories and categories without definitions yield empty results.
    """
    registry = CategoryMetricRegistry(db)
    return await registry.category_metrics(category, split_ids(product_ids))


@router.get("/{product_id}/score", response_model=ProductScoreResponse)
async def get_product_score(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ProductScoreResponse:
    """Get the cached score for a product."""
    service = ProductScoreService(db)
    score = await service.get_scores(product_id)

    if not score:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product score not found",
        )

    return ProductScoreResponse.model_validate(score)


@router.post("/{product_id}/rescore", response_model=ProductScoreResponse)
async def rescore_product(
    product_id: UUID,
    buyer: BuyerProfile | None = None,
    db: AsyncSession = Depends(get_db),
) -> ProductScoreResponse:
    """Recalculate scores for a product from its current data.

    Without a buyer profile the result replaces the cached score. With one,
    the personalized result is returned but not stored.
    """
    service = ProductScoreService(db)
    try:
        breakdown = await service.calculate_scores(product_id, buyer=buyer)
    except ProductNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    if buyer is not None:
        return ProductScoreResponse(
            product_id=product_id,
            fit_score=breakdown.fit_score,
            feature_score=breakdown.feature_score,
            integration_score=breakdown.integration_score,
            review_score=breakdown.review_score,
            overall_score=breakdown.overall_score,
            score_breakdown=breakdown.breakdown_dict(),
            personalized=True,
        )

    score = await service.get_scores(product_id)
    await db.refresh(score)
    return ProductScoreResponse.model_validate(score)
