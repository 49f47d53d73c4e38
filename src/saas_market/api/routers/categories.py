"""Category API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from saas_market.db.base import get_db
from saas_market.db.models import Category
from saas_market.scoring.models import MetricDefinition
from saas_market.scoring.registry import CategoryMetricRegistry

router = APIRouter(prefix="/categories", tags=["categories"])


class CategoryResponse(BaseModel):
    """Category response schema."""

    id: UUID
    key: str
    name: str
    description: str | None

    class Config:
        from_attributes = True


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    db: AsyncSession = Depends(get_db),
) -> list[Category]:
    """List all categories ordered by key."""
    result = await db.execute(select(Category).order_by(Category.key))
    return list(result.scalars().all())


@router.get("/{key}/metrics", response_model=list[MetricDefinition])
async def get_category_metrics(
    key: str,
    db: AsyncSession = Depends(get_db),
) -> list[MetricDefinition]:
    """Get the ordered metric definitions of a category."""
    result = await db.execute(select(Category).where(Category.key == key.strip().lower()))
    if not result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )

    registry = CategoryMetricRegistry(db)
    return await registry.definitions_for(key)
