"""Category metric registry.

Maps a category key to its ordered metric definitions and loads the
recorded values for a set of products.

Usage:
    registry = CategoryMetricRegistry(session)
    definitions = await registry.definitions_for(CategoryKey.HR)
    values = await registry.values_for(product_ids, definitions)
"""

import uuid
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from saas_market.db.models import Category
from saas_market.db.models import MetricDefinition as MetricDefinitionRow
from saas_market.db.models import ProductMetricValue
from saas_market.scoring.models import (
    CategoryKey,
    MetricDataType,
    MetricDefinition,
    MetricRawValue,
    MetricValue,
    parse_category,
)

ProductMetrics = dict[str, dict[str, MetricValue]]


class CategoryMetrics(BaseModel):
    """Ordered definitions of a category plus per-product values."""

    model_config = ConfigDict(populate_by_name=True)

    definitions: list[MetricDefinition] = Field(default_factory=list, alias="metricDefinitions")
    metrics: ProductMetrics = Field(default_factory=dict)


def to_definition(row: MetricDefinitionRow, category: Optional[CategoryKey]) -> MetricDefinition:
    """Convert a metric_definitions row to the scoring model."""
    return MetricDefinition(
        id=str(row.id),
        code=row.code,
        label=row.label,
        description=row.description,
        data_type=MetricDataType(row.data_type.value),
        unit=row.unit,
        category=category,
        is_filterable=row.is_filterable,
        is_qualitative=row.is_qualitative,
        sort_order=row.sort_order,
    )


def typed_value(row: ProductMetricValue, data_type: MetricDataType) -> MetricRawValue:
    """Pick the populated field matching the definition's data type."""
    if data_type == MetricDataType.NUMBER:
        value = row.numeric_value
        if value is None:
            return None
        return int(value) if value == value.to_integral_value() else float(value)
    if data_type == MetricDataType.BOOLEAN:
        return row.boolean_value
    return row.string_value


def parse_uuids(values: Iterable[str | uuid.UUID]) -> list[uuid.UUID]:
    """Parse IDs, dropping malformed ones and duplicates, keeping order."""
    parsed: list[uuid.UUID] = []
    for value in values:
        try:
            product_id = value if isinstance(value, uuid.UUID) else uuid.UUID(str(value).strip())
        except ValueError:
            continue
        if product_id not in parsed:
            parsed.append(product_id)
    return parsed


class CategoryMetricRegistry:
    """Lookup of metric definitions and values by category key."""

    def __init__(self, session: AsyncSession):
        """Initialize with an open database session."""
        self.session = session

    async def definitions_for(self, category: CategoryKey | str | None) -> list[MetricDefinition]:
        """Ordered metric definitions of a category.

        Ordered by sort_order (unset last), then code. Unknown categories
        yield an empty list.
        """
        key = parse_category(category)
        if key is None:
            return []

        result = await self.session.execute(
            select(MetricDefinitionRow)
            .join(Category, MetricDefinitionRow.category_id == Category.id)
            .where(Category.key == key.value)
            .order_by(
                MetricDefinitionRow.sort_order.is_(None),
                MetricDefinitionRow.sort_order,
                MetricDefinitionRow.code,
            )
        )
        return [to_definition(row, key) for row in result.scalars().all()]

    async def values_for(
        self,
        product_ids: Iterable[str | uuid.UUID],
        definitions: list[MetricDefinition],
    ) -> ProductMetrics:
        """Metric values for many products in a single query.

        Args:
            product_ids: Products to load values for
            definitions: Definitions whose values are wanted

        Returns:
            {product_id: {metric_code: MetricValue}} with an entry (possibly
            empty) for every valid product id. Unset metrics are absent.
        """
        ids = parse_uuids(product_ids)
        metrics: ProductMetrics = {str(product_id): {} for product_id in ids}
        if not ids or not definitions:
            return metrics

        by_id = {definition.id: definition for definition in definitions}
        metric_ids = parse_uuids(by_id)

        result = await self.session.execute(
            select(ProductMetricValue).where(
                ProductMetricValue.product_id.in_(ids),
                ProductMetricValue.metric_id.in_(metric_ids),
            )
        )
        for row in result.scalars().all():
            definition = by_id.get(str(row.metric_id))
            if definition is None:
                continue
            metrics[str(row.product_id)][definition.code] = MetricValue(
                value=typed_value(row, definition.data_type),
                label=definition.label,
                unit=definition.unit,
                data_type=definition.data_type,
            )
        return metrics

    async def values_for_product(
        self,
        product_id: str | uuid.UUID,
        definitions: list[MetricDefinition],
    ) -> dict[str, MetricValue]:
        """Metric values of one product keyed by metric code."""
        values = await self.values_for([product_id], definitions)
        return values.get(str(product_id), {})

    async def category_metrics(
        self,
        category: CategoryKey | str | None,
        product_ids: Iterable[str | uuid.UUID],
    ) -> CategoryMetrics:
        """Definitions of a category plus values for the given products.

        A category without definitions yields empty definitions and metrics.
        """
        definitions = await self.definitions_for(category)
        if not definitions:
            return CategoryMetrics()
        metrics = await self.values_for(product_ids, definitions)
        return CategoryMetrics(definitions=definitions, metrics=metrics)


def decimal_or_none(value: MetricRawValue) -> Optional[Decimal]:
    """Numeric metric value as stored in product_metric_values."""
    if value is None or isinstance(value, (bool, str)):
        return None
    return Decimal(str(value))
