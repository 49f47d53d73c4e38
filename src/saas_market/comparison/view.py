"""Comparison View Assembler - current data for the selected products.

Builds the side-by-side table for one category: the category's metric
definitions as rows, one column per selected product with its current
scores and metric values. The store only holds summaries, so products and
metrics are re-fetched from the source on every refresh.

Refreshes are ordered by a generation counter. Each refresh takes a ticket;
a new refresh or any store mutation bumps the counter, and a refresh whose
ticket is no longer current returns None instead of a stale view.
"""

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from saas_market.comparison.sources import ComparisonSource
from saas_market.comparison.store import ComparisonState, ComparisonStore, ProductSummary
from saas_market.scoring.models import CategoryKey, MetricDefinition, MetricValue, parse_category
from saas_market.scoring.registry import CategoryMetrics
from saas_market.services.scores import EnrichedProduct

logger = logging.getLogger(__name__)


class ComparisonColumn(BaseModel):
    """One product in the comparison table."""

    product_id: str
    summary: ProductSummary
    product: Optional[EnrichedProduct] = None
    metrics: dict[str, MetricValue] = Field(default_factory=dict)

    @property
    def overall_score(self) -> Optional[int]:
        return self.product.overall_score if self.product else None


class ComparisonView(BaseModel):
    """Assembled comparison for one category."""

    category: Optional[CategoryKey] = None
    definitions: list[MetricDefinition] = Field(default_factory=list)
    columns: list[ComparisonColumn] = Field(default_factory=list)
    degraded: bool = Field(False, description="True when built from stored summaries only")

    @property
    def is_empty(self) -> bool:
        return not self.columns

    def rows(self) -> list[dict[str, Any]]:
        """Metric rows: label plus one value per column, None when unset."""
        return [
            {
                "code": definition.code,
                "label": definition.label,
                "unit": definition.unit,
                "values": [
                    column.metrics[definition.code].value
                    if definition.code in column.metrics
                    else None
                    for column in self.columns
                ],
            }
            for definition in self.definitions
        ]


class ComparisonViewAssembler:
    """Turns the store's selection into a ComparisonView.

    Usage:
        assembler = ComparisonViewAssembler(store, DatabaseComparisonSource(async_session_maker))
        view = await assembler.refresh()
        if view is not None:
            render(view)
    """

    def __init__(self, store: ComparisonStore, source: ComparisonSource):
        self.store = store
        self.source = source
        self._generation = 0
        self._unsubscribe: Callable[[], None] = store.subscribe(self._on_store_change)

    @property
    def generation(self) -> int:
        return self._generation

    def _on_store_change(self, state: ComparisonState) -> None:
        self._generation += 1

    def close(self) -> None:
        """Stop following store mutations."""
        self._unsubscribe()

    def _is_current(self, ticket: int) -> bool:
        return ticket == self._generation

    async def refresh(self, category: CategoryKey | str | None = None) -> Optional[ComparisonView]:
        """Assemble the view for a category, the active one by default.

        Returns:
            ComparisonView, degraded when a fetch failed, or None when a newer
            refresh or a store mutation superseded this one
        """
        self._generation += 1
        ticket = self._generation

        key = parse_category(category) if category is not None else self.store.active_category
        if key is None:
            return ComparisonView()

        summaries = self.store.products_for(key)
        if not summaries:
            return ComparisonView(category=key)

        product_ids = [summary.id for summary in summaries]
        try:
            products = await self.source.fetch_products(product_ids)
            metrics = await self.source.fetch_metrics(key, product_ids)
        except Exception as e:
            if not self._is_current(ticket):
                return None
            logger.error(f"Error fetching comparison data for {key.value}: {e}")
            return self._degraded(key, summaries)

        if not self._is_current(ticket):
            logger.debug(f"Discarding stale comparison response for {key.value}")
            return None

        return self._assemble(key, summaries, products, metrics)

    def _assemble(
        self,
        category: CategoryKey,
        summaries: list[ProductSummary],
        products: list[EnrichedProduct],
        metrics: CategoryMetrics,
    ) -> ComparisonView:
        by_id = {str(product.id): product for product in products}
        columns = [
            ComparisonColumn(
                product_id=summary.id,
                summary=summary,
                product=by_id.get(summary.id),
                metrics=metrics.metrics.get(summary.id, {}),
            )
            for summary in summaries
        ]
        return ComparisonView(
            category=category,
            definitions=metrics.definitions,
            columns=columns,
        )

    def _degraded(self, category: CategoryKey, summaries: list[ProductSummary]) -> ComparisonView:
        return ComparisonView(
            category=category,
            columns=[
                ComparisonColumn(product_id=summary.id, summary=summary) for summary in summaries
            ],
            degraded=True,
        )
