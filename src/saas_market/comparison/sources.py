"""Data sources for the comparison view.

A source answers two questions for a list of selected product IDs: the
current enriched products, and the metric definitions plus values of one
category. DatabaseComparisonSource queries the database in-process;
HttpComparisonSource calls the products API.
"""

import logging
from typing import Any, Optional, Protocol

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from saas_market.scoring.models import CategoryKey
from saas_market.scoring.registry import CategoryMetricRegistry, CategoryMetrics
from saas_market.services.scores import EnrichedProduct, ProductScoreService

logger = logging.getLogger(__name__)


class ComparisonSourceError(Exception):
    """Raised when a source cannot deliver products or metrics."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ComparisonSource(Protocol):
    """Fetches current data for the selected products."""

    async def fetch_products(self, product_ids: list[str]) -> list[EnrichedProduct]:
        ...

    async def fetch_metrics(self, category: CategoryKey, product_ids: list[str]) -> CategoryMetrics:
        ...


class DatabaseComparisonSource:
    """Reads straight from the database, one session per call."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def fetch_products(self, product_ids: list[str]) -> list[EnrichedProduct]:
        async with self.session_maker() as session:
            return await ProductScoreService(session).fetch_enriched(product_ids)

    async def fetch_metrics(self, category: CategoryKey, product_ids: list[str]) -> CategoryMetrics:
        async with self.session_maker() as session:
            return await CategoryMetricRegistry(session).category_metrics(category, product_ids)


class HttpComparisonSource:
    """Reads from the products API over HTTP.

    Args:
        base_url: API origin, e.g. http://localhost:8000
        api_prefix: Router prefix, "/api" by default
        timeout: Request timeout in seconds
        transport: Optional httpx transport (ASGITransport in tests)
    """

    def __init__(
        self,
        base_url: str,
        api_prefix: str = "/api",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix
        self.timeout = timeout
        self.transport = transport

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self.base_url}{self.api_prefix}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Comparison API error: {e.response.status_code} - {e.response.text}")
            raise ComparisonSourceError(
                f"API error: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Comparison API request failed: {e}")
            raise ComparisonSourceError(f"HTTP error: {e}") from e

    async def fetch_products(self, product_ids: list[str]) -> list[EnrichedProduct]:
        if not product_ids:
            return []
        data = await self._get("/products/with-scores", {"productIds": ",".join(product_ids)})
        return [EnrichedProduct.model_validate(item) for item in data.get("products", [])]

    async def fetch_metrics(self, category: CategoryKey, product_ids: list[str]) -> CategoryMetrics:
        data = await self._get(
            "/products/metrics",
            {"category": category.value, "productIds": ",".join(product_ids)},
        )
        return CategoryMetrics.model_validate(data)
