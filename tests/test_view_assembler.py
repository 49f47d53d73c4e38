"""Tests for the comparison view assembler and its data sources."""

import asyncio
from contextlib import asynccontextmanager

import httpx
import pytest
from httpx import ASGITransport

from saas_market.api.app import app
from saas_market.comparison.sources import (
    ComparisonSourceError,
    DatabaseComparisonSource,
    HttpComparisonSource,
)
from saas_market.comparison.storage import InMemoryStorage
from saas_market.comparison.store import AddResult, ComparisonStore, ProductSummary
from saas_market.comparison.view import ComparisonViewAssembler
from saas_market.scoring.models import CategoryKey, MetricDataType, MetricDefinition
from saas_market.scoring.registry import CategoryMetrics
from saas_market.services.scores import ProductScoreService


def summary(product_id: str, category: str = "hr") -> ProductSummary:
    return ProductSummary(id=product_id, name=f"Product {product_id}", category=category)


class StaticSource:
    """Returns canned metrics and records what was requested."""

    def __init__(self, metrics: CategoryMetrics | None = None):
        self.metrics = metrics or CategoryMetrics()
        self.requested: list[tuple[str, list[str]]] = []

    async def fetch_products(self, product_ids):
        self.requested.append(("products", list(product_ids)))
        return []

    async def fetch_metrics(self, category, product_ids):
        self.requested.append((category.value, list(product_ids)))
        return self.metrics


class BlockingSource(StaticSource):
    """Holds every fetch until released."""

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch_products(self, product_ids):
        self.started.set()
        await self.release.wait()
        return await super().fetch_products(product_ids)

    async def fetch_metrics(self, category, product_ids):
        await self.release.wait()
        return await super().fetch_metrics(category, product_ids)


class FailingSource(StaticSource):
    async def fetch_products(self, product_ids):
        raise ComparisonSourceError("upstream down", status_code=503)


@pytest.fixture
def store() -> ComparisonStore:
    return ComparisonStore(InMemoryStorage())


def session_factory(session):
    """Session maker stand-in that hands out the test session."""

    @asynccontextmanager
    async def use_session():
        yield session

    return use_session


class TestRefresh:
    """Tests for ComparisonViewAssembler.refresh()."""

    @pytest.mark.asyncio
    async def test_nothing_selected(self, store):
        assembler = ComparisonViewAssembler(store, StaticSource())

        view = await assembler.refresh()

        assert view is not None
        assert view.category is None
        assert view.is_empty

    @pytest.mark.asyncio
    async def test_empty_category_skips_fetch(self, store):
        source = StaticSource()
        store.add(summary("a", "hr"))
        assembler = ComparisonViewAssembler(store, source)

        view = await assembler.refresh("legal")

        assert view.category == CategoryKey.LEGAL
        assert view.is_empty
        assert source.requested == []

    @pytest.mark.asyncio
    async def test_fetches_exactly_the_selection(self, store):
        source = StaticSource()
        store.add(summary("a", "hr"))
        store.add(summary("b", "hr"))
        store.add(summary("c", "legal"))
        store.set_active_category("hr")
        assembler = ComparisonViewAssembler(store, source)

        view = await assembler.refresh()

        assert ("products", ["a", "b"]) in source.requested
        assert ("hr", ["a", "b"]) in source.requested
        assert [column.product_id for column in view.columns] == ["a", "b"]
        assert not view.degraded

    @pytest.mark.asyncio
    async def test_rows_follow_definitions(self, store):
        definition = MetricDefinition(
            id="m1", code="api_available", label="API", data_type=MetricDataType.BOOLEAN
        )
        metrics = CategoryMetrics.model_validate(
            {
                "metricDefinitions": [definition.model_dump()],
                "metrics": {
                    "a": {
                        "api_available": {"value": True, "label": "API", "dataType": "boolean"}
                    }
                },
            }
        )
        store.add(summary("a"))
        store.add(summary("b"))
        assembler = ComparisonViewAssembler(store, StaticSource(metrics))

        view = await assembler.refresh()

        assert view.rows() == [
            {"code": "api_available", "label": "API", "unit": None, "values": [True, None]}
        ]

    @pytest.mark.asyncio
    async def test_fetch_error_degrades_to_summaries(self, store):
        store.add(summary("a"))
        assembler = ComparisonViewAssembler(store, FailingSource())

        view = await assembler.refresh()

        assert view.degraded
        assert view.definitions == []
        assert view.columns[0].summary.name == "Product a"
        assert view.columns[0].product is None

    @pytest.mark.asyncio
    async def test_store_change_discards_response(self, store):
        source = BlockingSource()
        store.add(summary("a"))
        assembler = ComparisonViewAssembler(store, source)

        task = asyncio.create_task(assembler.refresh())
        await source.started.wait()
        store.add(summary("b"))
        source.release.set()

        assert await task is None

    @pytest.mark.asyncio
    async def test_newer_refresh_wins(self, store):
        source = BlockingSource()
        store.add(summary("a"))
        assembler = ComparisonViewAssembler(store, source)

        older = asyncio.create_task(assembler.refresh())
        await source.started.wait()
        newer = asyncio.create_task(assembler.refresh())
        await asyncio.sleep(0)
        source.release.set()

        assert await older is None
        view = await newer
        assert view is not None
        assert view.columns[0].product_id == "a"

    @pytest.mark.asyncio
    async def test_close_stops_following_store(self, store):
        assembler = ComparisonViewAssembler(store, StaticSource())
        generation = assembler.generation

        assembler.close()
        store.add(summary("a"))

        assert assembler.generation == generation


class TestDatabaseSource:
    """Tests for the in-process source."""

    @pytest.mark.asyncio
    async def test_view_with_current_scores(self, test_db, catalog):
        await ProductScoreService(test_db).calculate_scores(catalog.products[0].id)
        store = ComparisonStore(InMemoryStorage())
        for product in catalog.products[:2]:
            store.add(summary(str(product.id)))
        source = DatabaseComparisonSource(session_factory(test_db))
        assembler = ComparisonViewAssembler(store, source)

        view = await assembler.refresh()

        assert not view.degraded
        assert len(view.definitions) == 5
        first, second = view.columns
        assert first.product.name == "PeopleFlow"
        assert first.overall_score > 0
        assert first.metrics["cloud_client_classification"].value == "cloud"
        assert second.product.overall_score == 0

    @pytest.mark.asyncio
    async def test_uppercase_id_matches_live_data(self, test_db, catalog):
        product_id = catalog.product_ids[0]
        store = ComparisonStore(InMemoryStorage())
        store.add(summary(product_id.upper()))
        assert store.add(summary(product_id)) == AddResult.EXISTS
        assembler = ComparisonViewAssembler(store, DatabaseComparisonSource(session_factory(test_db)))

        view = await assembler.refresh()

        assert not view.degraded
        (column,) = view.columns
        assert column.product_id == product_id
        assert column.product.name == "PeopleFlow"
        assert column.metrics["implementation_time_days"].value == 21


class TestHttpSource:
    """Tests for the API-backed source."""

    @pytest.mark.asyncio
    async def test_fetches_through_api(self, test_db, catalog):
        source = HttpComparisonSource("http://test", transport=ASGITransport(app=app))

        products = await source.fetch_products(catalog.product_ids)
        metrics = await source.fetch_metrics(CategoryKey.HR, catalog.product_ids)

        assert [str(p.id) for p in products] == catalog.product_ids
        assert products[0].review_count == 3
        assert [d.code for d in metrics.definitions][0] == "implementation_time_days"
        assert metrics.metrics[catalog.product_ids[0]]["api_available"].value is True

    @pytest.mark.asyncio
    async def test_no_ids_skips_request(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        source = HttpComparisonSource("http://test", transport=transport)

        assert await source.fetch_products([]) == []

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="down"))
        source = HttpComparisonSource("http://test", transport=transport)

        with pytest.raises(ComparisonSourceError) as exc_info:
            await source.fetch_products(["a"])

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_api_failure_degrades_view(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        store = ComparisonStore(InMemoryStorage())
        store.add(summary("a"))
        assembler = ComparisonViewAssembler(
            store, HttpComparisonSource("http://test", transport=transport)
        )

        view = await assembler.refresh()

        assert view.degraded
        assert view.columns[0].product_id == "a"
