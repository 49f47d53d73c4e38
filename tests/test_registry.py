"""Tests for the category metric registry."""

from uuid import uuid4

import pytest
from sqlalchemy import event

from saas_market.scoring.models import CategoryKey, MetricDataType
from saas_market.scoring.registry import CategoryMetricRegistry, parse_uuids


class TestParseUuids:
    """Tests for ID parsing."""

    def test_drops_malformed_and_duplicates(self):
        first, second = uuid4(), uuid4()

        result = parse_uuids([str(first), "nope", str(second), f" {first} "])

        assert result == [first, second]


class TestDefinitions:
    """Tests for definitions_for()."""

    @pytest.mark.asyncio
    async def test_ordered_by_sort_order_then_code(self, test_db, catalog):
        registry = CategoryMetricRegistry(test_db)

        definitions = await registry.definitions_for(CategoryKey.HR)

        assert [d.code for d in definitions] == [
            "implementation_time_days",
            "cloud_client_classification",
            "access_depth",
            "api_available",
            "time_to_fill_days",
        ]
        assert all(d.category == CategoryKey.HR for d in definitions)
        assert definitions[0].data_type == MetricDataType.NUMBER

    @pytest.mark.asyncio
    async def test_lookup_by_string_key(self, test_db, catalog):
        registry = CategoryMetricRegistry(test_db)

        definitions = await registry.definitions_for(" HR ")

        assert len(definitions) == 5

    @pytest.mark.asyncio
    async def test_unknown_category_is_empty(self, test_db, catalog):
        registry = CategoryMetricRegistry(test_db)

        assert await registry.definitions_for("finance") == []
        assert await registry.definitions_for(None) == []

    @pytest.mark.asyncio
    async def test_category_without_definitions(self, test_db, catalog):
        registry = CategoryMetricRegistry(test_db)

        result = await registry.category_metrics(CategoryKey.LEGAL, catalog.product_ids)

        assert result.definitions == []
        assert result.metrics == {}


class TestValues:
    """Tests for values_for()."""

    @pytest.mark.asyncio
    async def test_typed_values(self, test_db, catalog):
        registry = CategoryMetricRegistry(test_db)
        definitions = await registry.definitions_for(CategoryKey.HR)

        values = await registry.values_for(catalog.product_ids, definitions)

        peopleflow = values[catalog.product_ids[0]]
        assert peopleflow["implementation_time_days"].value == 21
        assert peopleflow["implementation_time_days"].unit == "days"
        assert peopleflow["cloud_client_classification"].value == "cloud"
        assert peopleflow["api_available"].value is True
        assert "time_to_fill_days" not in peopleflow

        hirewise = values[catalog.product_ids[1]]
        assert hirewise["api_available"].value is False

        assert values[catalog.product_ids[2]] == {}

    @pytest.mark.asyncio
    async def test_malformed_ids_are_skipped(self, test_db, catalog):
        registry = CategoryMetricRegistry(test_db)
        definitions = await registry.definitions_for(CategoryKey.HR)
        missing = str(uuid4())

        values = await registry.values_for(["garbage", missing], definitions)

        assert values == {missing: {}}

    @pytest.mark.asyncio
    async def test_single_query_for_many_products(self, test_db, test_engine, catalog):
        """Three products load their values with one query, not one per product."""
        registry = CategoryMetricRegistry(test_db)
        definitions = await registry.definitions_for(CategoryKey.HR)
        statements: list[str] = []

        def record(conn, cursor, statement, parameters, context, executemany):
            if "product_metric_values" in statement:
                statements.append(statement)

        event.listen(test_engine.sync_engine, "before_cursor_execute", record)
        try:
            values = await registry.values_for(catalog.product_ids, definitions)
        finally:
            event.remove(test_engine.sync_engine, "before_cursor_execute", record)

        assert len(values) == 3
        assert len(statements) == 1

    @pytest.mark.asyncio
    async def test_category_metrics_serializes_with_wire_names(self, test_db, catalog):
        registry = CategoryMetricRegistry(test_db)

        result = await registry.category_metrics("hr", catalog.product_ids[:1])
        data = result.model_dump(by_alias=True)

        assert len(data["metricDefinitions"]) == 5
        metric = data["metrics"][catalog.product_ids[0]]["implementation_time_days"]
        assert metric == {"value": 21, "label": "Implementation Time", "unit": "days", "dataType": "number"}
