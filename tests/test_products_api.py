"""Tests for the product and category API endpoints.

Endpoints:
- GET /products/with-scores - enriched products with cached scores
- GET /products/metrics - metric definitions and values for a category
- GET /products/{id}/score - cached score for a product
- POST /products/{id}/rescore - recalculate scores for a product
- GET /categories, GET /categories/{key}/metrics
"""

from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from saas_market.api.app import app
from saas_market.db.models import ProductScore


def client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestProductsWithScores:
    """Tests for GET /products/with-scores endpoint."""

    @pytest.mark.asyncio
    async def test_empty_request(self, test_db):
        """Returns empty list when no IDs are given."""
        async with client() as c:
            response = await c.get("/api/products/with-scores")

        assert response.status_code == 200
        assert response.json() == {"products": []}

    @pytest.mark.asyncio
    async def test_returns_enriched_products_in_order(self, test_db, catalog):
        """Returns products in request order with rating summaries."""
        ids = [catalog.product_ids[1], catalog.product_ids[0]]

        async with client() as c:
            response = await c.get("/api/products/with-scores", params={"productIds": ",".join(ids)})

        assert response.status_code == 200
        products = response.json()["products"]
        assert [p["id"] for p in products] == ids
        assert products[0]["name"] == "HireWise"
        assert products[0]["category"] == "hr"
        assert products[0]["review_count"] == 1
        assert products[1]["average_rating"] == pytest.approx(4.33)
        assert products[1]["overall_score"] == 0
        assert products[1]["score_breakdown"] is None

    @pytest.mark.asyncio
    async def test_unknown_and_malformed_ids_omitted(self, test_db, catalog):
        """Unknown or malformed IDs are skipped rather than failing the request."""
        ids = f"{catalog.product_ids[0]},not-a-uuid,{uuid4()}"

        async with client() as c:
            response = await c.get("/api/products/with-scores", params={"productIds": ids})

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["products"]] == catalog.product_ids[:1]

    @pytest.mark.asyncio
    async def test_includes_cached_scores(self, test_db, catalog):
        """Cached scores are attached to the product."""
        product_id = catalog.products[0].id
        test_db.add(
            ProductScore(
                product_id=product_id,
                fit_score=80,
                feature_score=60,
                integration_score=70,
                review_score=50,
                overall_score=67,
                score_breakdown={"fit": {"score": 80}},
            )
        )
        await test_db.flush()

        async with client() as c:
            response = await c.get(
                "/api/products/with-scores", params={"productIds": str(product_id)}
            )

        product = response.json()["products"][0]
        assert product["overall_score"] == 67
        assert product["fit_score"] == 80
        assert product["score_breakdown"] == {"fit": {"score": 80}}


class TestProductMetrics:
    """Tests for GET /products/metrics endpoint."""

    @pytest.mark.asyncio
    async def test_returns_definitions_and_values(self, test_db, catalog):
        async with client() as c:
            response = await c.get(
                "/api/products/metrics",
                params={"category": "hr", "productIds": ",".join(catalog.product_ids)},
            )

        assert response.status_code == 200
        data = response.json()
        assert [d["code"] for d in data["metricDefinitions"]][:2] == [
            "implementation_time_days",
            "cloud_client_classification",
        ]
        values = data["metrics"][catalog.product_ids[0]]
        assert values["implementation_time_days"] == {
            "value": 21,
            "label": "Implementation Time",
            "unit": "days",
            "dataType": "number",
        }
        assert data["metrics"][catalog.product_ids[2]] == {}

    @pytest.mark.asyncio
    async def test_unknown_category_is_empty(self, test_db, catalog):
        async with client() as c:
            response = await c.get(
                "/api/products/metrics",
                params={"category": "finance", "productIds": catalog.product_ids[0]},
            )

        assert response.status_code == 200
        assert response.json() == {"metricDefinitions": [], "metrics": {}}

    @pytest.mark.asyncio
    async def test_category_is_required(self, test_db):
        async with client() as c:
            response = await c.get("/api/products/metrics")

        assert response.status_code == 422


class TestProductScore:
    """Tests for GET /products/{id}/score and POST /products/{id}/rescore."""

    @pytest.mark.asyncio
    async def test_score_not_found(self, test_db, catalog):
        async with client() as c:
            response = await c.get(f"/api/products/{catalog.product_ids[0]}/score")

        assert response.status_code == 404
        assert response.json()["detail"] == "Product score not found"

    @pytest.mark.asyncio
    async def test_rescore_persists_and_get_returns_it(self, test_db, catalog):
        product_id = catalog.product_ids[0]

        async with client() as c:
            rescored = await c.post(f"/api/products/{product_id}/rescore")
            fetched = await c.get(f"/api/products/{product_id}/score")

        assert rescored.status_code == 200
        assert fetched.status_code == 200
        data = rescored.json()
        assert data["product_id"] == product_id
        assert data["personalized"] is False
        assert data["fit_score"] == 86
        assert set(data["score_breakdown"]) == {"fit", "feature", "integration", "review"}
        assert fetched.json()["overall_score"] == data["overall_score"]

    @pytest.mark.asyncio
    async def test_rescore_with_buyer_is_not_persisted(self, test_db, catalog):
        product_id = catalog.product_ids[0]

        async with client() as c:
            response = await c.post(
                f"/api/products/{product_id}/rescore",
                json={"company_size": 20, "interests": ["hr"]},
            )
            fetched = await c.get(f"/api/products/{product_id}/score")

        assert response.status_code == 200
        data = response.json()
        assert data["personalized"] is True
        assert "buyer_match" in data["score_breakdown"]["fit"]["factors"]
        assert "buyer_compatibility" in data["score_breakdown"]["integration"]["factors"]
        assert fetched.status_code == 404

    @pytest.mark.asyncio
    async def test_rescore_unknown_product(self, test_db):
        async with client() as c:
            response = await c.post(f"/api/products/{uuid4()}/rescore")

        assert response.status_code == 404
        assert response.json()["detail"] == "Product not found"

    @pytest.mark.asyncio
    async def test_invalid_uuid(self, test_db):
        async with client() as c:
            response = await c.get("/api/products/not-a-uuid/score")

        assert response.status_code == 422


class TestCategories:
    """Tests for the category endpoints."""

    @pytest.mark.asyncio
    async def test_list_categories(self, test_db, catalog):
        async with client() as c:
            response = await c.get("/api/categories")

        assert response.status_code == 200
        assert [category["key"] for category in response.json()] == ["hr", "legal"]

    @pytest.mark.asyncio
    async def test_category_metrics(self, test_db, catalog):
        async with client() as c:
            response = await c.get("/api/categories/hr/metrics")

        assert response.status_code == 200
        definitions = response.json()
        assert len(definitions) == 5
        assert definitions[-1]["code"] == "time_to_fill_days"
        assert definitions[0]["data_type"] == "number"

    @pytest.mark.asyncio
    async def test_category_without_metrics(self, test_db, catalog):
        async with client() as c:
            response = await c.get("/api/categories/legal/metrics")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_unknown_category(self, test_db, catalog):
        async with client() as c:
            response = await c.get("/api/categories/finance/metrics")

        assert response.status_code == 404


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self):
        async with client() as c:
            response = await c.get("/health")

        assert response.json() == {"status": "healthy"}
