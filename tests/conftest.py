"""Pytest fixtures for database testing."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from saas_market.api.app import app
from saas_market.db.base import Base, get_db
from saas_market.db.models import (
    Category,
    MetricDefinition,
    MetricType,
    Product,
    ProductFeature,
    ProductMetricValue,
    Review,
)


# Use SQLite in-memory for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """In-memory engine with all tables created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session with isolated transactions.

    Yields a session on the in-memory database and overrides the app's
    get_db dependency so API requests share it.
    """
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        # Override app's get_db dependency
        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

        app.dependency_overrides[get_db] = override_get_db

        try:
            yield session
        finally:
            # Clean up
            app.dependency_overrides.clear()
            await session.rollback()


# --- Catalog Fixtures ---


# (code, label, data_type, unit, sort_order)
HR_METRICS = [
    ("implementation_time_days", "Implementation Time", MetricType.NUMBER, "days", 1),
    ("cloud_client_classification", "Deployment Model", MetricType.STRING, None, 2),
    ("access_depth", "Access Depth", MetricType.STRING, None, 3),
    ("api_available", "API Available", MetricType.BOOLEAN, None, 4),
    ("time_to_fill_days", "Time to Fill", MetricType.NUMBER, "days", None),
]


@dataclass
class Catalog:
    """Seeded catalog: one HR category with metrics and three products."""

    hr: Category
    legal: Category
    metrics: dict[str, MetricDefinition]
    products: list[Product] = field(default_factory=list)

    @property
    def product_ids(self) -> list[str]:
        return [str(p.id) for p in self.products]


async def add_product(
    session: AsyncSession,
    category: Category | None,
    name: str,
    metrics: dict[str, MetricDefinition] | None = None,
    values: dict[str, Any] | None = None,
    ratings: list[int] | None = None,
    features: list[tuple[str, int]] | None = None,
    **fields: Any,
) -> Product:
    """Insert a product with metric values, reviews and features."""
    product = Product(
        seller_id=uuid4(),
        category_id=category.id if category else None,
        name=name,
        short_description=fields.pop("short_description", f"{name} short description"),
        price_cents=fields.pop("price_cents", 1000),
        **fields,
    )
    session.add(product)
    await session.flush()

    for code, value in (values or {}).items():
        definition = metrics[code]
        row = ProductMetricValue(product_id=product.id, metric_id=definition.id)
        if definition.data_type == MetricType.NUMBER:
            row.numeric_value = Decimal(str(value))
        elif definition.data_type == MetricType.BOOLEAN:
            row.boolean_value = value
        else:
            row.string_value = value
        session.add(row)

    for rating in ratings or []:
        session.add(Review(product_id=product.id, buyer_id=uuid4(), rating=rating))

    for feature_name, relevance in features or []:
        session.add(
            ProductFeature(
                product_id=product.id,
                feature_name=feature_name,
                relevance_score=Decimal(relevance),
            )
        )

    await session.flush()
    return product


@pytest_asyncio.fixture
async def catalog(test_db) -> Catalog:
    """HR and legal categories, HR metric definitions and three HR products."""
    hr = Category(key="hr", name="HR & People")
    legal = Category(key="legal", name="Legal")
    test_db.add_all([hr, legal])
    await test_db.flush()

    metrics: dict[str, MetricDefinition] = {}
    for code, label, data_type, unit, sort_order in HR_METRICS:
        definition = MetricDefinition(
            category_id=hr.id,
            code=code,
            label=label,
            data_type=data_type,
            unit=unit,
            sort_order=sort_order,
        )
        test_db.add(definition)
        metrics[code] = definition
    await test_db.flush()

    products = [
        await add_product(
            test_db,
            hr,
            "PeopleFlow",
            metrics,
            values={
                "implementation_time_days": 21,
                "cloud_client_classification": "cloud",
                "access_depth": "read,write",
                "api_available": True,
            },
            ratings=[4, 5, 4],
            features=[("Payroll", 90), ("Onboarding", 70)],
            long_description="Core HR in one place.",
            logo_url="https://example.com/peopleflow.png",
        ),
        await add_product(
            test_db,
            hr,
            "HireWise",
            metrics,
            values={"implementation_time_days": 7, "api_available": False},
            ratings=[5],
        ),
        await add_product(test_db, hr, "StaffBase", metrics),
    ]

    return Catalog(hr=hr, legal=legal, metrics=metrics, products=products)


@pytest.fixture
def product_factory(test_db):
    """Insert extra products into the test session."""

    async def create(category: Category | None, name: str, **kwargs: Any) -> Product:
        return await add_product(test_db, category, name, **kwargs)

    return create
