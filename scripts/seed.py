#!/usr/bin/env python3
"""Seed the database with categories, metric definitions and demo products."""

import asyncio
import uuid
from decimal import Decimal

from sqlalchemy import select

from saas_market.db.base import async_session_maker
from saas_market.db.models import (
    Category,
    MetricDefinition,
    MetricType,
    Product,
    ProductFeature,
    ProductMetricValue,
    Review,
)
from saas_market.scoring.registry import decimal_or_none
from saas_market.services.scores import ProductScoreService

SELLER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")

CATEGORIES = [
    {"key": "hr", "name": "HR & People", "description": "HRIS, payroll and recruiting"},
    {"key": "legal", "name": "Legal", "description": "Contract management and compliance"},
    {"key": "marketing", "name": "Marketing", "description": "Campaigns, email and attribution"},
    {"key": "devtools", "name": "Developer Tools", "description": "CI/CD, monitoring and DX"},
]

# (code, label, data_type, unit, is_qualitative)
SHARED_METRICS = [
    ("implementation_time_days", "Implementation Time", MetricType.NUMBER, "days", False),
    ("cloud_client_classification", "Deployment Model", MetricType.STRING, None, True),
    ("access_depth", "Access Depth", MetricType.STRING, None, True),
    ("api_available", "API Available", MetricType.BOOLEAN, None, False),
    ("roi_percentage", "ROI", MetricType.NUMBER, "%", False),
]

CATEGORY_METRICS = {
    "hr": [
        ("payroll_error_rate_percentage", "Payroll Error Rate", MetricType.NUMBER, "%", False),
        ("onboarding_time_days", "Onboarding Time", MetricType.NUMBER, "days", False),
        ("time_to_fill_days", "Time to Fill", MetricType.NUMBER, "days", False),
    ],
    "legal": [
        ("contract_cycle_time_days", "Contract Cycle Time", MetricType.NUMBER, "days", False),
        ("template_reuse_rate_percentage", "Template Reuse", MetricType.NUMBER, "%", False),
        ("compliance_level", "Compliance Level", MetricType.STRING, None, True),
    ],
    "marketing": [
        ("conversion_lift_percentage", "Conversion Lift", MetricType.NUMBER, "%", False),
        ("lead_cost_usd", "Cost per Lead", MetricType.NUMBER, "USD", False),
        ("email_deliverability_percentage", "Email Deliverability", MetricType.NUMBER, "%", False),
    ],
    "devtools": [
        ("build_time_reduction_percentage", "Build Time Reduction", MetricType.NUMBER, "%", False),
        ("deployment_frequency_per_week", "Deploys per Week", MetricType.NUMBER, None, False),
        ("mean_time_to_recovery_hours", "MTTR", MetricType.NUMBER, "hours", False),
    ],
}

SAMPLE_PRODUCTS = [
    {
        "slug": "peopleflow-hris",
        "name": "PeopleFlow HRIS",
        "category": "hr",
        "price_cents": 4900,
        "short_description": "Core HR, payroll and onboarding for growing teams",
        "long_description": """PeopleFlow keeps employee records, payroll and onboarding in one place.

Highlights:
- Automated payroll runs with error checks
- Self-service onboarding portal
- Compliance task tracking""",
        "logo_url": "https://images.example.com/peopleflow.png",
        "metrics": {
            "implementation_time_days": 21,
            "cloud_client_classification": "cloud",
            "access_depth": "read,write",
            "api_available": True,
            "roi_percentage": 140,
            "payroll_error_rate_percentage": 0.4,
            "onboarding_time_days": 3,
            "time_to_fill_days": 28,
        },
        "features": [("Payroll", 92), ("Onboarding", 88), ("Time off", 60)],
        "ratings": [5, 4, 4, 5, 4, 4, 5, 3, 4, 5],
    },
    {
        "slug": "hirewise",
        "name": "HireWise",
        "category": "hr",
        "price_cents": 2900,
        "short_description": "Recruiting pipeline with structured interviews",
        "long_description": "HireWise tracks candidates from sourcing to offer.",
        "logo_url": None,
        "metrics": {
            "implementation_time_days": 7,
            "cloud_client_classification": "cloud",
            "api_available": False,
            "time_to_fill_days": 35,
        },
        "features": [("Job board sync", 70), ("Interview kits", 82)],
        "ratings": [5],
    },
    {
        "slug": "clausebase",
        "name": "ClauseBase",
        "category": "legal",
        "price_cents": 9900,
        "short_description": "Contract lifecycle management with clause library",
        "long_description": """ClauseBase drafts, negotiates and stores contracts.

- Clause library with approved fallbacks
- Redline comparison
- Obligation reminders""",
        "logo_url": "https://images.example.com/clausebase.png",
        "metrics": {
            "implementation_time_days": 45,
            "cloud_client_classification": "hybrid",
            "access_depth": "read,write,admin",
            "api_available": True,
            "contract_cycle_time_days": 12,
            "template_reuse_rate_percentage": 74,
            "compliance_level": "soc2_type2",
        },
        "features": [("Clause library", 95), ("E-signature", 85), ("Redlining", 81)],
        "ratings": [4, 4, 5, 4, 3, 4],
    },
    {
        "slug": "campaignpilot",
        "name": "CampaignPilot",
        "category": "marketing",
        "price_cents": 7900,
        "short_description": "Multi-channel campaigns with built-in attribution",
        "long_description": "CampaignPilot plans, sends and attributes email and ad campaigns.",
        "logo_url": "https://images.example.com/campaignpilot.png",
        "metrics": {
            "implementation_time_days": 14,
            "cloud_client_classification": "cloud",
            "access_depth": "read",
            "api_available": True,
            "conversion_lift_percentage": 18,
            "lead_cost_usd": 42,
            "email_deliverability_percentage": 97.5,
        },
        "features": [("Email builder", 84), ("Attribution", 90), ("A/B testing", 75)],
        "ratings": [4, 5, 4, 4, 4, 5, 4, 3],
    },
    {
        "slug": "shipfast-ci",
        "name": "ShipFast CI",
        "category": "devtools",
        "price_cents": 1900,
        "short_description": "Fast CI pipelines with remote caching",
        "long_description": """ShipFast CI runs builds on warm runners with a shared cache.

- Remote build cache
- Parallel test splitting
- Deploy previews""",
        "logo_url": "https://images.example.com/shipfast.png",
        "metrics": {
            "implementation_time_days": 2,
            "cloud_client_classification": "cloud",
            "access_depth": "read,write",
            "api_available": True,
            "build_time_reduction_percentage": 55,
            "deployment_frequency_per_week": 30,
            "mean_time_to_recovery_hours": 2,
        },
        "features": [("Remote cache", 93), ("Test splitting", 87), ("Deploy previews", 82)],
        "ratings": [5, 5, 4, 5, 4, 5, 5, 4, 4, 5, 5, 4],
    },
]


def typed_columns(data_type: MetricType, value) -> dict:
    """Map a raw seed value onto the value column of its data type."""
    if data_type == MetricType.NUMBER:
        return {"numeric_value": decimal_or_none(value)}
    if data_type == MetricType.BOOLEAN:
        return {"boolean_value": bool(value)}
    return {"string_value": str(value)}


async def seed_catalog() -> None:
    """Seed categories, metric definitions, products and their data, then score them."""
    async with async_session_maker() as session:
        categories: dict[str, Category] = {}
        for category_data in CATEGORIES:
            result = await session.execute(
                select(Category).where(Category.key == category_data["key"])
            )
            category = result.scalar_one_or_none()
            if category is None:
                category = Category(**category_data)
                session.add(category)
                print(f"Created category: {category_data['name']}")
            categories[category_data["key"]] = category
        await session.flush()

        definitions: dict[tuple[str, str], MetricDefinition] = {}
        for key, category in categories.items():
            metrics = SHARED_METRICS + CATEGORY_METRICS[key]
            for sort_order, (code, label, data_type, unit, qualitative) in enumerate(metrics):
                result = await session.execute(
                    select(MetricDefinition).where(
                        MetricDefinition.category_id == category.id,
                        MetricDefinition.code == code,
                    )
                )
                definition = result.scalar_one_or_none()
                if definition is None:
                    definition = MetricDefinition(
                        category_id=category.id,
                        code=code,
                        label=label,
                        data_type=data_type,
                        unit=unit,
                        is_qualitative=qualitative,
                        sort_order=sort_order,
                    )
                    session.add(definition)
                definitions[(key, code)] = definition
        await session.flush()

        created: list[uuid.UUID] = []
        for product_data in SAMPLE_PRODUCTS:
            result = await session.execute(
                select(Product).where(Product.slug == product_data["slug"])
            )
            if result.scalar_one_or_none():
                print(f"Product '{product_data['slug']}' already exists, skipping...")
                continue

            key = product_data["category"]
            product = Product(
                seller_id=SELLER_ID,
                category_id=categories[key].id,
                slug=product_data["slug"],
                name=product_data["name"],
                price_cents=product_data["price_cents"],
                short_description=product_data["short_description"],
                long_description=product_data["long_description"],
                logo_url=product_data["logo_url"],
            )
            session.add(product)
            await session.flush()

            for code, value in product_data["metrics"].items():
                definition = definitions[(key, code)]
                session.add(
                    ProductMetricValue(
                        product_id=product.id,
                        metric_id=definition.id,
                        **typed_columns(definition.data_type, value),
                    )
                )
            for name, relevance in product_data["features"]:
                session.add(
                    ProductFeature(
                        product_id=product.id,
                        feature_name=name,
                        relevance_score=Decimal(relevance),
                    )
                )
            for rating in product_data["ratings"]:
                session.add(Review(product_id=product.id, buyer_id=uuid.uuid4(), rating=rating))

            created.append(product.id)
            print(f"Created product: {product_data['name']}")

        await session.flush()

        service = ProductScoreService(session)
        for product_id in created:
            breakdown = await service.calculate_scores(product_id)
            print(f"Scored {product_id}: {breakdown.overall_score}/100")

        await session.commit()
        print("\nSeeding complete!")


if __name__ == "__main__":
    asyncio.run(seed_catalog())
