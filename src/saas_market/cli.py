"""Command-line interface for the scoring engine and comparison store."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from saas_market.comparison.sources import DatabaseComparisonSource, HttpComparisonSource
from saas_market.comparison.storage import JsonFileStorage
from saas_market.comparison.store import AddResult, ComparisonStore, ProductSummary
from saas_market.comparison.view import ComparisonView, ComparisonViewAssembler
from saas_market.config import get_settings
from saas_market.db.base import async_session_maker
from saas_market.scoring.models import (
    CATEGORY_ORDER,
    BuyerProfile,
    CategoryKey,
    MetricDataType,
    MetricValue,
    ProductFeature,
    ScoreBreakdown,
    ScoringProduct,
)
from saas_market.scoring.scorer import compute_scores
from saas_market.services.scores import ProductScoreService


def create_example_input() -> dict[str, Any]:
    """Example scoring input: an HR product with metrics, reviews and features."""
    return {
        "product": {
            "id": "example-001",
            "name": "PeopleFlow HRIS",
            "category": CategoryKey.HR.value,
            "price_cents": 4900,
            "short_description": "Core HR, payroll and onboarding for growing teams",
            "long_description": (
                "PeopleFlow keeps employee records, payroll and onboarding in one place.\n\n"
                "- Automated payroll runs\n"
                "- Self-service onboarding\n"
                "- Compliance task tracking"
            ),
            "logo_url": "https://example.com/peopleflow.png",
        },
        "metrics": {
            "implementation_time_days": {
                "value": 21,
                "label": "Implementation Time",
                "unit": "days",
                "dataType": MetricDataType.NUMBER.value,
            },
            "cloud_client_classification": {
                "value": "cloud",
                "label": "Deployment Model",
                "unit": None,
                "dataType": MetricDataType.STRING.value,
            },
            "access_depth": {
                "value": "read,write",
                "label": "Access Depth",
                "unit": None,
                "dataType": MetricDataType.STRING.value,
            },
            "api_available": {
                "value": True,
                "label": "API Available",
                "unit": None,
                "dataType": MetricDataType.BOOLEAN.value,
            },
        },
        "reviews": [5, 4, 4, 5, 3, 4, 5, 4],
        "features": [
            {"feature_name": "Payroll", "relevance_score": 90},
            {"feature_name": "Onboarding", "relevance_score": 85},
            {"feature_name": "Time off tracking", "relevance_score": 60},
        ],
    }


def parse_input(data: dict[str, Any]) -> tuple[
    ScoringProduct,
    dict[str, MetricValue],
    list[float],
    list[ProductFeature],
    BuyerProfile | None,
]:
    """Parse scoring input JSON into calculator arguments."""
    product = ScoringProduct(**data["product"])
    metrics = {
        code: MetricValue.model_validate(value)
        for code, value in data.get("metrics", {}).items()
    }
    reviews = [float(r) for r in data.get("reviews", [])]
    features = [ProductFeature(**f) for f in data.get("features", [])]
    buyer = BuyerProfile(**data["buyer"]) if data.get("buyer") else None
    return product, metrics, reviews, features, buyer


def print_breakdown(product: ScoringProduct, result: ScoreBreakdown) -> None:
    print(f"Product: {product.name}")
    print(f"{'=' * 50}")
    for name, dimension in [
        ("Fit", result.fit),
        ("Feature", result.feature),
        ("Integration", result.integration),
        ("Review", result.review),
    ]:
        print(f"\n{name}: {dimension.score}/100")
        for factor, value in dimension.factors.items():
            weight = dimension.weights.get(factor)
            weight_text = f" (x{weight:.2f})" if weight is not None else ""
            print(f"  {factor:22}: {value:g}{weight_text}")

    print(f"\n{'=' * 50}")
    print(f"Overall Score: {result.overall_score}/100")


def score_command(args: argparse.Namespace) -> None:
    """Score a product from JSON or use the example."""
    if args.json:
        data = json.loads(args.json)
    else:
        data = create_example_input()
        print("Using example product (use --json to provide your own)\n")

    product, metrics, reviews, features, buyer = parse_input(data)
    result = compute_scores(product, metrics, reviews, features, buyer=buyer)
    print_breakdown(product, result)


def open_store() -> ComparisonStore:
    settings = get_settings()
    return ComparisonStore(
        JsonFileStorage(settings.comparison_storage_path),
        storage_key=settings.comparison_storage_key,
    )


def compare_command(args: argparse.Namespace) -> int:
    """Inspect or edit the persisted comparison selection."""
    store = open_store()

    if args.action == "add":
        summary = ProductSummary(
            id=args.product_id,
            name=args.name or args.product_id,
            category=args.category,
            price_cents=args.price_cents,
        )
        result = store.add(summary)
        messages = {
            AddResult.ADDED: f"Added {summary.name} to {args.category}",
            AddResult.EXISTS: f"{summary.name} is already being compared",
            AddResult.FULL: f"{args.category} already holds 3 products, remove one first",
            AddResult.NO_CATEGORY: f"Unknown category: {args.category}",
        }
        print(messages[result])
        return 0 if result in (AddResult.ADDED, AddResult.EXISTS) else 1

    if args.action == "remove":
        if not store.remove(args.product_id):
            print(f"{args.product_id} is not being compared")
            return 1
        print(f"Removed {args.product_id}")
        return 0

    if args.action == "clear":
        if args.category:
            store.clear_category(args.category)
        else:
            store.clear()
        print("Cleared")
        return 0

    if args.action == "activate":
        if not store.set_active_category(args.category):
            print(f"Unknown category: {args.category}")
            return 1
        print(f"Active category: {args.category}")
        return 0

    if args.action == "show":
        view = asyncio.run(assemble_view(store, args.category, args.remote))
        print_view(view)
        return 0

    state = store.get()
    active = state.active_category.value if state.active_category else "none"
    print(f"Active category: {active}")
    for category in CATEGORY_ORDER:
        products = state.products_by_category[category]
        print(f"\n{category.value} ({len(products)}/3)")
        for product in products:
            print(f"  - {product.id}: {product.name}")
    return 0


async def assemble_view(
    store: ComparisonStore,
    category: str | None,
    remote: bool,
) -> ComparisonView | None:
    """Build the comparison view from the database or the running API."""
    settings = get_settings()
    if remote:
        source = HttpComparisonSource(settings.api_base_url, settings.api_prefix)
    else:
        source = DatabaseComparisonSource(async_session_maker)

    assembler = ComparisonViewAssembler(store, source)
    try:
        return await assembler.refresh(category)
    finally:
        assembler.close()


def print_view(view: ComparisonView | None) -> None:
    if view is None or view.category is None:
        print("Nothing to compare")
        return

    print(f"Comparing {view.category.value}")
    if view.degraded:
        print("(live data unavailable, showing saved summaries)")
    if view.is_empty:
        print("  no products selected")
        return

    print(f"{'=' * 50}")
    names = [column.summary.name for column in view.columns]
    print(f"{'':28}" + "".join(f"{name[:18]:>20}" for name in names))
    scores = [column.overall_score for column in view.columns]
    print(f"{'Overall Score':28}" + "".join(f"{'-' if s is None else s:>20}" for s in scores))
    for row in view.rows():
        label = f"{row['label']} ({row['unit']})" if row["unit"] else row["label"]
        cells = "".join(f"{'-' if v is None else str(v)[:18]:>20}" for v in row["values"])
        print(f"{label[:28]:28}{cells}")


async def recalculate(batch_size: int) -> int:
    async with async_session_maker() as session:
        processed = await ProductScoreService(session).recalculate_all(batch_size)
        await session.commit()
    return processed


def main() -> int:
    """Main CLI entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="saas-market",
        description="B2B Marketplace Product Scoring Engine",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Score command
    score_parser = subparsers.add_parser("score", help="Score a product")
    score_parser.add_argument(
        "--json",
        type=str,
        help="Scoring input as JSON string (see 'example')",
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example",
        help="Show example scoring input JSON",
    )
    example_parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty print JSON",
    )

    # Compare command
    compare_parser = subparsers.add_parser("compare", help="Manage the comparison selection")
    compare_sub = compare_parser.add_subparsers(dest="action")
    compare_sub.add_parser("list", help="Show selected products")
    add_parser = compare_sub.add_parser("add", help="Add a product")
    add_parser.add_argument("product_id")
    add_parser.add_argument("category", help="hr, legal, marketing or devtools")
    add_parser.add_argument("--name", type=str, help="Display name")
    add_parser.add_argument("--price-cents", type=int, default=0)
    remove_parser = compare_sub.add_parser("remove", help="Remove a product")
    remove_parser.add_argument("product_id")
    clear_parser = compare_sub.add_parser("clear", help="Clear one category or everything")
    clear_parser.add_argument("category", nargs="?")
    activate_parser = compare_sub.add_parser("activate", help="Switch the active category")
    activate_parser.add_argument("category")
    show_parser = compare_sub.add_parser("show", help="Show the comparison table")
    show_parser.add_argument("--category", type=str, help="Category (default: active)")
    show_parser.add_argument(
        "--remote",
        action="store_true",
        help="Fetch through the API at API_BASE_URL instead of the database",
    )

    # Recalculate command
    recalc_parser = subparsers.add_parser(
        "recalculate",
        help="Recalculate scores for all published products",
    )
    recalc_parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.score_recalc_batch_size,
    )

    args = parser.parse_args()

    if args.command == "score":
        score_command(args)
    elif args.command == "example":
        data = create_example_input()
        if args.pretty:
            print(json.dumps(data, indent=2))
        else:
            print(json.dumps(data))
    elif args.command == "compare":
        return compare_command(args)
    elif args.command == "recalculate":
        processed = asyncio.run(recalculate(args.batch_size))
        print(f"Recalculated scores for {processed} products")
    else:
        parser.print_help()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
