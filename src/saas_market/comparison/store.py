"""Comparison Store - per-category product selection for side-by-side comparison.

Holds up to MAX_COMPARISON_PRODUCTS product summaries per category plus the
active category (the list currently displayed). Every mutation is persisted
synchronously to a KeyValueStorage under a single key:

    {"productsByCategory": {"hr": [...], "legal": [...],
                            "marketing": [...], "devtools": [...]},
     "activeCategory": "hr" | null}

Known gap: two stores sharing one storage (e.g. two browser tabs) do not see
each other's changes until they reload, and the last write wins.

Usage:
    store = ComparisonStore(JsonFileStorage(".comparison_state.json"))
    result = store.add(summary)
    if result == AddResult.FULL:
        print("Remove a product first")
"""

import json
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from saas_market.comparison.storage import KeyValueStorage
from saas_market.scoring.models import CATEGORY_ORDER, CategoryKey, parse_category

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "marketplace_comparison"
MAX_COMPARISON_PRODUCTS = 3


def normalize_product_id(value: Any) -> str:
    """Canonical lowercase UUID form when the ID parses, else the stripped string."""
    text = str(value).strip()
    try:
        return str(uuid.UUID(text))
    except ValueError:
        return text


class AddResult(str, Enum):
    """Outcome of ComparisonStore.add."""

    ADDED = "added"
    EXISTS = "exists"
    FULL = "full"
    NO_CATEGORY = "no_category"


class ProductSummary(BaseModel):
    """Card-sized product data kept in the comparison state."""

    id: str
    name: str
    price_cents: int = 0
    category: Optional[str] = None
    average_rating: float = 0.0
    review_count: int = 0
    logo_url: Optional[str] = None
    short_description: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, value: Any) -> str:
        return normalize_product_id(value)


class ComparisonState(BaseModel):
    """Snapshot of the store; also the persisted document shape."""

    model_config = ConfigDict(populate_by_name=True)

    products_by_category: dict[CategoryKey, list[ProductSummary]] = Field(
        default_factory=lambda: {category: [] for category in CATEGORY_ORDER},
        alias="productsByCategory",
    )
    active_category: Optional[CategoryKey] = Field(None, alias="activeCategory")

    @field_validator("products_by_category")
    @classmethod
    def enforce_invariants(
        cls, value: dict[CategoryKey, list[ProductSummary]]
    ) -> dict[CategoryKey, list[ProductSummary]]:
        """All four categories present, no duplicate IDs, at most 3 each."""
        cleaned: dict[CategoryKey, list[ProductSummary]] = {}
        for category in CATEGORY_ORDER:
            seen: set[str] = set()
            products = []
            for product in value.get(category, []):
                if product.id in seen:
                    continue
                seen.add(product.id)
                products.append(product)
            cleaned[category] = products[:MAX_COMPARISON_PRODUCTS]
        return cleaned

    def to_storage(self) -> str:
        return self.model_dump_json(by_alias=True)


StateListener = Callable[[ComparisonState], None]


class ComparisonStore:
    """In-memory comparison selection, persisted after every mutation.

    Construct one instance per session; instances never share memory, only
    the storage they are given.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        self.storage = storage
        self.storage_key = storage_key
        self._listeners: list[StateListener] = []
        self._state = self._load()

    # --- Persistence ---

    def _load(self) -> ComparisonState:
        """Prior state from storage; empty state when absent or malformed."""
        try:
            stored = self.storage.get(self.storage_key)
        except Exception as e:
            logger.error(f"Error loading comparison state: {e}")
            return ComparisonState()

        if stored is None:
            return ComparisonState()

        try:
            data = json.loads(stored)
            return ComparisonState.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.error(f"Discarding malformed comparison state: {e}")
            return ComparisonState()

    def _persist(self) -> None:
        try:
            self.storage.set(self.storage_key, self._state.to_storage())
        except Exception as e:
            logger.error(f"Error saving comparison state: {e}")

    def _commit(self) -> None:
        """Persist, then notify listeners with a fresh snapshot."""
        self._persist()
        for listener in list(self._listeners):
            try:
                listener(self.get())
            except Exception as e:
                logger.error(f"Comparison listener failed: {e}")

    def reload(self) -> ComparisonState:
        """Re-read state from storage, replacing the in-memory copy."""
        self._state = self._load()
        return self.get()

    # --- Observers ---

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback run after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Queries ---

    def get(self) -> ComparisonState:
        """Deep copy of the current state."""
        return self._state.model_copy(deep=True)

    @property
    def active_category(self) -> Optional[CategoryKey]:
        return self._state.active_category

    def products_for(self, category: CategoryKey | str) -> list[ProductSummary]:
        """Selected products of a category, in insertion order."""
        key = parse_category(category)
        if key is None:
            return []
        return [p.model_copy() for p in self._state.products_by_category[key]]

    def has(self, product_id: str) -> bool:
        """Whether a product is selected in any category."""
        product_id = normalize_product_id(product_id)
        return any(
            p.id == product_id
            for products in self._state.products_by_category.values()
            for p in products
        )

    def count(self, category: CategoryKey | str | None = None) -> int:
        """Number of selected products in one category, or in all of them."""
        if category is None:
            return sum(len(p) for p in self._state.products_by_category.values())
        return len(self.products_for(category))

    # --- Mutations ---

    def add(self, product: ProductSummary | Mapping[str, Any]) -> AddResult:
        """Add a product to its category's list.

        Returns:
            ADDED on success (the category becomes active), EXISTS when the
            product is already selected, FULL when the category holds 3
            products, NO_CATEGORY when the product's category is unknown or
            the product data is malformed.
        """
        if isinstance(product, ProductSummary):
            summary = product
        else:
            try:
                summary = ProductSummary.model_validate(product)
            except ValidationError as e:
                logger.error(f"Rejected malformed comparison product: {e}")
                return AddResult.NO_CATEGORY
        category = parse_category(summary.category)
        if category is None:
            return AddResult.NO_CATEGORY

        products = self._state.products_by_category[category]
        if any(p.id == summary.id for p in products):
            return AddResult.EXISTS
        if len(products) >= MAX_COMPARISON_PRODUCTS:
            return AddResult.FULL

        products.append(summary.model_copy(update={"category": category.value}))
        self._state.active_category = category
        self._commit()
        return AddResult.ADDED

    def remove(self, product_id: str) -> bool:
        """Remove a product from whichever category holds it.

        If that empties the active category, the first non-empty category
        (hr, legal, marketing, devtools) becomes active, or None.

        Returns:
            True if the product was selected
        """
        product_id = normalize_product_id(product_id)
        removed = False
        for products in self._state.products_by_category.values():
            remaining = [p for p in products if p.id != product_id]
            if len(remaining) != len(products):
                products[:] = remaining
                removed = True

        if not removed:
            return False

        active = self._state.active_category
        if active is not None and not self._state.products_by_category[active]:
            self._state.active_category = self._first_non_empty()

        self._commit()
        return True

    def _first_non_empty(self) -> Optional[CategoryKey]:
        for category in CATEGORY_ORDER:
            if self._state.products_by_category[category]:
                return category
        return None

    def clear_category(self, category: CategoryKey | str) -> None:
        """Empty one category. The active category is left unchanged."""
        key = parse_category(category)
        if key is None:
            return
        self._state.products_by_category[key] = []
        self._commit()

    def clear(self) -> None:
        """Empty every category and reset the active category."""
        self._state = ComparisonState()
        self._commit()

    def set_active_category(self, category: CategoryKey | str | None) -> bool:
        """Switch the displayed category; empty categories are allowed.

        Returns:
            False (and no change) when the key is not a known category
        """
        if category is None:
            key = None
        else:
            key = parse_category(category)
            if key is None:
                return False
        self._state.active_category = key
        self._commit()
        return True
