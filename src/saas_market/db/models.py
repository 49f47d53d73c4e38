"""Database models for the marketplace catalog and score cache."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from saas_market.db.base import Base


def enum_values(enum_class: type[enum.Enum]) -> list[str]:
    """Persist enum values (lowercase) rather than member names."""
    return [member.value for member in enum_class]


class ProductStatus(str, enum.Enum):
    """Product lifecycle status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class MetricType(str, enum.Enum):
    """Metric value storage type."""

    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"


class Category(Base):
    """Product category with a stable key."""

    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    key: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    metric_definitions: Mapped[list["MetricDefinition"]] = relationship(
        back_populates="category",
    )

    def __repr__(self) -> str:
        return f"<Category {self.key}>"


class Product(Base):
    """Seller product listing."""

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    seller_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), index=True)
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(500))
    slug: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    short_description: Mapped[str] = mapped_column(Text, default="")
    long_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Media
    logo_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    demo_visual_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Pricing (minor currency units)
    price_cents: Mapped[int] = mapped_column(Integer, default=0)

    # Status
    status: Mapped[ProductStatus] = mapped_column(
        Enum(ProductStatus, values_callable=enum_values),
        default=ProductStatus.PUBLISHED,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    category: Mapped["Category | None"] = relationship()
    features: Mapped[list["ProductFeature"]] = relationship(back_populates="product")
    score: Mapped["ProductScore | None"] = relationship(back_populates="product")

    def __repr__(self) -> str:
        return f"<Product {self.id}: {self.name}>"


class MetricDefinition(Base):
    """Category-scoped metric schema entry. Reference data."""

    __tablename__ = "metric_definitions"
    __table_args__ = (UniqueConstraint("category_id", "code", name="uq_metric_category_code"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="CASCADE"),
        index=True,
    )
    code: Mapped[str] = mapped_column(String(100), index=True)
    label: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_type: Mapped[MetricType] = mapped_column(
        Enum(MetricType, values_callable=enum_values)
    )
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_filterable: Mapped[bool] = mapped_column(Boolean, default=True)
    is_qualitative: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Relationships
    category: Mapped["Category"] = relationship(back_populates="metric_definitions")

    def __repr__(self) -> str:
        return f"<MetricDefinition {self.code} ({self.data_type.value})>"


class ProductMetricValue(Base):
    """Recorded value of one metric for one product."""

    __tablename__ = "product_metric_values"

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )
    metric_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("metric_definitions.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    numeric_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 4), nullable=True)
    boolean_value: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    string_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ProductMetricValue {self.product_id}/{self.metric_id}>"


class Review(Base):
    """Buyer review with a 1-5 rating."""

    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
    )
    buyer_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True))
    rating: Mapped[int] = mapped_column(SmallInteger)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Review {self.product_id}: {self.rating}>"


class ProductFeature(Base):
    """Seller-listed product capability."""

    __tablename__ = "product_features"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
    )
    feature_name: Mapped[str] = mapped_column(String(255))
    feature_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    feature_category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    relevance_score: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("50"))

    # Relationships
    product: Mapped["Product"] = relationship(back_populates="features")

    def __repr__(self) -> str:
        return f"<ProductFeature {self.feature_name}>"


class ProductScore(Base):
    """Cached score breakdown. Recomputed from metrics, reviews and features."""

    __tablename__ = "product_scores"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        unique=True,
        index=True,
    )

    fit_score: Mapped[int] = mapped_column(Integer, default=0)
    feature_score: Mapped[int] = mapped_column(Integer, default=0)
    integration_score: Mapped[int] = mapped_column(Integer, default=0)
    review_score: Mapped[int] = mapped_column(Integer, default=0)
    overall_score: Mapped[int] = mapped_column(Integer, default=0)
    score_breakdown: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    product: Mapped["Product"] = relationship(back_populates="score")

    def __repr__(self) -> str:
        return f"<ProductScore {self.product_id}: {self.overall_score}>"
