"""Initial migration - catalog, metrics, reviews and score cache.

Revision ID: 001
Revises:
Create Date: 2025-12-05

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create enums
    product_status_enum = postgresql.ENUM(
        "draft", "published", "archived",
        name="productstatus",
        create_type=False,
    )
    product_status_enum.create(op.get_bind(), checkfirst=True)

    metric_type_enum = postgresql.ENUM(
        "number", "boolean", "string",
        name="metrictype",
        create_type=False,
    )
    metric_type_enum.create(op.get_bind(), checkfirst=True)

    # Create categories table
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("key", sa.String(50), nullable=False, unique=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )

    # Create products table
    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("seller_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("slug", sa.String(255), nullable=True, unique=True),
        sa.Column("short_description", sa.Text(), nullable=False, server_default=""),
        sa.Column("long_description", sa.Text(), nullable=True),
        # Media
        sa.Column("logo_url", sa.String(1000), nullable=True),
        sa.Column("demo_visual_url", sa.String(1000), nullable=True),
        # Pricing
        sa.Column("price_cents", sa.Integer(), nullable=False, server_default="0"),
        # Status
        sa.Column(
            "status",
            postgresql.ENUM("draft", "published", "archived", name="productstatus", create_type=False),
            nullable=False,
            server_default="published",
        ),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Create metric_definitions table
    op.create_table(
        "metric_definitions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("code", sa.String(100), nullable=False, index=True),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "data_type",
            postgresql.ENUM("number", "boolean", "string", name="metrictype", create_type=False),
            nullable=False,
        ),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("is_filterable", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("is_qualitative", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        sa.UniqueConstraint("category_id", "code", name="uq_metric_category_code"),
    )

    # Create product_metric_values table
    op.create_table(
        "product_metric_values",
        sa.Column(
            "product_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "metric_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("metric_definitions.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
        sa.Column("numeric_value", sa.Numeric(14, 4), nullable=True),
        sa.Column("boolean_value", sa.Boolean(), nullable=True),
        sa.Column("string_value", sa.Text(), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Create reviews table
    op.create_table(
        "reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "product_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("buyer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("rating", sa.SmallInteger(), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )

    # Create product_features table
    op.create_table(
        "product_features",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "product_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("feature_name", sa.String(255), nullable=False),
        sa.Column("feature_description", sa.Text(), nullable=True),
        sa.Column("feature_category", sa.String(100), nullable=True),
        sa.Column("relevance_score", sa.Numeric(5, 2), nullable=False, server_default="50"),
    )

    # Create product_scores table
    op.create_table(
        "product_scores",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "product_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
            index=True,
        ),
        sa.Column("fit_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("feature_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("integration_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("review_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("overall_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("score_breakdown", postgresql.JSON(), nullable=True),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("product_scores")
    op.drop_table("product_features")
    op.drop_table("reviews")
    op.drop_table("product_metric_values")
    op.drop_table("metric_definitions")
    op.drop_table("products")
    op.drop_table("categories")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS metrictype")
    op.execute("DROP TYPE IF EXISTS productstatus")
