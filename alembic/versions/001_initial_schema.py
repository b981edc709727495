"""Initial schema - recipes and collections

Revision ID: 001
Revises:
Create Date: 2026-10-17

Creates:
- recipes
- collections
- recipe_collections
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RATING_COLUMNS = (
    "overall_impression", "acidity", "body", "sweetness",
    "flavor", "aftertaste", "balance",
)


def upgrade() -> None:
    # === RECIPES ===
    op.create_table(
        "recipes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("recipe_name", sa.String(200), nullable=False),
        sa.Column("date_created", sa.TIMESTAMP, nullable=False, server_default=sa.func.now()),
        sa.Column("date_modified", sa.TIMESTAMP, nullable=False, server_default=sa.func.now()),
        sa.Column("is_favorite", sa.Boolean, nullable=False, server_default="false"),
        # Bean information
        sa.Column("coffee_bean_brand", sa.String(100)),
        sa.Column("origin", sa.String(100), nullable=False),
        sa.Column("processing_method", sa.String(50), nullable=False),
        sa.Column("altitude", sa.Integer),
        sa.Column("roasting_date", sa.TIMESTAMP),
        sa.Column("roasting_level", sa.String(20)),
        # Brewing parameters
        sa.Column("water_temperature", sa.Integer),
        sa.Column("brewing_method", sa.String(50)),
        sa.Column("grinder_model", sa.String(100), nullable=False),
        sa.Column("grinder_unit", sa.String(50), nullable=False),
        sa.Column("filtering_tools", sa.String(100)),
        sa.Column("turbulence", postgresql.JSONB),
        sa.Column("additional_notes", sa.Text),
        # Measurements
        sa.Column("coffee_beans", sa.Numeric(8, 2), nullable=False),
        sa.Column("water", sa.Numeric(8, 2), nullable=False),
        sa.Column("coffee_water_ratio", sa.Numeric(10, 2)),
        sa.Column("brewed_coffee_weight", sa.Numeric(8, 2)),
        sa.Column("tds", sa.Numeric(5, 2)),
        sa.Column("extraction_yield", sa.Numeric(5, 2)),
        # Legacy ratings
        *(sa.Column(col, sa.Integer) for col in RATING_COLUMNS),
        sa.Column("tasting_notes", sa.Text),
        # Evaluation systems
        sa.Column("evaluation_system", sa.String(20)),
        sa.Column("traditional_sca", postgresql.JSONB),
        sa.Column("cva_descriptive", postgresql.JSONB),
        sa.Column("cva_affective", postgresql.JSONB),
        sa.Column("quick_tasting", postgresql.JSONB),
        *(
            sa.CheckConstraint(
                f"{col} IS NULL OR ({col} >= 1 AND {col} <= 10)",
                name=f"ck_recipes_{col}_range",
            )
            for col in RATING_COLUMNS
        ),
        sa.CheckConstraint(
            "water_temperature IS NULL OR (water_temperature >= 80 AND water_temperature <= 100)",
            name="ck_recipes_water_temperature_range",
        ),
        sa.CheckConstraint(
            "evaluation_system IS NULL OR evaluation_system IN "
            "('traditional-sca', 'cva-descriptive', 'cva-affective', 'quick-tasting', 'legacy')",
            name="ck_recipes_evaluation_system",
        ),
    )
    op.create_index("idx_recipes_date_created", "recipes", ["date_created"])
    op.create_index("idx_recipes_origin", "recipes", ["origin"])
    op.create_index("idx_recipes_is_favorite", "recipes", ["is_favorite"])

    # === COLLECTIONS ===
    op.create_table(
        "collections",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text),
        sa.Column("color", sa.String(20), nullable=False, server_default="blue"),
        sa.Column("is_private", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("tags", postgresql.JSONB, server_default="[]"),
        sa.Column("date_created", sa.TIMESTAMP, nullable=False, server_default=sa.func.now()),
        sa.Column("date_modified", sa.TIMESTAMP, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "color IN ('blue', 'green', 'orange', 'red', 'purple', 'teal', 'pink', 'indigo', 'gray')",
            name="ck_collections_color",
        ),
    )
    op.create_index("idx_collections_date_modified", "collections", ["date_modified"])

    # === RECIPE_COLLECTIONS ===
    op.create_table(
        "recipe_collections",
        sa.Column(
            "recipe_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("recipes.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "collection_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("collections.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("date_assigned", sa.TIMESTAMP, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_recipe_collections_collection", "recipe_collections", ["collection_id"])


def downgrade() -> None:
    op.drop_index("idx_recipe_collections_collection", table_name="recipe_collections")
    op.drop_table("recipe_collections")
    op.drop_index("idx_collections_date_modified", table_name="collections")
    op.drop_table("collections")
    op.drop_index("idx_recipes_is_favorite", table_name="recipes")
    op.drop_index("idx_recipes_origin", table_name="recipes")
    op.drop_index("idx_recipes_date_created", table_name="recipes")
    op.drop_table("recipes")
