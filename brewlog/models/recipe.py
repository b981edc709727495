"""Recipe model: bean info, brewing parameters, measurements and tasting record."""
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, Boolean, Text, TIMESTAMP,
    Numeric, CheckConstraint, Index
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship

from . import Base

LEGACY_RATING_COLUMNS = (
    "overall_impression", "acidity", "body", "sweetness",
    "flavor", "aftertaste", "balance",
)


def _rating_check(column: str) -> CheckConstraint:
    return CheckConstraint(
        f"{column} IS NULL OR ({column} >= 1 AND {column} <= 10)",
        name=f"ck_recipes_{column}_range",
    )


class Recipe(Base):
    """A single brew with its sensory evaluation."""

    __tablename__ = "recipes"
    __table_args__ = (
        *(_rating_check(col) for col in LEGACY_RATING_COLUMNS),
        CheckConstraint(
            "water_temperature IS NULL OR (water_temperature >= 80 AND water_temperature <= 100)",
            name="ck_recipes_water_temperature_range",
        ),
        CheckConstraint(
            "evaluation_system IS NULL OR evaluation_system IN "
            "('traditional-sca', 'cva-descriptive', 'cva-affective', 'quick-tasting', 'legacy')",
            name="ck_recipes_evaluation_system",
        ),
        Index("idx_recipes_date_created", "date_created"),
        Index("idx_recipes_origin", "origin"),
        Index("idx_recipes_is_favorite", "is_favorite"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipe_name = Column(String(200), nullable=False)
    date_created = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    date_modified = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    is_favorite = Column(Boolean, default=False, nullable=False)

    # Bean information
    coffee_bean_brand = Column(String(100))
    origin = Column(String(100), nullable=False)
    processing_method = Column(String(50), nullable=False)
    altitude = Column(Integer)  # meters above sea level
    roasting_date = Column(TIMESTAMP)
    roasting_level = Column(String(20))

    # Brewing parameters
    water_temperature = Column(Integer)  # celsius
    brewing_method = Column(String(50))
    grinder_model = Column(String(100), nullable=False)
    grinder_unit = Column(String(50), nullable=False)  # grind setting
    filtering_tools = Column(String(100))
    turbulence = Column(JSONB)  # free text or list of {actionTime, actionDetails, volume}
    additional_notes = Column(Text)

    # Measurements (grams, percentages)
    coffee_beans = Column(Numeric(8, 2, asdecimal=False), nullable=False)
    water = Column(Numeric(8, 2, asdecimal=False), nullable=False)
    coffee_water_ratio = Column(Numeric(10, 2, asdecimal=False))  # up to 10000g / 0.01g
    brewed_coffee_weight = Column(Numeric(8, 2, asdecimal=False))
    tds = Column(Numeric(5, 2, asdecimal=False))
    extraction_yield = Column(Numeric(5, 2, asdecimal=False))

    # Legacy single-scale ratings (1-10)
    overall_impression = Column(Integer)
    acidity = Column(Integer)
    body = Column(Integer)
    sweetness = Column(Integer)
    flavor = Column(Integer)
    aftertaste = Column(Integer)
    balance = Column(Integer)
    tasting_notes = Column(Text)

    # Evaluation systems
    evaluation_system = Column(String(20))
    traditional_sca = Column(JSONB)
    cva_descriptive = Column(JSONB)
    cva_affective = Column(JSONB)
    quick_tasting = Column(JSONB)

    # Relationships
    collection_links = relationship(
        "RecipeCollection",
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    collections = relationship(
        "Collection",
        secondary="recipe_collections",
        viewonly=True,
    )

    @property
    def collection_ids(self) -> list[uuid.UUID]:
        return [link.collection_id for link in self.collection_links]

    def __repr__(self):
        return f"<Recipe(recipe_name='{self.recipe_name}', origin='{self.origin}')>"
