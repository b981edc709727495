"""Collection and RecipeCollection (junction) models."""
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Boolean, Text, TIMESTAMP,
    ForeignKey, CheckConstraint, Index
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship

from . import Base


class Collection(Base):
    """Named, colored grouping of recipes."""

    __tablename__ = "collections"
    __table_args__ = (
        CheckConstraint(
            "color IN ('blue', 'green', 'orange', 'red', 'purple', 'teal', 'pink', 'indigo', 'gray')",
            name="ck_collections_color",
        ),
        Index("idx_collections_date_modified", "date_modified"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text)
    color = Column(String(20), nullable=False, default="blue")
    is_private = Column(Boolean, nullable=False, default=False)
    is_default = Column(Boolean, nullable=False, default=False)
    tags = Column(JSONB, default=list)
    date_created = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    date_modified = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    recipe_links = relationship(
        "RecipeCollection",
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    recipes = relationship(
        "Recipe",
        secondary="recipe_collections",
        viewonly=True,
    )

    def __repr__(self):
        return f"<Collection(name='{self.name}', color='{self.color}')>"


class RecipeCollection(Base):
    """Many-to-many link between recipes and collections."""

    __tablename__ = "recipe_collections"
    __table_args__ = (
        Index("idx_recipe_collections_collection", "collection_id"),
    )

    recipe_id = Column(
        UUID(as_uuid=True), ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True
    )
    collection_id = Column(
        UUID(as_uuid=True), ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True
    )
    date_assigned = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)

    # Relationships
    recipe = relationship("Recipe", back_populates="collection_links")
    collection = relationship("Collection", back_populates="recipe_links")

    def __repr__(self):
        return f"<RecipeCollection(recipe_id={self.recipe_id}, collection_id={self.collection_id})>"
