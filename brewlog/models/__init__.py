"""SQLAlchemy models for brewlog."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models to register them with Base.metadata
from .recipe import Recipe
from .collection import Collection, RecipeCollection

__all__ = [
    "Base",
    "Recipe",
    "Collection",
    "RecipeCollection",
]
