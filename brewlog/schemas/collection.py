"""Pydantic schemas for Collection."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from brewlog.schemas.base import CamelModel
from brewlog.services.constants import CollectionColor


def _clean_tags(tags: Optional[list[str]]) -> Optional[list[str]]:
    if tags is None:
        return None
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class CollectionBase(CamelModel):
    """Base collection fields."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: CollectionColor = CollectionColor.BLUE
    is_private: bool = False
    is_default: bool = False
    tags: list[str] = Field(default_factory=list, max_length=20)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags")
    @classmethod
    def check_tags(cls, value):
        value = _clean_tags(value)
        if any(len(tag) > 50 for tag in value):
            raise ValueError("Tags must be 50 characters or less")
        return value


class CollectionCreate(CollectionBase):
    """Schema for creating a collection."""

    pass


class CollectionUpdate(CamelModel):
    """Schema for updating a collection. All fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[CollectionColor] = None
    is_private: Optional[bool] = None
    is_default: Optional[bool] = None
    tags: Optional[list[str]] = Field(None, max_length=20)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags")
    @classmethod
    def check_tags(cls, value):
        value = _clean_tags(value)
        if value and any(len(tag) > 50 for tag in value):
            raise ValueError("Tags must be 50 characters or less")
        return value


class CollectionStats(CamelModel):
    """Aggregates over the recipes in a collection."""

    total_recipes: int = 0
    average_overall_impression: Optional[float] = None
    most_used_brewing_method: Optional[str] = None
    most_used_origin: Optional[str] = None
    date_range_start: Optional[datetime] = None
    date_range_end: Optional[datetime] = None
    last_activity_date: Optional[datetime] = None


class CollectionResponse(CollectionBase):
    """Full collection with member ids and stats."""

    collection_id: UUID
    date_created: datetime
    date_modified: datetime
    recipe_ids: list[UUID] = []
    stats: CollectionStats = CollectionStats()


class CollectionSummary(CamelModel):
    """Brief collection for list views."""

    collection_id: UUID
    name: str
    description: Optional[str] = None
    color: CollectionColor
    is_private: bool
    is_default: bool
    tags: list[str] = []
    recipe_count: int = 0
    date_created: datetime
    date_modified: datetime
    average_rating: Optional[float] = None
    last_activity_date: Optional[datetime] = None


class CollectionList(CamelModel):
    """Schema for list of collections."""

    collections: list[CollectionSummary]
    count: int


class CollectionCount(CamelModel):
    count: int


class RecipeIdsRequest(CamelModel):
    recipe_ids: list[UUID] = Field(..., min_length=1)


class BatchAddResult(CamelModel):
    added: list[UUID] = []
    failed: list[UUID] = []


class BatchRemoveResult(CamelModel):
    removed: list[UUID] = []
    failed: list[UUID] = []
