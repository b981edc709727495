"""Pydantic schemas for recipe cloning."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from brewlog.schemas.base import CamelModel


class CloneTemplate(CamelModel):
    """A named set of clone options and the fields it resets."""

    id: str
    name: str
    description: str
    suffix: str
    preserve_collections: bool = False
    preserve_ratings: bool = False
    preserve_favorite: bool = False
    resets: list[str] = Field(default_factory=list, description="Dotted section.field paths cleared on the clone")
    tasting_notes: Optional[str] = None


class CloneOptions(CamelModel):
    """Per-request options; anything left unset falls back to the template."""

    template_id: Optional[str] = None
    new_name: Optional[str] = Field(None, max_length=200)
    add_suffix: Optional[bool] = None
    suffix_pattern: Optional[str] = Field(None, max_length=50)
    preserve_collections: Optional[bool] = None
    preserve_ratings: Optional[bool] = None
    preserve_favorite: Optional[bool] = None


class CloneHistoryEntry(CamelModel):
    original_id: UUID
    original_name: str
    clone_id: UUID
    clone_name: str
    template_used: Optional[str] = None
    cloned_at: datetime


class BatchCloneRequest(CamelModel):
    recipe_ids: list[UUID] = Field(..., min_length=1)
    options: CloneOptions = Field(default_factory=CloneOptions)


class BatchCloneItem(CamelModel):
    original_id: UUID
    success: bool
    clone_id: Optional[UUID] = None
    error: Optional[str] = None


class BatchCloneResult(CamelModel):
    total: int
    successful: int
    failed: int
    results: list[BatchCloneItem]


class CloneStats(CamelModel):
    total_clones: int = 0
    templates_used: dict[str, int] = {}
    most_used_template: Optional[str] = None
    most_cloned_recipe: Optional[str] = None
    recent_activity: int = 0
