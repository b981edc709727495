"""Pydantic schemas for recipe form drafts."""
from typing import Any

from brewlog.schemas.base import CamelModel


class DraftEntry(CamelModel):
    """Raw, unvalidated form input saved while editing."""

    draft_id: str
    data: dict[str, Any]
    saved_at: str
