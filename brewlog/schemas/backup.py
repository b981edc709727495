"""Pydantic schemas for backup documents and restore."""
from typing import Any, Optional

from pydantic import Field

from brewlog.schemas.base import CamelModel


class BackupMetadata(CamelModel):
    total_recipes: int = 0
    total_collections: int = 0
    app_version: str = ""
    exported_by: str = ""


class UserPreferences(CamelModel):
    theme: str = "light"
    favorite_origins: list[str] = []
    recent_searches: list[str] = []
    dismissed_suggestions: list[str] = []


class BackupStatistics(CamelModel):
    total_exports: int = 0
    total_clones: int = 0
    average_rating: float = 0
    most_used_origin: str = "None"
    most_used_method: str = "None"


class BackupData(CamelModel):
    """A complete backup document.

    Recipes and collections stay as raw dicts so one bad entry does not
    reject the whole document; each is validated when restored.
    """

    version: str
    timestamp: str
    metadata: BackupMetadata
    recipes: list[dict[str, Any]]
    collections: list[dict[str, Any]] = []
    user_preferences: UserPreferences = Field(default_factory=UserPreferences)
    statistics: BackupStatistics = Field(default_factory=BackupStatistics)


class RestoreOptions(CamelModel):
    include_recipes: bool = True
    include_collections: bool = True
    include_user_preferences: bool = True
    overwrite_existing: bool = False
    create_backup_before_restore: bool = True


class RestoreRequest(CamelModel):
    backup: dict[str, Any]
    options: RestoreOptions = Field(default_factory=RestoreOptions)


class RestoreStatistics(CamelModel):
    recipes_restored: int = 0
    collections_restored: int = 0
    recipes_skipped: int = 0
    collections_skipped: int = 0
    errors: int = 0


class RestoreResult(CamelModel):
    success: bool = False
    message: str = ""
    statistics: RestoreStatistics = Field(default_factory=RestoreStatistics)
    errors: list[str] = []


class BackupValidation(CamelModel):
    valid: bool
    error: Optional[str] = None
    metadata: Optional[BackupMetadata] = None


class BackupHistoryEntry(CamelModel):
    timestamp: str
    recipes_count: int
    collections_count: int
    size: int
