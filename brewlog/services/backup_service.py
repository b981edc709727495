"""Full backups and partial restore.

A backup is a single JSON document holding every recipe and collection,
the user preferences and a few usage statistics. Restore walks the
document entity by entity: collections first so recipe links resolve,
then recipes. Failures are collected per entity and never undo what was
already restored.
"""
import json
import logging
from collections import Counter
from datetime import date, datetime
from typing import Any, Mapping, Optional
from uuid import UUID

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from brewlog.config import get_settings
from brewlog.models import Collection
from brewlog.schemas.backup import (
    BackupData,
    BackupHistoryEntry,
    BackupMetadata,
    BackupStatistics,
    RestoreOptions,
    RestoreResult,
    UserPreferences,
)
from brewlog.schemas.collection import CollectionCreate, CollectionUpdate
from brewlog.schemas.recipe import RecipeResponse
from brewlog.services import collection_store, recipe_store
from brewlog.services.constants import BACKUP_VERSION, MAX_BACKUP_HISTORY
from brewlog.services.errors import (
    BackupFormatError,
    DuplicateCollectionError,
    RecipeValidationError,
)
from brewlog.services.kv_store import (
    BACKUP_HISTORY,
    COUNTERS,
    PRE_RESTORE_BACKUP,
    USER_PREFERENCES,
    KeyValueStore,
)
from brewlog.services.recipe_validation import validate_recipe_input

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)

# Per-entity failures that are reported instead of aborting the restore
RESTORE_ERRORS = (ValidationError, RecipeValidationError, DuplicateCollectionError, ValueError)


def backup_filename(today: Optional[date] = None) -> str:
    return f"coffee-recipes-backup-{(today or date.today()).isoformat()}.json"


# ============================================================================
# Create
# ============================================================================


def get_user_preferences(store: KeyValueStore) -> UserPreferences:
    return UserPreferences.model_validate(store.get(USER_PREFERENCES) or {})


def calculate_backup_statistics(recipes: list[RecipeResponse], store: KeyValueStore) -> BackupStatistics:
    counters = store.get(COUNTERS) or {}
    ratings = [
        r.sensation_record.overall_impression for r in recipes
        if r.sensation_record.overall_impression
    ]
    origins = Counter(r.bean_info.origin.value for r in recipes)
    methods = Counter(
        r.brewing_parameters.brewing_method.value for r in recipes
        if r.brewing_parameters.brewing_method
    )
    return BackupStatistics(
        total_exports=counters.get("exports", 0),
        total_clones=counters.get("clones", 0),
        average_rating=round(sum(ratings) / len(ratings), 2) if ratings else 0,
        most_used_origin=origins.most_common(1)[0][0] if origins else "None",
        most_used_method=methods.most_common(1)[0][0] if methods else "None",
    )


def create_backup(db: Session, store: KeyValueStore) -> BackupData:
    """Snapshot every recipe and collection and record it in the backup history."""
    settings = get_settings()
    recipes = [recipe_store.recipe_to_response(r) for r in recipe_store.list_recipes(db, sort_order="asc")]
    collections = [
        collection_store.collection_to_response(c)
        for c in collection_store.list_collections(db, sort_order="asc")
    ]

    backup = BackupData(
        version=BACKUP_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        metadata=BackupMetadata(
            total_recipes=len(recipes),
            total_collections=len(collections),
            app_version=settings.APP_VERSION,
            exported_by=settings.EXPORTED_BY,
        ),
        recipes=[r.model_dump(mode="json", by_alias=True) for r in recipes],
        collections=[c.model_dump(mode="json", by_alias=True) for c in collections],
        user_preferences=get_user_preferences(store),
        statistics=calculate_backup_statistics(recipes, store),
    )

    entry = BackupHistoryEntry(
        timestamp=backup.timestamp,
        recipes_count=len(recipes),
        collections_count=len(collections),
        size=len(serialize_backup(backup)),
    )
    store.push_bounded(BACKUP_HISTORY, entry.model_dump(mode="json"), MAX_BACKUP_HISTORY)
    logger.info(f"Created backup with {len(recipes)} recipes and {len(collections)} collections")
    return backup


def serialize_backup(backup: BackupData) -> str:
    return json.dumps(backup.model_dump(mode="json", by_alias=True), indent=2)


def get_backup_history(store: KeyValueStore) -> list[BackupHistoryEntry]:
    return [BackupHistoryEntry.model_validate(e) for e in store.get(BACKUP_HISTORY) or []]


def clear_backup_history(store: KeyValueStore) -> None:
    store.delete(BACKUP_HISTORY)


# ============================================================================
# Validate
# ============================================================================


def validate_backup(data: Any) -> BackupData:
    """Check the document shape.

    Raises:
        BackupFormatError: if version, timestamp, metadata or the recipes
            list is missing or malformed.
    """
    if not isinstance(data, Mapping):
        raise BackupFormatError("Backup must be a JSON object")
    for key in ("version", "timestamp", "metadata"):
        if not data.get(key):
            raise BackupFormatError(f"Backup is missing '{key}'")
    if not isinstance(data.get("recipes"), list):
        raise BackupFormatError("Backup is missing the 'recipes' list")

    try:
        return BackupData.model_validate(data)
    except ValidationError as e:
        raise BackupFormatError(f"Invalid backup file format: {e.errors()[0]['msg']}") from e


# ============================================================================
# Restore
# ============================================================================


def _entity_id(item: Mapping, *keys: str) -> Optional[UUID]:
    for key in keys:
        if item.get(key):
            return UUID(str(item[key]))
    return None


def _entity_date(item: Mapping, *keys: str) -> Optional[datetime]:
    for key in keys:
        if item.get(key):
            return _datetime_adapter.validate_python(item[key])
    return None


def _restore_collection(db: Session, item: Mapping, overwrite: bool) -> str:
    collection_id = _entity_id(item, "collectionId", "collection_id")
    existing = collection_store.get_collection(db, collection_id) if collection_id else None

    if existing is not None and not overwrite:
        return "skipped"
    if existing is not None:
        collection_store.update_collection(db, collection_id, CollectionUpdate.model_validate(item))
        return "restored"

    collection_store.create_collection(
        db,
        CollectionCreate.model_validate(item),
        collection_id=collection_id,
        date_created=_entity_date(item, "dateCreated", "date_created"),
    )
    return "restored"


def _restore_recipe(db: Session, item: Mapping, overwrite: bool, known_collections: set[str]) -> str:
    recipe_id = _entity_id(item, "recipeId", "recipe_id")
    existing = recipe_store.get_recipe(db, recipe_id) if recipe_id else None

    if existing is not None and not overwrite:
        return "skipped"

    # Links to collections that are not in the database are dropped
    payload = dict(item)
    payload["collections"] = [
        c for c in item.get("collections") or [] if str(c) in known_collections
    ]
    data = validate_recipe_input(payload)
    date_modified = _entity_date(item, "dateModified", "date_modified")

    if existing is not None:
        recipe_store.update_recipe(db, recipe_id, data, date_modified=date_modified)
    else:
        recipe_store.create_recipe(
            db,
            data,
            recipe_id=recipe_id,
            date_created=_entity_date(item, "dateCreated", "date_created"),
            date_modified=date_modified,
        )
    return "restored"


def _restore_message(restored: int, skipped: int, errors: int) -> tuple[bool, str]:
    if restored > 0:
        message = f"Successfully restored {restored} items"
        if skipped > 0:
            message += f" ({skipped} items skipped)"
        if errors > 0:
            message += f" with {errors} errors"
        return True, message
    if skipped > 0:
        return True, f"All {skipped} items already exist (skipped)"
    return False, "No items were restored"


def restore_user_preferences(store: KeyValueStore, preferences: UserPreferences) -> None:
    """Overlay the non-empty backed-up preferences on the current ones."""
    incoming = {k: v for k, v in preferences.model_dump(by_alias=True).items() if v}
    store.update(USER_PREFERENCES, lambda current: {**(current or {}), **incoming})


def restore_backup(
    db: Session,
    store: KeyValueStore,
    data: Any,
    options: Optional[RestoreOptions] = None,
) -> RestoreResult:
    """Restore a backup document according to options.

    Raises:
        BackupFormatError: if the document itself is invalid. Per-entity
            problems are reported in the result instead.
    """
    options = options or RestoreOptions()
    backup = validate_backup(data)
    result = RestoreResult()
    stats = result.statistics

    if options.create_backup_before_restore:
        snapshot = create_backup(db, store)
        store.set(PRE_RESTORE_BACKUP, snapshot.model_dump(mode="json", by_alias=True))

    if options.include_collections:
        for item in backup.collections:
            try:
                outcome = _restore_collection(db, item, options.overwrite_existing)
            except RESTORE_ERRORS as e:
                result.errors.append(f'Failed to restore collection "{item.get("name")}": {e}')
                continue
            except SQLAlchemyError as e:
                db.rollback()
                result.errors.append(f'Error restoring collection "{item.get("name")}": {e}')
                continue
            if outcome == "skipped":
                stats.collections_skipped += 1
            else:
                stats.collections_restored += 1

    if options.include_recipes:
        known_collections = {str(row.id) for row in db.query(Collection.id).all()}
        for item in backup.recipes:
            name = item.get("recipeName") or item.get("recipe_name")
            try:
                outcome = _restore_recipe(db, item, options.overwrite_existing, known_collections)
            except RESTORE_ERRORS as e:
                result.errors.append(f'Failed to restore recipe "{name}": {e}')
                continue
            except SQLAlchemyError as e:
                db.rollback()
                result.errors.append(f'Error restoring recipe "{name}": {e}')
                continue
            if outcome == "skipped":
                stats.recipes_skipped += 1
            else:
                stats.recipes_restored += 1

    if options.include_user_preferences:
        restore_user_preferences(store, backup.user_preferences)

    stats.errors = len(result.errors)
    for error in result.errors:
        logger.warning(f"Restore: {error}")

    result.success, result.message = _restore_message(
        stats.recipes_restored + stats.collections_restored,
        stats.recipes_skipped + stats.collections_skipped,
        stats.errors,
    )
    logger.info(f"Restore finished: {result.message}")
    return result
