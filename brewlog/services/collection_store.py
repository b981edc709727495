"""Collection persistence, membership and statistics."""
import logging
from collections import Counter
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from brewlog.models import Collection, Recipe, RecipeCollection
from brewlog.schemas.collection import (
    BatchAddResult,
    BatchRemoveResult,
    CollectionCreate,
    CollectionResponse,
    CollectionStats,
    CollectionSummary,
    CollectionUpdate,
)
from brewlog.services.errors import (
    CollectionNotFoundError,
    DuplicateCollectionError,
    RecipeNotFoundError,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Collection.name,
    "date_created": Collection.date_created,
    "date_modified": Collection.date_modified,
}


# ============================================================================
# Stats and response mapping
# ============================================================================


def _most_common(values: list[Optional[str]]) -> Optional[str]:
    counts = Counter(v for v in values if v)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def calculate_collection_stats(collection: Collection) -> CollectionStats:
    recipes = list(collection.recipes)
    if not recipes:
        return CollectionStats(last_activity_date=collection.date_modified)

    ratings = [r.overall_impression for r in recipes if r.overall_impression is not None]
    created = [r.date_created for r in recipes]
    activity = [r.date_modified for r in recipes] + [collection.date_modified]

    return CollectionStats(
        total_recipes=len(recipes),
        average_overall_impression=round(sum(ratings) / len(ratings), 2) if ratings else None,
        most_used_brewing_method=_most_common([r.brewing_method for r in recipes]),
        most_used_origin=_most_common([r.origin for r in recipes]),
        date_range_start=min(created),
        date_range_end=max(created),
        last_activity_date=max(activity),
    )


def collection_to_response(collection: Collection) -> CollectionResponse:
    return CollectionResponse(
        collection_id=collection.id,
        name=collection.name,
        description=collection.description,
        color=collection.color,
        is_private=collection.is_private,
        is_default=collection.is_default,
        tags=collection.tags or [],
        date_created=collection.date_created,
        date_modified=collection.date_modified,
        recipe_ids=[link.recipe_id for link in collection.recipe_links],
        stats=calculate_collection_stats(collection),
    )


def collection_to_summary(collection: Collection) -> CollectionSummary:
    stats = calculate_collection_stats(collection)
    return CollectionSummary(
        collection_id=collection.id,
        name=collection.name,
        description=collection.description,
        color=collection.color,
        is_private=collection.is_private,
        is_default=collection.is_default,
        tags=collection.tags or [],
        recipe_count=stats.total_recipes,
        date_created=collection.date_created,
        date_modified=collection.date_modified,
        average_rating=stats.average_overall_impression,
        last_activity_date=stats.last_activity_date,
    )


# ============================================================================
# CRUD
# ============================================================================


def get_collection(db: Session, collection_id: UUID) -> Optional[Collection]:
    return (
        db.query(Collection)
        .options(selectinload(Collection.recipe_links), selectinload(Collection.recipes))
        .filter(Collection.id == collection_id)
        .first()
    )


def require_collection(db: Session, collection_id: UUID) -> Collection:
    collection = get_collection(db, collection_id)
    if collection is None:
        raise CollectionNotFoundError(f"Collection {collection_id} not found")
    return collection


def _check_name_available(db: Session, name: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Collection).filter(Collection.name == name)
    if exclude_id is not None:
        query = query.filter(Collection.id != exclude_id)
    if query.first():
        raise DuplicateCollectionError(f"A collection named '{name}' already exists")


def create_collection(
    db: Session,
    data: CollectionCreate,
    collection_id: Optional[UUID] = None,
    date_created: Optional[datetime] = None,
) -> Collection:
    _check_name_available(db, data.name)
    now = datetime.utcnow()
    collection = Collection(
        name=data.name,
        description=data.description,
        color=data.color.value,
        is_private=data.is_private,
        is_default=data.is_default,
        tags=list(data.tags),
        date_created=date_created or now,
        date_modified=now,
    )
    if collection_id is not None:
        collection.id = collection_id
    db.add(collection)
    db.commit()
    db.refresh(collection)
    logger.info(f"Created collection {collection.id} '{collection.name}'")
    return collection


def update_collection(db: Session, collection_id: UUID, data: CollectionUpdate) -> Collection:
    collection = require_collection(db, collection_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("name") and update_data["name"] != collection.name:
        _check_name_available(db, update_data["name"], exclude_id=collection_id)

    for field, value in update_data.items():
        if value is None and field in ("name", "color", "is_private", "is_default"):
            continue
        if field == "color":
            value = value.value
        if field == "tags":
            value = list(value or [])
        setattr(collection, field, value)

    collection.date_modified = datetime.utcnow()
    db.commit()
    db.refresh(collection)
    return collection


def delete_collection(db: Session, collection_id: UUID) -> None:
    """Delete a collection and its links; member recipes are kept."""
    collection = require_collection(db, collection_id)
    db.delete(collection)
    db.commit()
    logger.info(f"Deleted collection {collection_id}")


def list_collections(
    db: Session,
    is_private: Optional[bool] = None,
    color: Optional[str] = None,
    search_query: Optional[str] = None,
    sort_by: str = "date_created",
    sort_order: str = "desc",
) -> list[Collection]:
    query = db.query(Collection).options(
        selectinload(Collection.recipe_links), selectinload(Collection.recipes)
    )
    if is_private is not None:
        query = query.filter(Collection.is_private == is_private)
    if color:
        query = query.filter(Collection.color == color)
    if search_query and search_query.strip():
        pattern = f"%{search_query.strip()}%"
        query = query.filter(or_(Collection.name.ilike(pattern), Collection.description.ilike(pattern)))

    column = SORT_COLUMNS.get(sort_by, Collection.date_created)
    return query.order_by(column.asc() if sort_order == "asc" else column.desc()).all()


def count_collections(db: Session) -> int:
    return db.query(func.count(Collection.id)).scalar() or 0


# ============================================================================
# Membership
# ============================================================================


def add_recipe_to_collection(db: Session, collection_id: UUID, recipe_id: UUID) -> bool:
    """Link a recipe. Returns False when it was already a member."""
    collection = require_collection(db, collection_id)
    if db.query(Recipe.id).filter(Recipe.id == recipe_id).first() is None:
        raise RecipeNotFoundError(f"Recipe {recipe_id} not found")

    existing = db.get(RecipeCollection, (recipe_id, collection_id))
    if existing is not None:
        return False

    db.add(RecipeCollection(recipe_id=recipe_id, collection_id=collection_id))
    collection.date_modified = datetime.utcnow()
    db.commit()
    return True


def remove_recipe_from_collection(db: Session, collection_id: UUID, recipe_id: UUID) -> bool:
    """Unlink a recipe. Returns False when it was not a member."""
    collection = require_collection(db, collection_id)
    link = db.get(RecipeCollection, (recipe_id, collection_id))
    if link is None:
        return False

    db.delete(link)
    collection.date_modified = datetime.utcnow()
    db.commit()
    return True


def batch_add_recipes(db: Session, collection_id: UUID, recipe_ids: list[UUID]) -> BatchAddResult:
    require_collection(db, collection_id)
    result = BatchAddResult()
    for recipe_id in recipe_ids:
        try:
            add_recipe_to_collection(db, collection_id, recipe_id)
            result.added.append(recipe_id)
        except RecipeNotFoundError as e:
            logger.warning(f"Batch add to collection {collection_id} skipped: {e}")
            result.failed.append(recipe_id)
    return result


def batch_remove_recipes(db: Session, collection_id: UUID, recipe_ids: list[UUID]) -> BatchRemoveResult:
    require_collection(db, collection_id)
    result = BatchRemoveResult()
    for recipe_id in recipe_ids:
        if remove_recipe_from_collection(db, collection_id, recipe_id):
            result.removed.append(recipe_id)
        else:
            result.failed.append(recipe_id)
    return result


def recipes_in_collection(db: Session, collection_id: UUID) -> list[Recipe]:
    require_collection(db, collection_id)
    return (
        db.query(Recipe)
        .options(selectinload(Recipe.collection_links))
        .join(RecipeCollection)
        .filter(RecipeCollection.collection_id == collection_id)
        .order_by(RecipeCollection.date_assigned.desc(), Recipe.id)
        .all()
    )


def collections_for_recipe(db: Session, recipe_id: UUID) -> list[Collection]:
    if db.query(Recipe.id).filter(Recipe.id == recipe_id).first() is None:
        raise RecipeNotFoundError(f"Recipe {recipe_id} not found")
    return (
        db.query(Collection)
        .options(selectinload(Collection.recipe_links), selectinload(Collection.recipes))
        .join(RecipeCollection)
        .filter(RecipeCollection.recipe_id == recipe_id)
        .order_by(Collection.name)
        .all()
    )


def collection_names(db: Session) -> dict[UUID, str]:
    """Id -> name lookup used when rendering exports."""
    return {row.id: row.name for row in db.query(Collection.id, Collection.name).all()}
