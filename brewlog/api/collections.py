"""Collection CRUD and membership endpoints."""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from brewlog.database import get_db
from brewlog.schemas.collection import (
    BatchAddResult,
    BatchRemoveResult,
    CollectionCount,
    CollectionCreate,
    CollectionList,
    CollectionResponse,
    CollectionStats,
    CollectionUpdate,
    RecipeIdsRequest,
)
from brewlog.schemas.recipe import RecipeSummary
from brewlog.services import collection_store, recipe_store
from brewlog.services.constants import CollectionColor
from brewlog.services.errors import (
    CollectionNotFoundError,
    DuplicateCollectionError,
    RecipeNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/collections", tags=["collections"])


# ============================================================================
# Collection Endpoints
# ============================================================================


@router.get("", response_model=CollectionList)
def list_collections(
    is_private: Optional[bool] = None,
    color: Optional[CollectionColor] = None,
    search_query: Optional[str] = Query(None, description="Search name and description"),
    sort_by: str = Query("date_created", pattern="^(name|date_created|date_modified)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    collections = collection_store.list_collections(
        db,
        is_private=is_private,
        color=color.value if color else None,
        search_query=search_query,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return CollectionList(
        collections=[collection_store.collection_to_summary(c) for c in collections],
        count=len(collections),
    )


@router.get("/stats/count", response_model=CollectionCount)
def count_collections(db: Session = Depends(get_db)):
    return CollectionCount(count=collection_store.count_collections(db))


@router.post("", response_model=CollectionResponse, status_code=201)
def create_collection(data: CollectionCreate, db: Session = Depends(get_db)):
    try:
        collection = collection_store.create_collection(db, data)
    except DuplicateCollectionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return collection_store.collection_to_response(collection)


@router.get("/{collection_id}", response_model=CollectionResponse)
def get_collection(collection_id: UUID, db: Session = Depends(get_db)):
    collection = collection_store.get_collection(db, collection_id)
    if not collection:
        raise HTTPException(status_code=404, detail="Collection not found")
    return collection_store.collection_to_response(collection)


@router.get("/{collection_id}/stats", response_model=CollectionStats)
def get_collection_stats(collection_id: UUID, db: Session = Depends(get_db)):
    collection = collection_store.get_collection(db, collection_id)
    if not collection:
        raise HTTPException(status_code=404, detail="Collection not found")
    return collection_store.calculate_collection_stats(collection)


@router.put("/{collection_id}", response_model=CollectionResponse)
def update_collection(collection_id: UUID, data: CollectionUpdate, db: Session = Depends(get_db)):
    """Update a collection. Only provided fields change."""
    try:
        collection = collection_store.update_collection(db, collection_id, data)
    except CollectionNotFoundError:
        raise HTTPException(status_code=404, detail="Collection not found")
    except DuplicateCollectionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return collection_store.collection_to_response(collection)


@router.delete("/{collection_id}", status_code=204)
def delete_collection(collection_id: UUID, db: Session = Depends(get_db)):
    """Delete a collection. Its recipes are kept."""
    try:
        collection_store.delete_collection(db, collection_id)
    except CollectionNotFoundError:
        raise HTTPException(status_code=404, detail="Collection not found")
    return None


# ============================================================================
# Membership Endpoints
# ============================================================================


@router.get("/{collection_id}/recipes", response_model=list[RecipeSummary])
def list_collection_recipes(collection_id: UUID, db: Session = Depends(get_db)):
    try:
        recipes = collection_store.recipes_in_collection(db, collection_id)
    except CollectionNotFoundError:
        raise HTTPException(status_code=404, detail="Collection not found")
    return [recipe_store.recipe_to_summary(r) for r in recipes]


@router.post("/{collection_id}/recipes/batch-add", response_model=BatchAddResult)
def batch_add_recipes(collection_id: UUID, data: RecipeIdsRequest, db: Session = Depends(get_db)):
    try:
        return collection_store.batch_add_recipes(db, collection_id, data.recipe_ids)
    except CollectionNotFoundError:
        raise HTTPException(status_code=404, detail="Collection not found")


@router.post("/{collection_id}/recipes/batch-remove", response_model=BatchRemoveResult)
def batch_remove_recipes(collection_id: UUID, data: RecipeIdsRequest, db: Session = Depends(get_db)):
    try:
        return collection_store.batch_remove_recipes(db, collection_id, data.recipe_ids)
    except CollectionNotFoundError:
        raise HTTPException(status_code=404, detail="Collection not found")


@router.post("/{collection_id}/recipes/{recipe_id}", response_model=CollectionResponse)
def add_recipe_to_collection(collection_id: UUID, recipe_id: UUID, db: Session = Depends(get_db)):
    """Add a recipe. Adding a recipe that is already a member is a no-op."""
    try:
        collection_store.add_recipe_to_collection(db, collection_id, recipe_id)
    except CollectionNotFoundError:
        raise HTTPException(status_code=404, detail="Collection not found")
    except RecipeNotFoundError:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return collection_store.collection_to_response(collection_store.require_collection(db, collection_id))


@router.delete("/{collection_id}/recipes/{recipe_id}", status_code=204)
def remove_recipe_from_collection(collection_id: UUID, recipe_id: UUID, db: Session = Depends(get_db)):
    try:
        removed = collection_store.remove_recipe_from_collection(db, collection_id, recipe_id)
    except CollectionNotFoundError:
        raise HTTPException(status_code=404, detail="Collection not found")
    if not removed:
        raise HTTPException(status_code=404, detail="Recipe is not in this collection")
    return None
