"""Recipe CRUD, search, favorite and clone endpoints."""
import logging
from datetime import date
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from brewlog.database import get_db
from brewlog.schemas.clone import BatchCloneRequest, BatchCloneResult, CloneOptions, CloneTemplate
from brewlog.schemas.collection import CollectionList
from brewlog.schemas.recipe import (
    BatchDeleteRequest,
    BatchDeleteResult,
    RecipeCount,
    RecipeList,
    RecipeResponse,
    RecipeSummary,
)
from brewlog.services import clone_service, collection_store, recipe_store
from brewlog.services.errors import RecipeNotFoundError, TemplateNotFoundError
from brewlog.services.kv_store import KeyValueStore, get_store
from brewlog.services.recipe_validation import validate_recipe_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])


class RecipeFilters:
    """Query parameters shared by the list endpoints."""

    def __init__(
        self,
        q: Optional[str] = Query(None, description="Search name, origin, method, grinder, notes"),
        origin: Optional[str] = None,
        processing_method: Optional[str] = None,
        brewing_method: Optional[str] = None,
        roasting_level: Optional[str] = None,
        favorites_only: bool = False,
        collection_id: Optional[UUID] = None,
        min_rating: Optional[int] = Query(None, ge=1, le=10),
        max_rating: Optional[int] = Query(None, ge=1, le=10),
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sort_by: str = Query("date_created", pattern="^(date_created|date_modified|recipe_name|overall_impression)$"),
        sort_order: str = Query("desc", pattern="^(asc|desc)$"),
        limit: Optional[int] = Query(None, ge=1, le=1000),
        offset: int = Query(0, ge=0),
    ):
        self.params = {
            "q": q,
            "origin": origin,
            "processing_method": processing_method,
            "brewing_method": brewing_method,
            "roasting_level": roasting_level,
            "favorites_only": favorites_only,
            "collection_id": collection_id,
            "min_rating": min_rating,
            "max_rating": max_rating,
            "date_from": date_from,
            "date_to": date_to,
            "sort_by": sort_by,
            "sort_order": sort_order,
            "limit": limit,
            "offset": offset,
        }


# ============================================================================
# Collection-level endpoints (declared before /{recipe_id})
# ============================================================================


@router.get("", response_model=RecipeList)
def list_recipes(filters: RecipeFilters = Depends(), db: Session = Depends(get_db)):
    """List recipes with filters, sorting and paging."""
    recipes = recipe_store.list_recipes(db, **filters.params)
    return RecipeList(
        recipes=[recipe_store.recipe_to_response(r) for r in recipes],
        count=len(recipes),
    )


@router.get("/summary", response_model=list[RecipeSummary])
def list_recipe_summaries(filters: RecipeFilters = Depends(), db: Session = Depends(get_db)):
    """Brief recipes for list views."""
    return [recipe_store.recipe_to_summary(r) for r in recipe_store.list_recipes(db, **filters.params)]


@router.get("/search", response_model=RecipeList)
def search_recipes(
    q: str = Query(..., min_length=1, description="Search text"),
    db: Session = Depends(get_db),
):
    recipes = recipe_store.search_recipes(db, q)
    return RecipeList(
        recipes=[recipe_store.recipe_to_response(r) for r in recipes],
        count=len(recipes),
    )


@router.get("/stats/count", response_model=RecipeCount)
def count_recipes(db: Session = Depends(get_db)):
    return RecipeCount(count=recipe_store.count_recipes(db))


@router.post("/batch-delete", response_model=BatchDeleteResult)
def batch_delete_recipes(data: BatchDeleteRequest, db: Session = Depends(get_db)):
    """Delete several recipes; each id succeeds or fails on its own."""
    return recipe_store.batch_delete_recipes(db, data.recipe_ids)


@router.post("/clone/batch", response_model=BatchCloneResult)
def batch_clone_recipes(
    data: BatchCloneRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    try:
        return clone_service.batch_clone_recipes(db, store, data.recipe_ids, data.options)
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=RecipeResponse, status_code=201)
def create_recipe(payload: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """Create a recipe. Validation errors come back as 422 with every failing field."""
    data = validate_recipe_input(payload)
    recipe = recipe_store.create_recipe(db, data)
    return recipe_store.recipe_to_response(recipe)


# ============================================================================
# Single recipe endpoints
# ============================================================================


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(recipe_id: UUID, db: Session = Depends(get_db)):
    recipe = recipe_store.get_recipe(db, recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe_store.recipe_to_response(recipe)


@router.put("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: UUID,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """Replace a recipe. Omitted optional fields are cleared."""
    if not recipe_store.get_recipe(db, recipe_id):
        raise HTTPException(status_code=404, detail="Recipe not found")

    data = validate_recipe_input(payload)
    recipe = recipe_store.update_recipe(db, recipe_id, data)
    return recipe_store.recipe_to_response(recipe)


@router.delete("/{recipe_id}", status_code=204)
def delete_recipe(recipe_id: UUID, db: Session = Depends(get_db)):
    """Delete a recipe and its collection memberships."""
    try:
        recipe_store.delete_recipe(db, recipe_id)
    except RecipeNotFoundError:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return None


@router.patch("/{recipe_id}/favorite", response_model=RecipeResponse)
def toggle_favorite(recipe_id: UUID, db: Session = Depends(get_db)):
    try:
        recipe = recipe_store.toggle_favorite(db, recipe_id)
    except RecipeNotFoundError:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe_store.recipe_to_response(recipe)


@router.get("/{recipe_id}/collections", response_model=CollectionList)
def get_recipe_collections(recipe_id: UUID, db: Session = Depends(get_db)):
    try:
        collections = collection_store.collections_for_recipe(db, recipe_id)
    except RecipeNotFoundError:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return CollectionList(
        collections=[collection_store.collection_to_summary(c) for c in collections],
        count=len(collections),
    )


@router.post("/{recipe_id}/clone", response_model=RecipeResponse, status_code=201)
def clone_recipe(
    recipe_id: UUID,
    options: Optional[CloneOptions] = None,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    """Clone a recipe, optionally through one of the experiment templates."""
    try:
        clone = clone_service.clone_recipe(db, store, recipe_id, options)
    except RecipeNotFoundError:
        raise HTTPException(status_code=404, detail="Recipe not found")
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return recipe_store.recipe_to_response(clone)


@router.get("/{recipe_id}/clone-suggestion", response_model=CloneTemplate)
def suggest_clone_template(recipe_id: UUID, db: Session = Depends(get_db)):
    recipe = recipe_store.get_recipe(db, recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return clone_service.suggest_template(recipe_store.recipe_to_response(recipe))
