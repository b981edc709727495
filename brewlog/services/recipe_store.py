"""Recipe persistence: CRUD, search, favorites and batch delete.

A recipe row and its collection links are always written in one
transaction; a failure rolls both back.
"""
import logging
import uuid
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from brewlog.database import transaction
from brewlog.models import Collection, Recipe, RecipeCollection
from brewlog.schemas.recipe import (
    BatchDeleteResult,
    BatchItemError,
    BeanInfo,
    BrewingParameters,
    Measurements,
    RecipeInput,
    RecipeResponse,
    RecipeSummary,
)
from brewlog.schemas.sensation import (
    CVAAffectiveAssessment,
    CVADescriptiveAssessment,
    QuickTastingAssessment,
    SensationRecord,
    TraditionalSCAEvaluation,
)
from brewlog.services.errors import RecipeNotFoundError, RecipeValidationError
from brewlog.services.recipe_validation import transform_recipe_input

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "date_created": Recipe.date_created,
    "date_modified": Recipe.date_modified,
    "recipe_name": Recipe.recipe_name,
    "overall_impression": Recipe.overall_impression,
}

SEARCH_COLUMNS = (
    Recipe.recipe_name,
    Recipe.origin,
    Recipe.processing_method,
    Recipe.brewing_method,
    Recipe.grinder_model,
    Recipe.coffee_bean_brand,
    Recipe.tasting_notes,
)


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _json_or_none(model) -> Optional[dict]:
    if model is None:
        return None
    data = model.model_dump(mode="json", exclude_none=True)
    return data or None


# ============================================================================
# Row <-> schema mapping
# ============================================================================


def _apply_input(recipe: Recipe, data: RecipeInput) -> None:
    """Copy every mutable field from validated, transformed input onto the row."""
    bean = data.bean_info
    brew = data.brewing_parameters
    m = data.measurements
    s = data.sensation_record

    recipe.recipe_name = data.recipe_name
    recipe.is_favorite = data.is_favorite

    recipe.coffee_bean_brand = bean.coffee_bean_brand
    recipe.origin = _plain(bean.origin)
    recipe.processing_method = _plain(bean.processing_method)
    recipe.altitude = bean.altitude
    recipe.roasting_date = bean.roasting_date
    recipe.roasting_level = _plain(bean.roasting_level)

    recipe.water_temperature = brew.water_temperature
    recipe.brewing_method = _plain(brew.brewing_method)
    recipe.grinder_model = brew.grinder_model
    recipe.grinder_unit = brew.grinder_unit
    recipe.filtering_tools = brew.filtering_tools
    if isinstance(brew.turbulence, list):
        recipe.turbulence = [step.model_dump(mode="json") for step in brew.turbulence]
    else:
        recipe.turbulence = brew.turbulence
    recipe.additional_notes = brew.additional_notes

    recipe.coffee_beans = m.coffee_beans
    recipe.water = m.water
    recipe.coffee_water_ratio = m.coffee_water_ratio
    recipe.brewed_coffee_weight = m.brewed_coffee_weight
    recipe.tds = m.tds
    recipe.extraction_yield = m.extraction_yield

    recipe.evaluation_system = _plain(s.evaluation_system)
    recipe.overall_impression = s.overall_impression
    recipe.acidity = s.acidity
    recipe.body = s.body
    recipe.sweetness = s.sweetness
    recipe.flavor = s.flavor
    recipe.aftertaste = s.aftertaste
    recipe.balance = s.balance
    recipe.tasting_notes = s.tasting_notes
    recipe.traditional_sca = _json_or_none(s.traditional_sca)
    recipe.cva_descriptive = _json_or_none(s.cva_descriptive)
    recipe.cva_affective = _json_or_none(s.cva_affective)
    recipe.quick_tasting = _json_or_none(s.quick_tasting)


def recipe_to_response(recipe: Recipe) -> RecipeResponse:
    """Build the API representation of a recipe row."""
    return RecipeResponse(
        recipe_id=recipe.id,
        recipe_name=recipe.recipe_name,
        date_created=recipe.date_created,
        date_modified=recipe.date_modified,
        is_favorite=bool(recipe.is_favorite),
        collections=recipe.collection_ids,
        bean_info=BeanInfo(
            coffee_bean_brand=recipe.coffee_bean_brand,
            origin=recipe.origin,
            processing_method=recipe.processing_method,
            altitude=recipe.altitude,
            roasting_date=recipe.roasting_date,
            roasting_level=recipe.roasting_level,
        ),
        brewing_parameters=BrewingParameters(
            water_temperature=recipe.water_temperature,
            brewing_method=recipe.brewing_method,
            grinder_model=recipe.grinder_model,
            grinder_unit=recipe.grinder_unit,
            filtering_tools=recipe.filtering_tools,
            turbulence=recipe.turbulence,
            additional_notes=recipe.additional_notes,
        ),
        measurements=Measurements(
            coffee_beans=recipe.coffee_beans,
            water=recipe.water,
            coffee_water_ratio=recipe.coffee_water_ratio,
            brewed_coffee_weight=recipe.brewed_coffee_weight,
            tds=recipe.tds,
            extraction_yield=recipe.extraction_yield,
        ),
        sensation_record=SensationRecord(
            evaluation_system=recipe.evaluation_system,
            overall_impression=recipe.overall_impression,
            acidity=recipe.acidity,
            body=recipe.body,
            sweetness=recipe.sweetness,
            flavor=recipe.flavor,
            aftertaste=recipe.aftertaste,
            balance=recipe.balance,
            tasting_notes=recipe.tasting_notes,
            traditional_sca=(
                TraditionalSCAEvaluation.model_validate(recipe.traditional_sca)
                if recipe.traditional_sca else None
            ),
            cva_descriptive=(
                CVADescriptiveAssessment.model_validate(recipe.cva_descriptive)
                if recipe.cva_descriptive else None
            ),
            cva_affective=(
                CVAAffectiveAssessment.model_validate(recipe.cva_affective)
                if recipe.cva_affective else None
            ),
            quick_tasting=(
                QuickTastingAssessment.model_validate(recipe.quick_tasting)
                if recipe.quick_tasting else None
            ),
        ),
    )


def recipe_to_summary(recipe: Recipe) -> RecipeSummary:
    return RecipeSummary(
        recipe_id=recipe.id,
        recipe_name=recipe.recipe_name,
        date_created=recipe.date_created,
        date_modified=recipe.date_modified,
        is_favorite=bool(recipe.is_favorite),
        origin=recipe.origin,
        brewing_method=recipe.brewing_method,
        overall_impression=recipe.overall_impression,
        coffee_water_ratio=recipe.coffee_water_ratio,
        collections=recipe.collection_ids,
    )


def response_to_input(recipe: RecipeResponse) -> RecipeInput:
    """Strip identity and timestamps so a stored recipe can be written again."""
    return RecipeInput(
        recipe_name=recipe.recipe_name,
        is_favorite=recipe.is_favorite,
        collections=list(recipe.collections),
        bean_info=recipe.bean_info,
        brewing_parameters=recipe.brewing_parameters,
        measurements=recipe.measurements,
        sensation_record=recipe.sensation_record,
    )


# ============================================================================
# Collection links
# ============================================================================


def _sync_collection_links(db: Session, recipe: Recipe, collection_ids: Iterable[UUID]) -> None:
    """Make the recipe's links match collection_ids exactly."""
    wanted = list(dict.fromkeys(collection_ids))
    if wanted:
        found = {
            row.id for row in db.query(Collection.id).filter(Collection.id.in_(wanted)).all()
        }
        missing = [cid for cid in wanted if cid not in found]
        if missing:
            raise RecipeValidationError(
                [("collections", f"Collection {cid} not found") for cid in missing]
            )

    for link in list(recipe.collection_links):
        if link.collection_id not in wanted:
            recipe.collection_links.remove(link)

    existing = set(recipe.collection_ids)
    for cid in wanted:
        if cid not in existing:
            recipe.collection_links.append(RecipeCollection(collection_id=cid))


# ============================================================================
# CRUD
# ============================================================================


def get_recipe(db: Session, recipe_id: UUID) -> Optional[Recipe]:
    return (
        db.query(Recipe)
        .options(selectinload(Recipe.collection_links))
        .filter(Recipe.id == recipe_id)
        .first()
    )


def require_recipe(db: Session, recipe_id: UUID) -> Recipe:
    recipe = get_recipe(db, recipe_id)
    if recipe is None:
        raise RecipeNotFoundError(f"Recipe {recipe_id} not found")
    return recipe


def create_recipe(
    db: Session,
    data: RecipeInput,
    recipe_id: Optional[UUID] = None,
    date_created: Optional[datetime] = None,
    date_modified: Optional[datetime] = None,
) -> Recipe:
    """Insert a recipe and its collection links in one transaction.

    recipe_id and the dates are only passed when restoring a backup.
    """
    data = transform_recipe_input(data)
    now = datetime.utcnow()
    recipe = Recipe(
        id=recipe_id or uuid.uuid4(),
        date_created=date_created or now,
        date_modified=date_modified or now,
    )
    _apply_input(recipe, data)

    with transaction(db):
        _sync_collection_links(db, recipe, data.collections)
        db.add(recipe)

    db.refresh(recipe)
    logger.info(f"Created recipe {recipe.id} '{recipe.recipe_name}'")
    return recipe


def update_recipe(
    db: Session,
    recipe_id: UUID,
    data: RecipeInput,
    date_modified: Optional[datetime] = None,
) -> Recipe:
    """Replace every mutable field and the collection links."""
    recipe = require_recipe(db, recipe_id)
    data = transform_recipe_input(data)

    with transaction(db):
        _apply_input(recipe, data)
        _sync_collection_links(db, recipe, data.collections)
        recipe.date_modified = date_modified or datetime.utcnow()

    db.refresh(recipe)
    logger.info(f"Updated recipe {recipe.id}")
    return recipe


def delete_recipe(db: Session, recipe_id: UUID) -> None:
    recipe = require_recipe(db, recipe_id)
    db.delete(recipe)
    db.commit()
    logger.info(f"Deleted recipe {recipe_id}")


def toggle_favorite(db: Session, recipe_id: UUID) -> Recipe:
    recipe = require_recipe(db, recipe_id)
    recipe.is_favorite = not recipe.is_favorite
    recipe.date_modified = datetime.utcnow()
    db.commit()
    db.refresh(recipe)
    return recipe


def count_recipes(db: Session) -> int:
    return db.query(func.count(Recipe.id)).scalar() or 0


def batch_delete_recipes(db: Session, recipe_ids: list[UUID]) -> BatchDeleteResult:
    """Delete each recipe independently; failures are reported, not rolled back."""
    result = BatchDeleteResult()
    for recipe_id in recipe_ids:
        recipe = get_recipe(db, recipe_id)
        if recipe is None:
            result.failed.append(recipe_id)
            result.errors.append(BatchItemError(id=str(recipe_id), error="Recipe not found"))
            continue
        try:
            db.delete(recipe)
            db.commit()
            result.deleted.append(recipe_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Batch delete failed for recipe {recipe_id}: {e}")
            result.failed.append(recipe_id)
            result.errors.append(BatchItemError(id=str(recipe_id), error=str(e)))

    logger.info(f"Batch delete: {len(result.deleted)} deleted, {len(result.failed)} failed")
    return result


def list_recipes(
    db: Session,
    q: Optional[str] = None,
    origin: Optional[str] = None,
    processing_method: Optional[str] = None,
    brewing_method: Optional[str] = None,
    roasting_level: Optional[str] = None,
    favorites_only: bool = False,
    collection_id: Optional[UUID] = None,
    min_rating: Optional[int] = None,
    max_rating: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    sort_by: str = "date_created",
    sort_order: str = "desc",
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[Recipe]:
    """Filtered, sorted recipe query. All filters combine with AND."""
    query = db.query(Recipe).options(selectinload(Recipe.collection_links))

    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(*(col.ilike(pattern) for col in SEARCH_COLUMNS)))
    if origin:
        query = query.filter(Recipe.origin == origin)
    if processing_method:
        query = query.filter(Recipe.processing_method == processing_method)
    if brewing_method:
        query = query.filter(Recipe.brewing_method == brewing_method)
    if roasting_level:
        query = query.filter(Recipe.roasting_level == roasting_level)
    if favorites_only:
        query = query.filter(Recipe.is_favorite == True)
    if collection_id:
        query = query.join(RecipeCollection).filter(RecipeCollection.collection_id == collection_id)
    if min_rating is not None:
        query = query.filter(Recipe.overall_impression >= min_rating)
    if max_rating is not None:
        query = query.filter(Recipe.overall_impression <= max_rating)
    if date_from:
        query = query.filter(Recipe.date_created >= datetime.combine(date_from, datetime.min.time()))
    if date_to:
        # inclusive of the whole end day
        end = datetime.combine(date_to + timedelta(days=1), datetime.min.time())
        query = query.filter(Recipe.date_created < end)

    column = SORT_COLUMNS.get(sort_by, Recipe.date_created)
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), Recipe.id)

    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def search_recipes(db: Session, q: str) -> list[Recipe]:
    return list_recipes(db, q=q)
