"""Recipe cloning with experiment templates.

A template decides the clone's name suffix, which fields are reset and
whether ratings, collections and the favorite flag carry over. Clones are
saved through the normal recipe validation, so a clone whose ratings were
cleared gets a placeholder tasting note.
"""
import logging
import re
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from brewlog.models import Recipe
from brewlog.schemas.clone import (
    BatchCloneItem,
    BatchCloneResult,
    CloneHistoryEntry,
    CloneOptions,
    CloneStats,
    CloneTemplate,
)
from brewlog.schemas.recipe import RecipeResponse
from brewlog.services import recipe_store
from brewlog.services.constants import MAX_RECENT_CLONES
from brewlog.services.errors import RecipeNotFoundError, RecipeValidationError, TemplateNotFoundError
from brewlog.services.kv_store import CLONE_HISTORY, COUNTERS, KeyValueStore
from brewlog.services.recipe_validation import validate_recipe_input

logger = logging.getLogger(__name__)

RATING_FIELDS = ("overall_impression", "acidity", "body", "sweetness", "flavor", "aftertaste", "balance")
EVALUATION_FIELDS = ("evaluation_system", "traditional_sca", "cva_descriptive", "cva_affective", "quick_tasting")

CLONE_TEMPLATES = [
    CloneTemplate(
        id="exact_copy",
        name="Exact Copy",
        description="Create an identical copy with a new name",
        suffix="Copy",
        preserve_collections=True,
        preserve_ratings=True,
    ),
    CloneTemplate(
        id="experiment_base",
        name="Experiment Base",
        description="Copy as starting point for experimentation (clear ratings)",
        suffix="Experiment",
        preserve_collections=True,
    ),
    CloneTemplate(
        id="grind_variation",
        name="Grind Variation",
        description="Copy for testing different grind sizes",
        suffix="Grind Test",
        tasting_notes="Grind size experiment - adjust grinder setting and compare",
    ),
    CloneTemplate(
        id="ratio_variation",
        name="Ratio Variation",
        description="Copy for testing different coffee-to-water ratios",
        suffix="Ratio Test",
        resets=["measurements.brewed_coffee_weight", "measurements.tds", "measurements.extraction_yield"],
        tasting_notes="Ratio variation experiment - adjust coffee-to-water ratio and compare",
    ),
    CloneTemplate(
        id="temperature_variation",
        name="Temperature Variation",
        description="Copy for testing different water temperatures",
        suffix="Temp Test",
        resets=["brewing_parameters.water_temperature"],
        tasting_notes="Temperature variation experiment - adjust water temperature and compare",
    ),
    CloneTemplate(
        id="method_variation",
        name="Method Variation",
        description="Copy for trying a different brewing method",
        suffix="Method Test",
        resets=[
            "brewing_parameters.brewing_method",
            "brewing_parameters.filtering_tools",
            "brewing_parameters.turbulence",
        ],
        tasting_notes="Method variation - experiment with different brewing technique",
    ),
]


def get_clone_template(template_id: str) -> CloneTemplate:
    for template in CLONE_TEMPLATES:
        if template.id == template_id:
            return template
    raise TemplateNotFoundError(f"Clone template {template_id} not found")


# ============================================================================
# Naming and field resets
# ============================================================================


def generate_clone_name(
    original_name: str,
    new_name: Optional[str] = None,
    add_suffix: bool = False,
    suffix: str = "Copy",
    today: Optional[date] = None,
) -> str:
    if new_name and new_name.strip():
        return new_name.strip()
    if add_suffix:
        # Avoid "Copy Copy Copy"
        pattern = re.compile(
            rf"\s+({re.escape(suffix)}|Copy|Experiment|Test)\s*(\d+|\(\d+\))?$", re.IGNORECASE
        )
        clean_name = pattern.sub("", original_name)
        return f"{clean_name} {suffix} ({(today or date.today()).isoformat()})"
    return f"{original_name} - Clone"


def _apply_resets(recipe: RecipeResponse, resets: list[str]) -> RecipeResponse:
    sections: dict[str, dict] = {}
    for path in resets:
        section, field = path.split(".", 1)
        sections.setdefault(section, {})[field] = None
    updates = {
        section: getattr(recipe, section).model_copy(update=fields)
        for section, fields in sections.items()
    }
    return recipe.model_copy(update=updates)


def _clear_ratings(recipe: RecipeResponse, tasting_notes: Optional[str]) -> RecipeResponse:
    """Drop every score, keeping a tasting note so the clone can be saved."""
    notes = (
        tasting_notes
        or recipe.sensation_record.tasting_notes
        or f"Cloned from {recipe.recipe_name} - not yet tasted"
    )
    cleared = {field: None for field in RATING_FIELDS + EVALUATION_FIELDS}
    cleared["tasting_notes"] = notes
    return recipe.model_copy(
        update={"sensation_record": recipe.sensation_record.model_copy(update=cleared)}
    )


def _resolve(options: CloneOptions) -> tuple[Optional[CloneTemplate], dict]:
    template = get_clone_template(options.template_id) if options.template_id else None
    if template is not None:
        settings = {
            "add_suffix": True,
            "suffix_pattern": template.suffix,
            "preserve_collections": template.preserve_collections,
            "preserve_ratings": template.preserve_ratings,
            "preserve_favorite": template.preserve_favorite,
        }
    else:
        settings = {
            "add_suffix": False,
            "suffix_pattern": "Copy",
            "preserve_collections": False,
            "preserve_ratings": True,
            "preserve_favorite": False,
        }
    overrides = options.model_dump(exclude_none=True, exclude={"template_id", "new_name"})
    settings.update(overrides)
    return template, settings


# ============================================================================
# Cloning
# ============================================================================


def clone_recipe(
    db: Session,
    store: KeyValueStore,
    recipe_id: UUID,
    options: Optional[CloneOptions] = None,
    today: Optional[date] = None,
) -> Recipe:
    """Create a new recipe from an existing one.

    Raises:
        RecipeNotFoundError: if the original does not exist.
        TemplateNotFoundError: if options name an unknown template.
        RecipeValidationError: if the resulting recipe is not valid.
    """
    options = options or CloneOptions()
    template, settings = _resolve(options)
    original = recipe_store.recipe_to_response(recipe_store.require_recipe(db, recipe_id))

    clone = original
    if template is not None and template.resets:
        clone = _apply_resets(clone, template.resets)
    if not settings["preserve_ratings"]:
        clone = _clear_ratings(clone, template.tasting_notes if template else None)

    clone_input = recipe_store.response_to_input(clone).model_copy(
        update={
            "recipe_name": generate_clone_name(
                original.recipe_name,
                new_name=options.new_name,
                add_suffix=settings["add_suffix"],
                suffix=settings["suffix_pattern"],
                today=today,
            ),
            "collections": list(original.collections) if settings["preserve_collections"] else [],
            "is_favorite": original.is_favorite if settings["preserve_favorite"] else False,
        }
    )
    # Re-validate: resets can leave a recipe that no longer passes the tasting rule
    clone_input = validate_recipe_input(clone_input.model_dump(mode="json", by_alias=True))

    created = recipe_store.create_recipe(db, clone_input)

    entry = CloneHistoryEntry(
        original_id=original.recipe_id,
        original_name=original.recipe_name,
        clone_id=created.id,
        clone_name=created.recipe_name,
        template_used=template.id if template else None,
        cloned_at=datetime.utcnow(),
    )
    store.push_bounded(CLONE_HISTORY, entry.model_dump(mode="json"), MAX_RECENT_CLONES)
    store.increment("clones")
    logger.info(f"Cloned recipe {recipe_id} -> {created.id} ({entry.template_used or 'no template'})")
    return created


def batch_clone_recipes(
    db: Session,
    store: KeyValueStore,
    recipe_ids: list[UUID],
    options: Optional[CloneOptions] = None,
) -> BatchCloneResult:
    """Clone each recipe independently; one failure does not stop the rest."""
    options = options or CloneOptions()
    if options.template_id:
        get_clone_template(options.template_id)
    # A fixed name would collide across the batch
    options = options.model_copy(update={"new_name": None})

    results = []
    for recipe_id in recipe_ids:
        try:
            created = clone_recipe(db, store, recipe_id, options)
            results.append(BatchCloneItem(original_id=recipe_id, success=True, clone_id=created.id))
        except (RecipeNotFoundError, RecipeValidationError) as e:
            logger.warning(f"Batch clone failed for recipe {recipe_id}: {e}")
            results.append(BatchCloneItem(original_id=recipe_id, success=False, error=str(e)))

    successful = sum(1 for r in results if r.success)
    return BatchCloneResult(
        total=len(recipe_ids),
        successful=successful,
        failed=len(recipe_ids) - successful,
        results=results,
    )


# ============================================================================
# History, statistics and suggestions
# ============================================================================


def get_clone_history(store: KeyValueStore) -> list[CloneHistoryEntry]:
    return [CloneHistoryEntry.model_validate(e) for e in store.get(CLONE_HISTORY) or []]


def clear_clone_history(store: KeyValueStore) -> None:
    store.delete(CLONE_HISTORY)


def clone_statistics(store: KeyValueStore, now: Optional[datetime] = None) -> CloneStats:
    history = get_clone_history(store)
    if not history:
        return CloneStats(total_clones=(store.get(COUNTERS) or {}).get("clones", 0))

    templates = Counter(e.template_used for e in history if e.template_used)
    originals = Counter(e.original_name for e in history)
    week_ago = (now or datetime.utcnow()) - timedelta(days=7)

    return CloneStats(
        total_clones=max((store.get(COUNTERS) or {}).get("clones", 0), len(history)),
        templates_used=dict(templates),
        most_used_template=templates.most_common(1)[0][0] if templates else None,
        most_cloned_recipe=originals.most_common(1)[0][0],
        recent_activity=sum(1 for e in history if e.cloned_at.replace(tzinfo=None) >= week_ago),
    )


def suggest_template(recipe: RecipeResponse) -> CloneTemplate:
    """Exact copy for well-rated, fully rated recipes; an experiment base otherwise."""
    s = recipe.sensation_record
    rating = s.overall_impression
    has_detailed_ratings = any(v is not None for v in (s.acidity, s.body, s.sweetness))

    if rating and rating >= 8 and has_detailed_ratings:
        return get_clone_template("exact_copy")
    return get_clone_template("experiment_base")
