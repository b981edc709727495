"""Recipe input validation and derived-field transformation.

Validation is all-or-nothing: every field error plus the document-level
tasting rule is collected, then raised together as RecipeValidationError.
"""
import logging
from datetime import date
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from brewlog.schemas.recipe import RecipeInput
from brewlog.services.calculations import (
    calculate_coffee_water_ratio,
    calculate_cva_score,
    calculate_extraction_yield,
    calculate_sca_score,
)
from brewlog.services.constants import TASTING_REQUIRED_MESSAGE
from brewlog.services.errors import RecipeValidationError

logger = logging.getLogger(__name__)

LEGACY_TASTING_FIELDS = (
    "overall_impression", "acidity", "body", "sweetness",
    "flavor", "aftertaste", "balance", "tasting_notes",
)
EVALUATION_SUB_RECORDS = ("traditional_sca", "cva_descriptive", "cva_affective", "quick_tasting")


def _normalize_key(key: str) -> str:
    # "traditionalSCA", "traditional_sca" and "traditionalSca" all match
    return key.replace("_", "").lower()


# Recomputed on save; never counts as tasting input
DERIVED_SCORE_KEYS = {_normalize_key(f) for f in ("final_score", "cva_score")}


def _is_populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def has_tasting_data(sensation: Any) -> bool:
    """True when any legacy rating or any evaluation sub-record field is filled.

    Accepts a SensationRecord or a raw dict in either key spelling. Derived
    scores (finalScore, cvaScore) do not count.
    """
    if sensation is None:
        return False
    if isinstance(sensation, BaseModel):
        sensation = sensation.model_dump()
    if not isinstance(sensation, Mapping):
        return False

    values = {_normalize_key(k): v for k, v in sensation.items()}

    for field in LEGACY_TASTING_FIELDS:
        if _is_populated(values.get(_normalize_key(field))):
            return True

    for field in EVALUATION_SUB_RECORDS:
        sub_record = values.get(_normalize_key(field))
        if not isinstance(sub_record, Mapping):
            continue
        if any(
            _is_populated(v)
            for k, v in sub_record.items()
            if _normalize_key(k) not in DERIVED_SCORE_KEYS
        ):
            return True

    return False


def format_validation_errors(exc: ValidationError) -> list[tuple[str, str]]:
    """Flatten Pydantic errors into (dotted camelCase path, message) pairs."""
    errors = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"])
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append((path, message))
    return errors


def validate_recipe_input(data: Any) -> RecipeInput:
    """Validate raw recipe input.

    Raises:
        RecipeValidationError: with every field error and the cross-field
            tasting rule, if any fails.
    """
    errors: list[tuple[str, str]] = []
    recipe: Optional[RecipeInput] = None

    try:
        recipe = RecipeInput.model_validate(data)
    except ValidationError as e:
        errors.extend(format_validation_errors(e))

    if recipe is not None:
        sensation = recipe.sensation_record
        m = recipe.measurements
        derived_yield = calculate_extraction_yield(m.brewed_coffee_weight, m.tds, m.coffee_beans)
        if derived_yield is not None and derived_yield > 100:
            errors.append(("measurements.extractionYield", "Extraction yield must be 100% or less"))
    elif isinstance(data, Mapping):
        sensation = data.get("sensationRecord", data.get("sensation_record"))
    else:
        sensation = None

    # A missing sensation record is already reported as a required field
    if sensation is not None and not has_tasting_data(sensation):
        errors.append(("sensationRecord", TASTING_REQUIRED_MESSAGE))

    if errors:
        logger.info(f"Rejected recipe input with {len(errors)} error(s)")
        raise RecipeValidationError(errors)

    return recipe


def generate_recipe_name(origin: str, today: Optional[date] = None) -> str:
    return f"{origin} - {(today or date.today()).isoformat()}"


def transform_recipe_input(recipe: RecipeInput, today: Optional[date] = None) -> RecipeInput:
    """Fill derived fields: name, ratio, extraction yield and cupping scores."""
    name = (recipe.recipe_name or "").strip()
    if not name:
        name = generate_recipe_name(recipe.bean_info.origin.value, today)

    m = recipe.measurements
    measurement_updates = {
        "coffee_water_ratio": calculate_coffee_water_ratio(m.coffee_beans, m.water),
    }
    extraction_yield = calculate_extraction_yield(m.brewed_coffee_weight, m.tds, m.coffee_beans)
    if extraction_yield is not None:
        measurement_updates["extraction_yield"] = extraction_yield

    sensation = recipe.sensation_record
    sensation_updates = {}
    if sensation.traditional_sca is not None:
        sensation_updates["traditional_sca"] = sensation.traditional_sca.model_copy(
            update={"final_score": calculate_sca_score(sensation.traditional_sca)}
        )
    if sensation.cva_affective is not None:
        sensation_updates["cva_affective"] = sensation.cva_affective.model_copy(
            update={"cva_score": calculate_cva_score(sensation.cva_affective)}
        )

    return recipe.model_copy(
        update={
            "recipe_name": name,
            "measurements": m.model_copy(update=measurement_updates),
            "sensation_record": sensation.model_copy(update=sensation_updates),
        }
    )
