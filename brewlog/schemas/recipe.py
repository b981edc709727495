"""Pydantic schemas for Recipe and its sections."""
from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import Field, field_validator

from brewlog.schemas.base import CamelModel
from brewlog.schemas.sensation import SensationRecord
from brewlog.services.constants import (
    BrewingMethod,
    CoffeeOrigin,
    ProcessingMethod,
    RoastingLevel,
)


# ============================================================================
# Recipe sections
# ============================================================================


class BeanInfo(CamelModel):
    """Where the coffee came from and how it was roasted."""

    coffee_bean_brand: Optional[str] = Field(None, max_length=100)
    origin: CoffeeOrigin
    processing_method: ProcessingMethod
    altitude: Optional[int] = Field(None, ge=0, le=10000, description="Meters above sea level")
    roasting_date: Optional[datetime] = None
    roasting_level: Optional[RoastingLevel] = None


class TurbulenceStep(CamelModel):
    """One timed pour or agitation, e.g. 0:30 / bloom / 50g."""

    action_time: str = Field(..., min_length=1, max_length=10)
    action_details: str = Field(..., min_length=1, max_length=100)
    volume: str = Field(..., min_length=1, max_length=20)


class BrewingParameters(CamelModel):
    """Equipment and technique."""

    water_temperature: Optional[int] = Field(None, ge=80, le=100, description="Celsius")
    brewing_method: Optional[BrewingMethod] = None
    grinder_model: str = Field(..., min_length=1, max_length=100)
    grinder_unit: str = Field(..., min_length=1, max_length=50, description="Grind setting")
    filtering_tools: Optional[str] = Field(None, max_length=100)
    turbulence: Optional[Union[list[TurbulenceStep], str]] = None
    additional_notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("turbulence")
    @classmethod
    def check_turbulence(cls, value):
        if isinstance(value, str) and len(value) > 200:
            raise ValueError("Turbulence description must be 200 characters or less")
        if isinstance(value, list) and not 1 <= len(value) <= 10:
            raise ValueError("Turbulence must have between 1 and 10 steps")
        return value


class Measurements(CamelModel):
    """Dose, water and extraction numbers (grams and percentages)."""

    coffee_beans: float = Field(..., gt=0, le=1000)
    water: float = Field(..., gt=0, le=10000)
    coffee_water_ratio: Optional[float] = Field(None, gt=0, description="Recomputed on save")
    brewed_coffee_weight: Optional[float] = Field(None, gt=0, le=1000)
    tds: Optional[float] = Field(None, ge=0, le=100)
    extraction_yield: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("coffee_beans", "water", "brewed_coffee_weight", "tds", "extraction_yield")
    @classmethod
    def check_precision(cls, value):
        # Stored as NUMERIC(_, 2); the ratio must match what is stored
        if value is not None and abs(round(value, 2) - value) > 1e-9:
            raise ValueError("At most 2 decimal places")
        return value


# ============================================================================
# Recipe
# ============================================================================


class RecipeInput(CamelModel):
    """Create/replace payload. Name and derived measurements are filled on save."""

    recipe_name: Optional[str] = Field(None, max_length=200)
    is_favorite: bool = False
    collections: list[UUID] = Field(default_factory=list, description="Collection ids")
    bean_info: BeanInfo
    brewing_parameters: BrewingParameters
    measurements: Measurements
    sensation_record: SensationRecord


class RecipeResponse(CamelModel):
    """Full recipe."""

    recipe_id: UUID
    recipe_name: str
    date_created: datetime
    date_modified: datetime
    is_favorite: bool
    collections: list[UUID] = []
    bean_info: BeanInfo
    brewing_parameters: BrewingParameters
    measurements: Measurements
    sensation_record: SensationRecord


class RecipeSummary(CamelModel):
    """Brief recipe for list views."""

    recipe_id: UUID
    recipe_name: str
    date_created: datetime
    date_modified: datetime
    is_favorite: bool
    origin: str
    brewing_method: Optional[str] = None
    overall_impression: Optional[int] = None
    coffee_water_ratio: Optional[float] = None
    collections: list[UUID] = []


class RecipeList(CamelModel):
    """Schema for list of recipes."""

    recipes: list[RecipeResponse]
    count: int


class RecipeCount(CamelModel):
    count: int


class BatchDeleteRequest(CamelModel):
    recipe_ids: list[UUID] = Field(..., min_length=1)


class BatchItemError(CamelModel):
    id: str
    error: str


class BatchDeleteResult(CamelModel):
    """Per-item outcome; deletions already applied are not rolled back."""

    deleted: list[UUID] = []
    failed: list[UUID] = []
    errors: list[BatchItemError] = []
