"""Pydantic schemas for exports, export templates and export history."""
from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from brewlog.schemas.base import CamelModel
from brewlog.services.constants import ExportFormat

# Excel rejects these in worksheet titles
INVALID_SHEET_NAME_CHARS = frozenset("/\\?*:[]")


# ============================================================================
# Field configuration
# ============================================================================


class BeanInfoFields(CamelModel):
    origin: bool = True
    processing_method: bool = True
    altitude: bool = True
    roasting_date: bool = True
    roasting_level: bool = True


class BrewingParameterFields(CamelModel):
    water_temperature: bool = True
    brewing_method: bool = True
    grinder_model: bool = True
    grinder_unit: bool = True
    filtering_tools: bool = True
    turbulence: bool = False
    additional_notes: bool = False


class MeasurementFields(CamelModel):
    coffee_beans: bool = True
    water: bool = True
    coffee_water_ratio: bool = True
    tds: bool = True
    extraction_yield: bool = True


class SensationRecordFields(CamelModel):
    overall_impression: bool = True
    acidity: bool = True
    body: bool = True
    sweetness: bool = True
    flavor: bool = True
    aftertaste: bool = True
    balance: bool = True
    tasting_notes: bool = True


class ExportFieldConfig(CamelModel):
    """Which columns to export. Omitted flags keep their defaults."""

    recipe_name: bool = True
    date_created: bool = True
    date_modified: bool = True
    is_favorite: bool = True
    collections: bool = True
    bean_info: BeanInfoFields = Field(default_factory=BeanInfoFields)
    brewing_parameters: BrewingParameterFields = Field(default_factory=BrewingParameterFields)
    measurements: MeasurementFields = Field(default_factory=MeasurementFields)
    sensation_record: SensationRecordFields = Field(default_factory=SensationRecordFields)


# ============================================================================
# Export request
# ============================================================================


class DateRange(CamelModel):
    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self):
        if self.start > self.end:
            raise ValueError("Date range start must be on or before end")
        return self


class ExportOptions(CamelModel):
    """How to export. With template_id, the template's options apply first."""

    format: ExportFormat = ExportFormat.CSV
    template_id: Optional[str] = None
    include_full_details: bool = True
    filename: Optional[str] = Field(None, max_length=200)
    date_range: Optional[DateRange] = None
    field_config: Optional[ExportFieldConfig] = None
    sheet_name: str = Field("Recipes", min_length=1, max_length=31)
    include_stats: bool = False
    include_collections: bool = False
    favorites_only: bool = False
    recipe_ids: Optional[list[UUID]] = None

    @field_validator("sheet_name")
    @classmethod
    def check_sheet_name(cls, v: str) -> str:
        bad = sorted({c for c in v if c in INVALID_SHEET_NAME_CHARS})
        if bad:
            raise ValueError(f"Sheet name cannot contain {' '.join(bad)}")
        return v


# ============================================================================
# Templates
# ============================================================================


class ExportTemplate(CamelModel):
    id: str
    name: str
    description: str
    format: ExportFormat
    options: ExportOptions
    created_at: datetime
    is_default: bool = False


class ExportTemplateCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    options: ExportOptions


class ExportTemplateUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    options: Optional[ExportOptions] = None


# ============================================================================
# History
# ============================================================================


class ExportHistoryItem(CamelModel):
    id: str
    timestamp: datetime
    filename: str
    format: ExportFormat
    recipe_count: int
    status: Literal["completed", "failed"]
    error_message: Optional[str] = None
    file_size: Optional[int] = None


class ExportStats(CamelModel):
    total_exports: int = 0
    successful_exports: int = 0
    failed_exports: int = 0
    most_used_format: ExportFormat = ExportFormat.CSV
    total_recipes_exported: int = 0
    average_file_size: float = 0
