"""Pydantic schemas for the sensation record and its evaluation systems."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from brewlog.schemas.base import CamelModel
from brewlog.services.constants import (
    AcidityIntensity,
    BodyLevel,
    EvaluationSystem,
    MainTaste,
    MouthfeelDescriptor,
)


# ============================================================================
# Traditional SCA cupping form
# ============================================================================


class TraditionalSCAEvaluation(CamelModel):
    """Traditional SCA cupping form."""

    fragrance: Optional[float] = Field(None, ge=6, le=10, multiple_of=0.25)
    aroma: Optional[float] = Field(None, ge=6, le=10, multiple_of=0.25)
    flavor: Optional[float] = Field(None, ge=6, le=10, multiple_of=0.25)
    aftertaste: Optional[float] = Field(None, ge=6, le=10, multiple_of=0.25)
    acidity: Optional[float] = Field(None, ge=6, le=10, multiple_of=0.25)
    acidity_intensity: Optional[AcidityIntensity] = None
    body: Optional[float] = Field(None, ge=6, le=10, multiple_of=0.25)
    body_level: Optional[BodyLevel] = None
    balance: Optional[float] = Field(None, ge=6, le=10, multiple_of=0.25)
    overall: Optional[float] = Field(None, ge=6, le=10, multiple_of=0.25)

    # Cup characteristics: 2 points per cup, five cups
    uniformity: Optional[int] = Field(None, ge=0, le=10, multiple_of=2)
    clean_cup: Optional[int] = Field(None, ge=0, le=10, multiple_of=2)
    sweetness: Optional[int] = Field(None, ge=0, le=10, multiple_of=2)

    # Defects: taint = 2 x cups, fault = 4 x cups
    taint_defects: Optional[int] = Field(None, ge=0, le=20, multiple_of=2)
    fault_defects: Optional[int] = Field(None, ge=0, le=40, multiple_of=4)

    final_score: Optional[float] = Field(None, ge=36, le=100, multiple_of=0.25)


# ============================================================================
# CVA Descriptive / Affective (SCA Standard 103-P/2024)
# ============================================================================


class CVADescriptiveAssessment(CamelModel):
    """CVA Descriptive: 0-15 intensities plus CATA descriptors."""

    fragrance: Optional[int] = Field(None, ge=0, le=15)
    aroma: Optional[int] = Field(None, ge=0, le=15)
    flavor: Optional[int] = Field(None, ge=0, le=15)
    aftertaste: Optional[int] = Field(None, ge=0, le=15)
    acidity: Optional[int] = Field(None, ge=0, le=15)
    sweetness: Optional[int] = Field(None, ge=0, le=15)
    mouthfeel: Optional[int] = Field(None, ge=0, le=15)

    fragrance_aroma_descriptors: Optional[list[str]] = Field(None, max_length=5)
    flavor_aftertaste_descriptors: Optional[list[str]] = Field(None, max_length=5)
    main_tastes: Optional[list[MainTaste]] = Field(None, max_length=2)
    mouthfeel_descriptors: Optional[list[MouthfeelDescriptor]] = Field(None, max_length=2)

    acidity_descriptors: Optional[str] = Field(None, max_length=500)
    sweetness_descriptors: Optional[str] = Field(None, max_length=500)
    additional_notes: Optional[str] = Field(None, max_length=1000)

    roast_level: Optional[str] = Field(None, max_length=50)
    assessment_date: Optional[datetime] = None
    assessor_id: Optional[str] = Field(None, max_length=50)


class CVAAffectiveAssessment(CamelModel):
    """CVA Affective: 1-9 quality impressions and cup counts."""

    fragrance: Optional[int] = Field(None, ge=1, le=9)
    aroma: Optional[int] = Field(None, ge=1, le=9)
    flavor: Optional[int] = Field(None, ge=1, le=9)
    aftertaste: Optional[int] = Field(None, ge=1, le=9)
    acidity: Optional[int] = Field(None, ge=1, le=9)
    sweetness: Optional[int] = Field(None, ge=1, le=9)
    mouthfeel: Optional[int] = Field(None, ge=1, le=9)
    overall: Optional[int] = Field(None, ge=1, le=9)

    non_uniform_cups: Optional[int] = Field(None, ge=0, le=5)
    defective_cups: Optional[int] = Field(None, ge=0, le=5)

    cva_score: Optional[float] = Field(None, ge=58, le=100, multiple_of=0.25)


class QuickTastingAssessment(CamelModel):
    """Quick tasting: a few intensity sliders and one overall quality."""

    flavor_intensity: Optional[int] = Field(None, ge=0, le=15)
    aftertaste_intensity: Optional[int] = Field(None, ge=0, le=15)
    acidity_intensity: Optional[int] = Field(None, ge=0, le=15)
    sweetness_intensity: Optional[int] = Field(None, ge=0, le=15)
    mouthfeel_intensity: Optional[int] = Field(None, ge=0, le=15)
    flavor_aftertaste_descriptors: Optional[list[str]] = Field(None, max_length=5)
    overall_quality: Optional[int] = Field(None, ge=1, le=9)


# ============================================================================
# Sensation record
# ============================================================================


class SensationRecord(CamelModel):
    """Legacy 1-10 ratings plus any number of evaluation-system sub-records."""

    evaluation_system: Optional[EvaluationSystem] = None

    overall_impression: Optional[int] = Field(None, ge=1, le=10)
    acidity: Optional[int] = Field(None, ge=1, le=10)
    body: Optional[int] = Field(None, ge=1, le=10)
    sweetness: Optional[int] = Field(None, ge=1, le=10)
    flavor: Optional[int] = Field(None, ge=1, le=10)
    aftertaste: Optional[int] = Field(None, ge=1, le=10)
    balance: Optional[int] = Field(None, ge=1, le=10)
    tasting_notes: Optional[str] = Field(None, max_length=2000)

    traditional_sca: Optional[TraditionalSCAEvaluation] = Field(None, alias="traditionalSCA")
    cva_descriptive: Optional[CVADescriptiveAssessment] = None
    cva_affective: Optional[CVAAffectiveAssessment] = None
    quick_tasting: Optional[QuickTastingAssessment] = None
