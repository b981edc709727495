"""Brew measurements and cupping score calculations.

Traditional SCA final score:
    sum(8 quality attributes) + uniformity + clean cup + sweetness
    - taint defects - fault defects, rounded to 0.25, clamped to 36-100.

CVA Affective score (SCA Standard 103-P/2024):
    S = 0.65625 * sum(h_i) + 52.75 - 2u - 4d, rounded to 0.25, clamped to 58-100,
    where h_i are the eight 9-point section scores, u the non-uniform cups and
    d the defective cups.
"""
import math
from typing import Any, Mapping, Optional

SCA_QUALITY_FIELDS = (
    "fragrance", "aroma", "flavor", "aftertaste",
    "acidity", "body", "balance", "overall",
)
SCA_CUP_FIELDS = ("uniformity", "clean_cup", "sweetness")
SCA_MIN_SCORE = 36.0
SCA_MAX_SCORE = 100.0

CVA_SECTION_FIELDS = (
    "fragrance", "aroma", "flavor", "aftertaste",
    "acidity", "sweetness", "mouthfeel", "overall",
)
CVA_MIN_SCORE = 58.0
CVA_MAX_SCORE = 100.0

SCA_INTERPRETATION = [
    (90, "Outstanding (90+)"),
    (85, "Excellent (85-89)"),
    (80, "Very Good (80-84)"),
    (70, "Good (70-79)"),
    (60, "Fair (60-69)"),
]
CVA_INTERPRETATION = [
    (90, "Exceptional Quality (90+)"),
    (85, "Excellent Quality (85-89)"),
    (80, "Very High Quality (80-84)"),
    (75, "High Quality (75-79)"),
    (70, "Good Quality (70-74)"),
    (65, "Acceptable Quality (65-69)"),
]


def calculate_coffee_water_ratio(coffee_beans: float, water: float) -> float:
    """Water-to-coffee ratio rounded to 2 decimals (25g / 400g -> 16.0)."""
    if coffee_beans <= 0:
        raise ValueError("Coffee beans amount must be positive")
    return round(water / coffee_beans, 2)


def calculate_extraction_yield(
    brewed_coffee_weight: Optional[float],
    tds: Optional[float],
    coffee_beans: float,
) -> Optional[float]:
    """Extraction yield (%) from brewed weight, TDS (%) and dose.

    Returns None when brewed weight or TDS is missing.
    """
    if brewed_coffee_weight is None or tds is None or coffee_beans <= 0:
        return None
    return round((brewed_coffee_weight * tds) / coffee_beans, 2)


def round_to_quarter(value: float) -> float:
    """Round half up to the nearest 0.25."""
    return math.floor(value * 4 + 0.5) / 4


def _get(evaluation: Any, field: str) -> Any:
    if isinstance(evaluation, Mapping):
        return evaluation.get(field)
    return getattr(evaluation, field, None)


def _count_entered(evaluation: Any, fields: tuple[str, ...]) -> int:
    return sum(1 for f in fields if _get(evaluation, f) is not None)


def calculate_sca_score(evaluation: Any) -> Optional[float]:
    """Traditional SCA final score, or None when nothing is scored."""
    if evaluation is None:
        return None
    if _count_entered(evaluation, SCA_QUALITY_FIELDS + SCA_CUP_FIELDS) == 0:
        return None

    quality_total = sum(_get(evaluation, f) or 0 for f in SCA_QUALITY_FIELDS)
    cup_total = sum(_get(evaluation, f) or 0 for f in SCA_CUP_FIELDS)
    defects = (_get(evaluation, "taint_defects") or 0) + (_get(evaluation, "fault_defects") or 0)

    score = round_to_quarter(quality_total + cup_total - defects)
    return max(SCA_MIN_SCORE, min(SCA_MAX_SCORE, score))


def calculate_cva_score(evaluation: Any) -> Optional[float]:
    """CVA Affective score, or None when no section is scored."""
    if evaluation is None:
        return None
    if _count_entered(evaluation, CVA_SECTION_FIELDS) == 0:
        return None

    section_total = sum(_get(evaluation, f) or 0 for f in CVA_SECTION_FIELDS)
    non_uniform = _get(evaluation, "non_uniform_cups") or 0
    defective = _get(evaluation, "defective_cups") or 0

    score = round_to_quarter(0.65625 * section_total + 52.75 - 2 * non_uniform - 4 * defective)
    return max(CVA_MIN_SCORE, min(CVA_MAX_SCORE, score))


def is_sca_evaluation_complete(evaluation: Any) -> bool:
    """At least 6 of the 8 quality attributes are scored."""
    return evaluation is not None and _count_entered(evaluation, SCA_QUALITY_FIELDS) >= 6


def is_cva_evaluation_complete(evaluation: Any) -> bool:
    """At least 6 of the 8 sections are scored."""
    return evaluation is not None and _count_entered(evaluation, CVA_SECTION_FIELDS) >= 6


def interpret_sca_score(score: float) -> str:
    for threshold, label in SCA_INTERPRETATION:
        if score >= threshold:
            return label
    return "Poor (Below 60)"


def interpret_cva_score(score: float) -> str:
    for threshold, label in CVA_INTERPRETATION:
        if score >= threshold:
            return label
    return "Below Standard (Below 65)"
