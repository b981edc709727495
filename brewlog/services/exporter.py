"""Recipe export pipeline.

Renders recipes to CSV, Excel (openpyxl), JSON or a printable HTML page.
Rendering is a pure function of the recipes and the options; templates and
history are kept in the key-value store.

Usage:
    result = export_recipes(recipes, ExportOptions(format="xlsx"), names)
    result.content  # bytes
"""
import csv
import html
import io
import json
import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional
from uuid import UUID

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from brewlog.schemas.export import (
    ExportFieldConfig,
    ExportHistoryItem,
    ExportOptions,
    ExportStats,
    ExportTemplate,
    ExportTemplateCreate,
    ExportTemplateUpdate,
)
from brewlog.schemas.recipe import RecipeResponse, RecipeSummary
from brewlog.schemas.sensation import SensationRecord
from brewlog.services.calculations import (
    interpret_cva_score,
    interpret_sca_score,
    is_cva_evaluation_complete,
    is_sca_evaluation_complete,
)
from brewlog.services.constants import EXPORT_VERSION, MAX_EXPORT_HISTORY, ExportFormat
from brewlog.services.errors import ExportError, ReadOnlyTemplateError, TemplateNotFoundError
from brewlog.services.kv_store import COUNTERS, EXPORT_HISTORY, EXPORT_TEMPLATES, KeyValueStore

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.JSON: "application/json",
    ExportFormat.HTML: "text/html",
}

RECIPES_HEADER_FILL = "4F46E5"
COLLECTIONS_HEADER_FILL = "059669"
UNCATEGORIZED = "Uncategorized"

SUMMARY_HEADERS = [
    "Recipe Name", "Date Created", "Date Modified", "Is Favorite", "Origin",
    "Brewing Method", "Overall Rating", "Coffee Ratio", "Collections",
]


@dataclass
class ExportResult:
    """A rendered export file."""

    content: bytes
    filename: str
    media_type: str
    format: ExportFormat
    recipe_count: int


# ============================================================================
# Options and filtering
# ============================================================================


def deep_merge(base: dict, overrides: dict) -> dict:
    """Merge nested dicts; values in overrides win, lists are replaced."""
    result = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def resolve_options(store: KeyValueStore, options: ExportOptions) -> ExportOptions:
    """Apply a template's saved options underneath the explicitly set ones."""
    if not options.template_id:
        return options
    template = get_template(store, options.template_id)
    merged = deep_merge(
        template.options.model_dump(exclude_unset=True),
        options.model_dump(exclude_unset=True, exclude={"template_id"}),
    )
    merged["template_id"] = options.template_id
    return ExportOptions.model_validate(merged)


def filter_by_date_range(
    recipes: Iterable[RecipeResponse], start: date, end: date
) -> list[RecipeResponse]:
    """Recipes created between start and end, both days inclusive."""
    return [r for r in recipes if start <= r.date_created.date() <= end]


def build_filename(fmt: ExportFormat, today: Optional[date] = None) -> str:
    return f"coffee_recipes_{(today or date.today()).isoformat()}.{ExportFormat(fmt).value}"


def to_summary(recipe: RecipeResponse) -> RecipeSummary:
    return RecipeSummary(
        recipe_id=recipe.recipe_id,
        recipe_name=recipe.recipe_name,
        date_created=recipe.date_created,
        date_modified=recipe.date_modified,
        is_favorite=recipe.is_favorite,
        origin=recipe.bean_info.origin.value,
        brewing_method=(
            recipe.brewing_parameters.brewing_method.value
            if recipe.brewing_parameters.brewing_method else None
        ),
        overall_impression=recipe.sensation_record.overall_impression,
        coffee_water_ratio=recipe.measurements.coffee_water_ratio,
        collections=list(recipe.collections),
    )


# ============================================================================
# Cell formatting
# ============================================================================


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


def _collection_label(ids: Iterable[UUID], names: dict[UUID, str]) -> str:
    return "; ".join(names.get(cid, str(cid)) for cid in ids)


def format_turbulence(turbulence: Any) -> str:
    if not turbulence:
        return ""
    if isinstance(turbulence, str):
        return turbulence
    return "; ".join(f"{s.action_time} {s.action_details} {s.volume}" for s in turbulence)


def _text_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(_plain(value))


# ============================================================================
# Column table
# ============================================================================


@dataclass
class Column:
    section: Optional[str]
    field: str
    header: str
    getter: Callable[[RecipeResponse, dict], Any]

    def enabled(self, config: ExportFieldConfig) -> bool:
        target = getattr(config, self.section) if self.section else config
        return getattr(target, self.field)


RECIPE_COLUMNS = [
    Column(None, "recipe_name", "Recipe Name", lambda r, n: r.recipe_name),
    Column(None, "date_created", "Date Created", lambda r, n: r.date_created),
    Column(None, "date_modified", "Date Modified", lambda r, n: r.date_modified),
    Column(None, "is_favorite", "Is Favorite", lambda r, n: r.is_favorite),
    Column(None, "collections", "Collections", lambda r, n: _collection_label(r.collections, n)),
    Column("bean_info", "origin", "Origin", lambda r, n: r.bean_info.origin),
    Column("bean_info", "processing_method", "Processing Method", lambda r, n: r.bean_info.processing_method),
    Column("bean_info", "altitude", "Altitude", lambda r, n: r.bean_info.altitude),
    Column("bean_info", "roasting_date", "Roasting Date", lambda r, n: r.bean_info.roasting_date),
    Column("bean_info", "roasting_level", "Roasting Level", lambda r, n: r.bean_info.roasting_level),
    Column("brewing_parameters", "water_temperature", "Water Temperature",
           lambda r, n: r.brewing_parameters.water_temperature),
    Column("brewing_parameters", "brewing_method", "Brewing Method",
           lambda r, n: r.brewing_parameters.brewing_method),
    Column("brewing_parameters", "grinder_model", "Grinder Model",
           lambda r, n: r.brewing_parameters.grinder_model),
    Column("brewing_parameters", "grinder_unit", "Grind Setting",
           lambda r, n: r.brewing_parameters.grinder_unit),
    Column("brewing_parameters", "filtering_tools", "Filter Tools",
           lambda r, n: r.brewing_parameters.filtering_tools),
    Column("brewing_parameters", "turbulence", "Turbulence",
           lambda r, n: format_turbulence(r.brewing_parameters.turbulence)),
    Column("brewing_parameters", "additional_notes", "Additional Notes",
           lambda r, n: r.brewing_parameters.additional_notes),
    Column("measurements", "coffee_beans", "Coffee (g)", lambda r, n: r.measurements.coffee_beans),
    Column("measurements", "water", "Water (g)", lambda r, n: r.measurements.water),
    Column("measurements", "coffee_water_ratio", "Ratio", lambda r, n: r.measurements.coffee_water_ratio),
    Column("measurements", "tds", "TDS (%)", lambda r, n: r.measurements.tds),
    Column("measurements", "extraction_yield", "Extraction Yield (%)",
           lambda r, n: r.measurements.extraction_yield),
    Column("sensation_record", "overall_impression", "Overall Rating",
           lambda r, n: r.sensation_record.overall_impression),
    Column("sensation_record", "acidity", "Acidity", lambda r, n: r.sensation_record.acidity),
    Column("sensation_record", "body", "Body", lambda r, n: r.sensation_record.body),
    Column("sensation_record", "sweetness", "Sweetness", lambda r, n: r.sensation_record.sweetness),
    Column("sensation_record", "flavor", "Flavor", lambda r, n: r.sensation_record.flavor),
    Column("sensation_record", "aftertaste", "Aftertaste", lambda r, n: r.sensation_record.aftertaste),
    Column("sensation_record", "balance", "Balance", lambda r, n: r.sensation_record.balance),
    Column("sensation_record", "tasting_notes", "Tasting Notes",
           lambda r, n: r.sensation_record.tasting_notes),
]


def select_columns(config: Optional[ExportFieldConfig] = None) -> list[Column]:
    config = config or ExportFieldConfig()
    return [c for c in RECIPE_COLUMNS if c.enabled(config)]


def _summary_row(s: RecipeSummary, names: dict[UUID, str]) -> list[Any]:
    return [
        s.recipe_name, s.date_created, s.date_modified, s.is_favorite, s.origin,
        s.brewing_method, s.overall_impression, s.coffee_water_ratio,
        _collection_label(s.collections, names),
    ]


def _table(
    recipes: list[RecipeResponse], options: ExportOptions, names: dict[UUID, str]
) -> tuple[list[str], list[list[Any]]]:
    if options.include_full_details:
        columns = select_columns(options.field_config)
        return (
            [c.header for c in columns],
            [[c.getter(r, names) for c in columns] for r in recipes],
        )
    return SUMMARY_HEADERS, [_summary_row(to_summary(r), names) for r in recipes]


# ============================================================================
# CSV
# ============================================================================


def to_csv(recipes: list[RecipeResponse], options: ExportOptions, names: dict[UUID, str]) -> str:
    headers, rows = _table(recipes, options, names)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_text_cell(v) for v in row])
    return buffer.getvalue()


# ============================================================================
# Excel
# ============================================================================


def _column_width(header: str) -> int:
    width = max(len(header), 10)
    if "Date" in header:
        width = 12
    if "Notes" in header or "Description" in header:
        width = 30
    if "Name" in header or "Origin" in header:
        width = 20
    return min(width, 50)


def _style_header(ws, fill: str) -> None:
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill(fill_type="solid", fgColor=fill)
        cell.alignment = Alignment(horizontal="center")


def _excel_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return _plain(value)


def _average(values: list) -> float:
    return sum(values) / len(values) if values else 0.0


def _most_common(values: Iterable[Any]) -> str:
    counts = Counter(_plain(v) for v in values if v)
    return counts.most_common(1)[0][0] if counts else ""


def calculate_export_stats(recipes: list[RecipeResponse]) -> dict[str, Any]:
    def present(getter):
        return [v for v in (getter(r) for r in recipes) if v is not None]

    return {
        "total": len(recipes),
        "favorites": sum(1 for r in recipes if r.is_favorite),
        "avg_overall": _average(present(lambda r: r.sensation_record.overall_impression)),
        "avg_acidity": _average(present(lambda r: r.sensation_record.acidity)),
        "avg_body": _average(present(lambda r: r.sensation_record.body)),
        "avg_sweetness": _average(present(lambda r: r.sensation_record.sweetness)),
        "avg_coffee": _average(present(lambda r: r.measurements.coffee_beans)),
        "avg_water": _average(present(lambda r: r.measurements.water)),
        "avg_ratio": _average(present(lambda r: r.measurements.coffee_water_ratio)),
        "origin": _most_common(r.bean_info.origin for r in recipes),
        "brewing_method": _most_common(r.brewing_parameters.brewing_method for r in recipes),
        "roasting_level": _most_common(r.bean_info.roasting_level for r in recipes),
    }


def _add_stats_sheet(wb: Workbook, recipes: list[RecipeResponse]) -> None:
    stats = calculate_export_stats(recipes)
    ws = wb.create_sheet("Statistics")
    rows = [
        ["Statistics", ""],
        ["Total Recipes", stats["total"]],
        ["Favorite Recipes", stats["favorites"]],
        [""],
        ["Average Ratings", ""],
        ["Overall Impression", f"{stats['avg_overall']:.1f}"],
        ["Acidity", f"{stats['avg_acidity']:.1f}"],
        ["Body", f"{stats['avg_body']:.1f}"],
        ["Sweetness", f"{stats['avg_sweetness']:.1f}"],
        [""],
        ["Most Common", ""],
        ["Origin", stats["origin"]],
        ["Brewing Method", stats["brewing_method"]],
        ["Roasting Level", stats["roasting_level"]],
        [""],
        ["Measurements", ""],
        ["Avg Coffee Amount", f"{stats['avg_coffee']:.1f}g"],
        ["Avg Water Amount", f"{stats['avg_water']:.1f}g"],
        ["Avg Ratio", f"1:{stats['avg_ratio']:.1f}"],
    ]
    for row in rows:
        ws.append(row)
    for cell in ws["A"]:
        cell.font = Font(bold=True)
    ws.column_dimensions["A"].width = 20
    ws.column_dimensions["B"].width = 15


def group_by_collection(
    recipes: list[RecipeResponse], names: dict[UUID, str]
) -> dict[str, list[RecipeResponse]]:
    groups: dict[str, list[RecipeResponse]] = {}
    for recipe in recipes:
        labels = [names.get(cid, str(cid)) for cid in recipe.collections] or [UNCATEGORIZED]
        for label in labels:
            groups.setdefault(label, []).append(recipe)
    return groups


def _add_collections_sheet(wb: Workbook, recipes: list[RecipeResponse], names: dict[UUID, str]) -> None:
    ws = wb.create_sheet("Collections")
    ws.append(["Collection", "Recipe Count", "Average Rating", "Recipe Names"])
    for label, members in group_by_collection(recipes, names).items():
        ratings = [
            r.sensation_record.overall_impression for r in members
            if r.sensation_record.overall_impression is not None
        ]
        ws.append([
            label,
            len(members),
            f"{_average(ratings):.1f}" if ratings else "",
            "; ".join(r.recipe_name for r in members),
        ])
    _style_header(ws, COLLECTIONS_HEADER_FILL)
    for letter, width in zip("ABCD", (20, 12, 15, 50)):
        ws.column_dimensions[letter].width = width


def to_xlsx(recipes: list[RecipeResponse], options: ExportOptions, names: dict[UUID, str]) -> bytes:
    headers, rows = _table(recipes, options, names)

    wb = Workbook()
    ws = wb.active
    ws.title = options.sheet_name
    ws.append(headers)
    for row in rows:
        ws.append([_excel_value(v) for v in row])

    _style_header(ws, RECIPES_HEADER_FILL)
    ws.freeze_panes = "A2"
    for index, header in enumerate(headers, start=1):
        ws.column_dimensions[get_column_letter(index)].width = _column_width(header)
        if "Date" in header:
            for cell in ws[get_column_letter(index)][1:]:
                cell.number_format = "yyyy-mm-dd"

    # Extra sheets need the full recipe
    if options.include_full_details and options.include_stats:
        _add_stats_sheet(wb, recipes)
    if options.include_full_details and options.include_collections:
        _add_collections_sheet(wb, recipes, names)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


# ============================================================================
# JSON
# ============================================================================


def _filter_fields(data: dict, config: ExportFieldConfig) -> dict:
    """Drop the keys switched off in config; unlisted keys are kept."""
    flags = config.model_dump(by_alias=True)
    result = {}
    for key, value in data.items():
        flag = flags.get(key, True)
        if isinstance(flag, dict) and isinstance(value, dict):
            result[key] = {k: v for k, v in value.items() if flag.get(k, True)}
        elif flag is not False:
            result[key] = value
    return result


def to_json(
    recipes: list[RecipeResponse], options: ExportOptions, exported_at: Optional[datetime] = None
) -> str:
    if options.include_full_details:
        items = [r.model_dump(mode="json", by_alias=True) for r in recipes]
        if options.field_config is not None:
            items = [_filter_fields(item, options.field_config) for item in items]
    else:
        items = [to_summary(r).model_dump(mode="json", by_alias=True) for r in recipes]

    document = {
        "exportDate": (exported_at or datetime.utcnow()).isoformat(),
        "exportVersion": EXPORT_VERSION,
        "totalRecipes": len(items),
        "recipes": items,
    }
    return json.dumps(document, indent=2)


def parse_json_export(content: str) -> list[RecipeResponse]:
    """Read back the recipes of a full-detail JSON export."""
    document = json.loads(content)
    return [RecipeResponse.model_validate(item) for item in document.get("recipes", [])]


# ============================================================================
# Print HTML
# ============================================================================

PRINT_CSS = """
body { font-family: Georgia, serif; color: #1f2937; margin: 2rem; }
.recipe { border: 1px solid #e5e7eb; border-radius: 8px; padding: 1rem 1.5rem; margin-bottom: 1.5rem; page-break-inside: avoid; }
.recipe-title { margin: 0; font-size: 1.4rem; }
.favorite { color: #f59e0b; }
.recipe-meta { color: #6b7280; font-size: 0.85rem; margin-top: 0.25rem; }
.section-title { font-size: 1rem; border-bottom: 1px solid #e5e7eb; margin: 1rem 0 0.5rem; }
.info-grid { display: grid; grid-template-columns: repeat(2, 1fr); gap: 0.25rem 1rem; }
.info-label { font-weight: bold; margin-right: 0.25rem; }
.rating { font-weight: bold; color: #4f46e5; }
.tasting-notes { font-style: italic; margin-top: 0.5rem; }
@media print { body { margin: 0; } .recipe { border: none; border-bottom: 1px solid #000; border-radius: 0; } }
"""


def _info(label: str, value: Any) -> str:
    return (
        f'<div class="info-item"><span class="info-label">{html.escape(label)}:</span>'
        f'<span class="info-value">{html.escape(str(value))}</span></div>'
    )


def _cupping_items(s: SensationRecord) -> list[str]:
    items = []
    sca, cva = s.traditional_sca, s.cva_affective
    if sca is not None and sca.final_score is not None:
        label = f"{sca.final_score} - {interpret_sca_score(sca.final_score)}"
        if not is_sca_evaluation_complete(sca):
            label += " (incomplete form)"
        items.append(_info("SCA Score", label))
    if cva is not None and cva.cva_score is not None:
        label = f"{cva.cva_score} - {interpret_cva_score(cva.cva_score)}"
        if not is_cva_evaluation_complete(cva):
            label += " (incomplete form)"
        items.append(_info("CVA Score", label))
    return items


def _recipe_card(recipe: RecipeResponse, names: dict[UUID, str]) -> str:
    bean = recipe.bean_info
    brew = recipe.brewing_parameters
    m = recipe.measurements
    s = recipe.sensation_record

    star = '<span class="favorite">&#9733;</span>' if recipe.is_favorite else ""
    bean_items = [_info("Origin", _plain(bean.origin)), _info("Processing", _plain(bean.processing_method))]
    if bean.altitude:
        bean_items.append(_info("Altitude", f"{bean.altitude}m"))
    if bean.roasting_level:
        bean_items.append(_info("Roast Level", _plain(bean.roasting_level)))

    brew_items = [
        _info("Method", _plain(brew.brewing_method) or "Not specified"),
        _info("Water Temp", f"{brew.water_temperature}°C" if brew.water_temperature else "Not specified"),
        _info("Grinder", brew.grinder_model),
        _info("Grind Size", brew.grinder_unit),
    ]
    if brew.turbulence:
        brew_items.append(_info("Turbulence", format_turbulence(brew.turbulence)))

    measurement_items = [
        _info("Coffee", f"{m.coffee_beans}g"),
        _info("Water", f"{m.water}g"),
        _info("Ratio", f"1:{m.coffee_water_ratio}"),
    ]
    if m.tds:
        measurement_items.append(_info("TDS", f"{m.tds}%"))
    if m.extraction_yield:
        measurement_items.append(_info("Extraction Yield", f"{m.extraction_yield}%"))

    rating = f"{s.overall_impression}/10" if s.overall_impression is not None else "Not rated"
    notes = (
        f'<div class="tasting-notes">&quot;{html.escape(s.tasting_notes)}&quot;</div>'
        if s.tasting_notes else ""
    )
    collections = (
        f" | Collections: {html.escape(_collection_label(recipe.collections, names))}"
        if recipe.collections else ""
    )

    return f"""
<div class="recipe">
  <div class="recipe-header">
    <h2 class="recipe-title">{html.escape(recipe.recipe_name)} {star}</h2>
    <div class="recipe-meta">Created: {recipe.date_created.date().isoformat()} | Modified: {recipe.date_modified.date().isoformat()}{collections}</div>
  </div>
  <div class="section"><h3 class="section-title">Bean Information</h3><div class="info-grid">{"".join(bean_items)}</div></div>
  <div class="section"><h3 class="section-title">Brewing Parameters</h3><div class="info-grid">{"".join(brew_items)}</div></div>
  <div class="section"><h3 class="section-title">Measurements</h3><div class="info-grid">{"".join(measurement_items)}</div></div>
  <div class="section"><h3 class="section-title">Tasting Notes</h3>
    <div class="info-item"><span class="info-label">Overall Rating:</span><span class="rating">{rating}</span></div>
    {"".join(_cupping_items(s))}
    {notes}
  </div>
</div>"""


def _summary_card(summary: RecipeSummary) -> str:
    star = '<span class="favorite">&#9733;</span>' if summary.is_favorite else ""
    rating = f"{summary.overall_impression}/10" if summary.overall_impression is not None else "Not rated"
    items = "".join([
        _info("Origin", summary.origin),
        _info("Method", summary.brewing_method or "Not specified"),
        _info("Ratio", f"1:{summary.coffee_water_ratio}"),
        _info("Rating", rating),
    ])
    return f"""
<div class="recipe">
  <div class="recipe-header">
    <h2 class="recipe-title">{html.escape(summary.recipe_name)} {star}</h2>
    <div class="recipe-meta">Created: {summary.date_created.date().isoformat()} | Modified: {summary.date_modified.date().isoformat()}</div>
  </div>
  <div class="info-grid">{items}</div>
</div>"""


def to_print_html(recipes: list[RecipeResponse], options: ExportOptions, names: dict[UUID, str]) -> str:
    if options.include_full_details:
        cards = [_recipe_card(r, names) for r in recipes]
    else:
        cards = [_summary_card(to_summary(r)) for r in recipes]

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Coffee Recipes</title>
<style>{PRINT_CSS}</style>
</head>
<body>
<h1>Coffee Recipes</h1>
<p class="recipe-meta">{len(recipes)} recipe(s), generated {date.today().isoformat()}</p>
{"".join(cards)}
</body>
</html>
"""


# ============================================================================
# Entry point
# ============================================================================


def export_recipes(
    recipes: list[RecipeResponse],
    options: ExportOptions,
    collection_names: Optional[dict[UUID, str]] = None,
) -> ExportResult:
    """Render recipes in the requested format.

    Raises:
        ExportError: if rendering fails; nothing is returned in that case.
    """
    names = collection_names or {}
    if options.favorites_only:
        recipes = [r for r in recipes if r.is_favorite]
    if options.recipe_ids:
        wanted = set(options.recipe_ids)
        recipes = [r for r in recipes if r.recipe_id in wanted]
    if options.date_range:
        recipes = filter_by_date_range(recipes, options.date_range.start, options.date_range.end)

    fmt = ExportFormat(options.format)
    try:
        if fmt == ExportFormat.CSV:
            content = to_csv(recipes, options, names).encode("utf-8")
        elif fmt == ExportFormat.XLSX:
            content = to_xlsx(recipes, options, names)
        elif fmt == ExportFormat.JSON:
            content = to_json(recipes, options).encode("utf-8")
        else:
            content = to_print_html(recipes, options, names).encode("utf-8")
    except Exception as e:
        logger.exception(f"Export to {fmt.value} failed")
        raise ExportError(f"Export failed: {e}") from e

    filename = options.filename or build_filename(fmt)
    logger.info(f"Exported {len(recipes)} recipes to {filename} ({len(content)} bytes)")
    return ExportResult(
        content=content,
        filename=filename,
        media_type=MEDIA_TYPES[fmt],
        format=fmt,
        recipe_count=len(recipes),
    )


# ============================================================================
# Templates
# ============================================================================

_TEMPLATE_EPOCH = datetime(2024, 1, 1)

DEFAULT_TEMPLATES = [
    ExportTemplate(
        id="quick_summary",
        name="Quick Summary",
        description="Essential recipe information only - perfect for sharing",
        format=ExportFormat.CSV,
        options=ExportOptions(
            format=ExportFormat.CSV,
            include_full_details=False,
            field_config=ExportFieldConfig.model_validate({
                "bean_info": {"processing_method": False, "altitude": False, "roasting_date": False},
                "brewing_parameters": {
                    "water_temperature": False, "grinder_model": False,
                    "grinder_unit": False, "filtering_tools": False,
                },
                "measurements": {"tds": False, "extraction_yield": False},
                "sensation_record": {
                    "acidity": False, "body": False, "sweetness": False, "flavor": False,
                    "aftertaste": False, "balance": False, "tasting_notes": False,
                },
            }),
        ),
        created_at=_TEMPLATE_EPOCH,
        is_default=True,
    ),
    ExportTemplate(
        id="complete_analysis",
        name="Complete Analysis",
        description="Full recipe details with all measurements and tasting notes",
        format=ExportFormat.XLSX,
        options=ExportOptions(
            format=ExportFormat.XLSX,
            include_full_details=True,
            include_stats=True,
            include_collections=True,
        ),
        created_at=_TEMPLATE_EPOCH,
        is_default=True,
    ),
    ExportTemplate(
        id="brewing_guide",
        name="Brewing Guide",
        description="Focus on brewing parameters and techniques",
        format=ExportFormat.CSV,
        options=ExportOptions(
            format=ExportFormat.CSV,
            include_full_details=True,
            field_config=ExportFieldConfig.model_validate({
                "brewing_parameters": {"turbulence": True, "additional_notes": True},
                "sensation_record": {
                    "overall_impression": False, "acidity": False, "body": False,
                    "sweetness": False, "flavor": False, "aftertaste": False, "balance": False,
                },
            }),
        ),
        created_at=_TEMPLATE_EPOCH,
        is_default=True,
    ),
    ExportTemplate(
        id="tasting_notes",
        name="Tasting Notes",
        description="Focus on sensory evaluation and flavor profiles",
        format=ExportFormat.JSON,
        options=ExportOptions(
            format=ExportFormat.JSON,
            include_full_details=True,
            field_config=ExportFieldConfig.model_validate({
                "bean_info": {"altitude": False},
                "brewing_parameters": {
                    "water_temperature": False, "grinder_model": False,
                    "grinder_unit": False, "filtering_tools": False,
                },
                "measurements": {"coffee_beans": False, "water": False},
            }),
        ),
        created_at=_TEMPLATE_EPOCH,
        is_default=True,
    ),
    ExportTemplate(
        id="favorites_only",
        name="Favorites Collection",
        description="Export only favorite recipes with full details",
        format=ExportFormat.XLSX,
        options=ExportOptions(
            format=ExportFormat.XLSX,
            include_full_details=True,
            include_stats=True,
            favorites_only=True,
        ),
        created_at=_TEMPLATE_EPOCH,
        is_default=True,
    ),
]


def get_custom_templates(store: KeyValueStore) -> list[ExportTemplate]:
    return [ExportTemplate.model_validate(t) for t in store.get(EXPORT_TEMPLATES) or []]


def get_all_templates(store: KeyValueStore) -> list[ExportTemplate]:
    return DEFAULT_TEMPLATES + get_custom_templates(store)


def get_template(store: KeyValueStore, template_id: str) -> ExportTemplate:
    for template in get_all_templates(store):
        if template.id == template_id:
            return template
    raise TemplateNotFoundError(f"Export template {template_id} not found")


def save_template(store: KeyValueStore, data: ExportTemplateCreate) -> ExportTemplate:
    template = ExportTemplate(
        id=f"template_{uuid.uuid4().hex[:12]}",
        name=data.name.strip(),
        description=data.description.strip(),
        format=data.options.format,
        options=data.options,
        created_at=datetime.utcnow(),
        is_default=False,
    )
    store.update(EXPORT_TEMPLATES, lambda saved: (saved or []) + [template.model_dump(mode="json")])
    logger.info(f"Saved export template {template.id} '{template.name}'")
    return template


def _edit_custom_template(
    store: KeyValueStore,
    template_id: str,
    edit: Callable[[ExportTemplate], Optional[ExportTemplate]],
) -> Optional[ExportTemplate]:
    """Apply edit to one saved template under the store lock.

    edit returns the replacement, or None to delete the template.
    """
    if any(t.id == template_id for t in DEFAULT_TEMPLATES):
        raise ReadOnlyTemplateError(f"Default template {template_id} cannot be changed")

    result = None

    def apply(saved):
        nonlocal result
        templates = [ExportTemplate.model_validate(t) for t in saved or []]
        match = next((t for t in templates if t.id == template_id), None)
        if match is None:
            raise TemplateNotFoundError(f"Export template {template_id} not found")
        result = edit(match)
        kept = [result if t.id == template_id else t for t in templates]
        return [t.model_dump(mode="json") for t in kept if t is not None]

    store.update(EXPORT_TEMPLATES, apply)
    return result


def update_template(store: KeyValueStore, template_id: str, data: ExportTemplateUpdate) -> ExportTemplate:
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if data.options is not None:
        updates["options"] = data.options
        updates["format"] = data.options.format
    return _edit_custom_template(store, template_id, lambda t: t.model_copy(update=updates))


def delete_template(store: KeyValueStore, template_id: str) -> None:
    _edit_custom_template(store, template_id, lambda t: None)
    logger.info(f"Deleted export template {template_id}")


# ============================================================================
# History
# ============================================================================


def record_export(
    store: KeyValueStore,
    filename: str,
    fmt: ExportFormat,
    recipe_count: int,
    status: str = "completed",
    error_message: Optional[str] = None,
    file_size: Optional[int] = None,
) -> ExportHistoryItem:
    item = ExportHistoryItem(
        id=f"export_{uuid.uuid4().hex[:12]}",
        timestamp=datetime.utcnow(),
        filename=filename,
        format=fmt,
        recipe_count=recipe_count,
        status=status,
        error_message=error_message,
        file_size=file_size,
    )
    store.push_bounded(EXPORT_HISTORY, item.model_dump(mode="json"), MAX_EXPORT_HISTORY)
    if status == "completed":
        store.increment("exports")
    return item


def get_export_history(store: KeyValueStore) -> list[ExportHistoryItem]:
    return [ExportHistoryItem.model_validate(item) for item in store.get(EXPORT_HISTORY) or []]


def remove_export_history_item(store: KeyValueStore, item_id: str) -> bool:
    before = after = 0

    def remove(history):
        nonlocal before, after
        history = history or []
        remaining = [item for item in history if item["id"] != item_id]
        before, after = len(history), len(remaining)
        return remaining

    store.update(EXPORT_HISTORY, remove)
    return after < before


def clear_export_history(store: KeyValueStore) -> None:
    store.delete(EXPORT_HISTORY)


def export_stats(store: KeyValueStore) -> ExportStats:
    history = get_export_history(store)
    if not history:
        return ExportStats()

    successful = [h for h in history if h.status == "completed"]
    sizes = [h.file_size for h in successful if h.file_size]
    format_counts = Counter(h.format for h in history)

    return ExportStats(
        total_exports=len(history),
        successful_exports=len(successful),
        failed_exports=len(history) - len(successful),
        most_used_format=format_counts.most_common(1)[0][0],
        total_recipes_exported=sum(h.recipe_count for h in successful),
        average_file_size=_average(sizes),
    )


def total_exports(store: KeyValueStore) -> int:
    return (store.get(COUNTERS) or {}).get("exports", 0)
