"""Export, export template and export history endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from brewlog.database import get_db
from brewlog.schemas.export import (
    ExportHistoryItem,
    ExportOptions,
    ExportStats,
    ExportTemplate,
    ExportTemplateCreate,
    ExportTemplateUpdate,
)
from brewlog.services import collection_store, exporter, recipe_store
from brewlog.services.constants import ExportFormat
from brewlog.services.errors import ExportError, ReadOnlyTemplateError, TemplateNotFoundError
from brewlog.services.kv_store import KeyValueStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exports", tags=["exports"])


def _file_response(result: exporter.ExportResult) -> Response:
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


def _run_export(db: Session, store: KeyValueStore, options: ExportOptions) -> exporter.ExportResult:
    recipes = [
        recipe_store.recipe_to_response(r)
        for r in recipe_store.list_recipes(db, sort_by="date_created", sort_order="desc")
    ]
    try:
        result = exporter.export_recipes(recipes, options, collection_store.collection_names(db))
    except ExportError as e:
        exporter.record_export(
            store,
            filename=options.filename or exporter.build_filename(options.format),
            fmt=options.format,
            recipe_count=0,
            status="failed",
            error_message=str(e),
        )
        raise HTTPException(status_code=500, detail=str(e))

    exporter.record_export(
        store,
        filename=result.filename,
        fmt=result.format,
        recipe_count=result.recipe_count,
        file_size=len(result.content),
    )
    return result


# ============================================================================
# Export Endpoints
# ============================================================================


@router.post("")
def export_recipes(
    options: ExportOptions,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    """Export recipes as a downloadable CSV, Excel, JSON or HTML file.

    With templateId, the template's options are applied first and any
    field set in the request overrides them.
    """
    try:
        options = exporter.resolve_options(store, options)
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _file_response(_run_export(db, store, options))


@router.get("/csv")
def export_csv(db: Session = Depends(get_db), store: KeyValueStore = Depends(get_store)):
    """All recipes, full details, default columns."""
    return _file_response(_run_export(db, store, ExportOptions(format=ExportFormat.CSV)))


# ============================================================================
# Template Endpoints
# ============================================================================


@router.get("/templates", response_model=list[ExportTemplate])
def list_export_templates(store: KeyValueStore = Depends(get_store)):
    """Built-in templates followed by saved ones."""
    return exporter.get_all_templates(store)


@router.get("/templates/{template_id}", response_model=ExportTemplate)
def get_export_template(template_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        return exporter.get_template(store, template_id)
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/templates", response_model=ExportTemplate, status_code=201)
def create_export_template(data: ExportTemplateCreate, store: KeyValueStore = Depends(get_store)):
    return exporter.save_template(store, data)


@router.put("/templates/{template_id}", response_model=ExportTemplate)
def update_export_template(
    template_id: str,
    data: ExportTemplateUpdate,
    store: KeyValueStore = Depends(get_store),
):
    try:
        return exporter.update_template(store, template_id, data)
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReadOnlyTemplateError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/templates/{template_id}", status_code=204)
def delete_export_template(template_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        exporter.delete_template(store, template_id)
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReadOnlyTemplateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return None


# ============================================================================
# History Endpoints
# ============================================================================


@router.get("/history", response_model=list[ExportHistoryItem])
def get_export_history(store: KeyValueStore = Depends(get_store)):
    return exporter.get_export_history(store)


@router.get("/history/stats", response_model=ExportStats)
def get_export_stats(store: KeyValueStore = Depends(get_store)):
    return exporter.export_stats(store)


@router.delete("/history", status_code=204)
def clear_export_history(store: KeyValueStore = Depends(get_store)):
    exporter.clear_export_history(store)
    return None


@router.delete("/history/{item_id}", status_code=204)
def delete_export_history_item(item_id: str, store: KeyValueStore = Depends(get_store)):
    if not exporter.remove_export_history_item(store, item_id):
        raise HTTPException(status_code=404, detail="Export history item not found")
    return None
