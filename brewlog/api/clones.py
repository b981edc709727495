"""Clone templates, history and statistics."""
from fastapi import APIRouter, Depends

from brewlog.schemas.clone import CloneHistoryEntry, CloneStats, CloneTemplate
from brewlog.services import clone_service
from brewlog.services.kv_store import KeyValueStore, get_store

router = APIRouter(prefix="/clones", tags=["clones"])


@router.get("/templates", response_model=list[CloneTemplate])
def list_clone_templates():
    return clone_service.CLONE_TEMPLATES


@router.get("/history", response_model=list[CloneHistoryEntry])
def get_clone_history(store: KeyValueStore = Depends(get_store)):
    """Most recent clones, newest first."""
    return clone_service.get_clone_history(store)


@router.delete("/history", status_code=204)
def clear_clone_history(store: KeyValueStore = Depends(get_store)):
    clone_service.clear_clone_history(store)
    return None


@router.get("/stats", response_model=CloneStats)
def get_clone_stats(store: KeyValueStore = Depends(get_store)):
    return clone_service.clone_statistics(store)
