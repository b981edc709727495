"""Autosaved recipe form drafts."""
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from brewlog.schemas.draft import DraftEntry
from brewlog.services import drafts
from brewlog.services.kv_store import KeyValueStore, get_store

router = APIRouter(prefix="/drafts", tags=["drafts"])


@router.get("", response_model=list[DraftEntry])
def list_drafts(store: KeyValueStore = Depends(get_store)):
    """Saved drafts, newest first."""
    return drafts.list_drafts(store)


@router.delete("", status_code=204)
def clear_all_drafts(store: KeyValueStore = Depends(get_store)):
    drafts.clear_all_drafts(store)
    return None


@router.get("/{draft_id}", response_model=DraftEntry)
def get_draft(draft_id: str, store: KeyValueStore = Depends(get_store)):
    entry = drafts.load_draft(store, draft_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Draft not found")
    return entry


@router.put("/{draft_id}", response_model=DraftEntry)
def save_draft(
    draft_id: str,
    data: dict[str, Any] = Body(...),
    store: KeyValueStore = Depends(get_store),
):
    """Save form input for a new recipe ("new") or an existing recipe id."""
    return drafts.save_draft(store, draft_id, data)


@router.delete("/{draft_id}", status_code=204)
def delete_draft(draft_id: str, store: KeyValueStore = Depends(get_store)):
    if not drafts.clear_draft(store, draft_id):
        raise HTTPException(status_code=404, detail="Draft not found")
    return None
