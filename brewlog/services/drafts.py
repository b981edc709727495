"""Autosaved recipe form drafts.

Drafts are raw form input keyed by draft id ("new" for an unsaved recipe,
otherwise the recipe id). Only the most recent MAX_DRAFTS are kept.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from brewlog.services.constants import MAX_DRAFTS
from brewlog.services.kv_store import DRAFTS, KeyValueStore

logger = logging.getLogger(__name__)

NEW_RECIPE_DRAFT = "new"


def save_draft(store: KeyValueStore, draft_id: str, data: dict[str, Any]) -> dict:
    entry = {"draftId": draft_id, "data": data, "savedAt": datetime.utcnow().isoformat()}

    def add(drafts):
        drafts = drafts or {}
        drafts[draft_id] = entry
        if len(drafts) > MAX_DRAFTS:
            newest = sorted(drafts.values(), key=lambda d: d["savedAt"], reverse=True)[:MAX_DRAFTS]
            drafts = {d["draftId"]: d for d in newest}
        return drafts

    store.update(DRAFTS, add)
    return entry


def load_draft(store: KeyValueStore, draft_id: str) -> Optional[dict]:
    return (store.get(DRAFTS) or {}).get(draft_id)


def list_drafts(store: KeyValueStore) -> list[dict]:
    """All drafts, newest first."""
    drafts = store.get(DRAFTS) or {}
    return sorted(drafts.values(), key=lambda d: d["savedAt"], reverse=True)


def clear_draft(store: KeyValueStore, draft_id: str) -> bool:
    removed = False

    def remove(drafts):
        nonlocal removed
        drafts = drafts or {}
        removed = drafts.pop(draft_id, None) is not None
        return drafts

    store.update(DRAFTS, remove)
    if not removed:
        return False
    logger.info(f"Cleared draft {draft_id}")
    return True


def clear_all_drafts(store: KeyValueStore) -> None:
    store.delete(DRAFTS)
