"""Backup download, validation, restore and history endpoints."""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from brewlog.database import get_db
from brewlog.schemas.backup import (
    BackupHistoryEntry,
    BackupValidation,
    RestoreRequest,
    RestoreResult,
)
from brewlog.services import backup_service
from brewlog.services.errors import BackupFormatError
from brewlog.services.kv_store import PRE_RESTORE_BACKUP, KeyValueStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/backups", tags=["backups"])


@router.get("")
def download_backup(db: Session = Depends(get_db), store: KeyValueStore = Depends(get_store)):
    """Full backup of recipes, collections and preferences as a JSON file."""
    backup = backup_service.create_backup(db, store)
    return Response(
        content=backup_service.serialize_backup(backup),
        media_type="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="{backup_service.backup_filename()}"'
        },
    )


@router.post("/validate", response_model=BackupValidation)
def validate_backup(document: Any = Body(...)):
    """Check a backup document without restoring it."""
    try:
        backup = backup_service.validate_backup(document)
    except BackupFormatError as e:
        return BackupValidation(valid=False, error=str(e))
    return BackupValidation(valid=True, metadata=backup.metadata)


@router.post("/restore", response_model=RestoreResult)
def restore_backup(
    data: RestoreRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    """Restore a backup. Per-item failures are reported in the result."""
    try:
        return backup_service.restore_backup(db, store, data.backup, data.options)
    except BackupFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/history", response_model=list[BackupHistoryEntry])
def get_backup_history(store: KeyValueStore = Depends(get_store)):
    return backup_service.get_backup_history(store)


@router.delete("/history", status_code=204)
def clear_backup_history(store: KeyValueStore = Depends(get_store)):
    backup_service.clear_backup_history(store)
    return None


@router.get("/pre-restore")
def get_pre_restore_backup(store: KeyValueStore = Depends(get_store)):
    """The safety snapshot taken before the last restore."""
    snapshot = store.get(PRE_RESTORE_BACKUP)
    if not snapshot:
        raise HTTPException(status_code=404, detail="No pre-restore backup")
    return snapshot
