"""
Sync router for offline-first functionality
Push/pull incremental sync plus backup and restore for mobile and desktop clients
"""

from fastapi import APIRouter, Body, Depends, Query
from sqlmodel import Session
from datetime import datetime
from typing import Optional

from spacesync.core.deps import get_current_user, get_db, enforce_rate_limit, deprecated_route
from spacesync.core.errors import MissingBackupData, MissingChanges, MissingDeviceId
from spacesync.schemas.auth import TokenData
from spacesync.schemas.common import ErrorResponse
from spacesync.schemas.sync import (
    BackupResponse,
    SyncPullResponse,
    SyncPushRequest,
    SyncPushResponse,
    SyncRestoreRequest,
    SyncRestoreResponse,
)
from spacesync.services.backup_service import backup_service
from spacesync.services.sync_service import SyncService

router = APIRouter(
    prefix="/sync",
    tags=["Sync & Offline"],
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid request fields"},
        401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    },
)


# ===========================
# Sync Push (Client → Server)
# ===========================

@router.post("/push", response_model=SyncPushResponse)
def push_changes(
    payload: Optional[SyncPushRequest] = Body(None),
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Push local changes to server with Last-Write-Wins conflict detection.

    For every record:
    1. Records owned by another user are rejected (not reported as conflicts)
    2. A record is applied only if its updatedAt is strictly newer than the stored one
    3. Older or equal records are rejected and returned in `conflicts`

    Store the returned `syncedAt` as the next watermark.
    """
    # An empty body is reported like a missing deviceId
    if payload is None or not payload.device_id:
        raise MissingDeviceId()
    if payload.changes is None:
        raise MissingChanges()

    return SyncService.push(db, current_user.user_id, payload.device_id, payload.changes)


# ===========================
# Sync Pull (Server → Client)
# ===========================

@router.get("/pull", response_model=SyncPullResponse)
def pull_changes(
    device_id: Optional[str] = Query(None, alias="deviceId", description="Device requesting changes"),
    last_sync_at: Optional[datetime] = Query(
        None,
        alias="lastSyncAt",
        description="Watermark from the previous sync (omit for a full sync)"
    ),
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Pull changes from server since last sync (incremental sync).

    Returns every record updated after `lastSyncAt` that was written by
    another device. Soft-deleted records are included with `deleted: true`.
    The full set is always returned (`hasMore` is false).
    """
    if not device_id:
        raise MissingDeviceId()

    return SyncService.pull(db, current_user.user_id, device_id, since=last_sync_at)


# ===========================
# Backup & Restore
# ===========================

@router.post("/backup", response_model=BackupResponse)
def create_backup(
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Export every record of the user, deleted ones included."""
    return backup_service.backup(db, current_user.user_id)


@router.get(
    "/backup",
    response_model=BackupResponse,
    deprecated=True,
    dependencies=[Depends(deprecated_route("POST /sync/backup"))]
)
def get_backup_legacy(
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Legacy alias of `POST /sync/backup`."""
    return backup_service.backup(db, current_user.user_id)


@router.post("/restore", response_model=SyncRestoreResponse)
def restore_backup(
    payload: Optional[SyncRestoreRequest] = Body(None),
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Replace the user's data with a backup.

    All current records are soft-deleted, then the backup is replayed through
    the push logic. Returns how many records of each type were restored.
    """
    # An empty body is reported like a missing deviceId
    if payload is None or not payload.device_id:
        raise MissingDeviceId()
    if payload.backup_data is None:
        raise MissingBackupData()

    return backup_service.restore(db, current_user.user_id, payload.device_id, payload.backup_data)


@router.post(
    "/backup/restore",
    response_model=SyncRestoreResponse,
    deprecated=True,
    dependencies=[Depends(deprecated_route("POST /sync/restore"))]
)
def restore_backup_legacy(
    payload: Optional[SyncRestoreRequest] = Body(None),
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Legacy alias of `POST /sync/restore`."""
    return restore_backup(payload, current_user, db)
