"""
Backup Service - full export and restore-as-replay
"""

import logging
from sqlmodel import Session

from spacesync.core.audit_log import get_audit_logger
from spacesync.core.config import settings
from spacesync.crud.records import record_crud
from spacesync.models.mixins import utcnow
from spacesync.models.sync import ENTITY_MODELS
from spacesync.schemas.sync import (
    BackupResponse,
    RECORD_SCHEMAS,
    SyncChanges,
    SyncRestoreResponse,
)
from spacesync.services.sync_service import SyncService

logger = logging.getLogger(__name__)


class BackupService:
    """Service for exporting and restoring a user's whole dataset."""

    def backup(self, db: Session, user_id: str) -> BackupResponse:
        """Snapshot of every record of the user, deleted ones included, unfiltered."""
        backup_at = utcnow()

        found = {
            entity_type: [
                RECORD_SCHEMAS[entity_type].model_validate(row)
                for row in record_crud.get_all_for_user(db, entity_type, user_id)
            ]
            for entity_type in ENTITY_MODELS
        }
        snapshot = SyncService.build_changes(found)

        record_count = sum(len(records) for records in found.values())
        get_audit_logger().log_backup_exported(user_id=user_id, record_count=record_count)
        logger.info(f"Backup exported for user {user_id}: {record_count} records")

        return BackupResponse(
            backup_at=backup_at,
            version=settings.BACKUP_FORMAT_VERSION,
            user_id=user_id,
            spaces=snapshot.spaces,
            categories=snapshot.categories,
            items=snapshot.items,
            preferences=snapshot.preferences
        )

    def restore(
        self,
        db: Session,
        user_id: str,
        device_id: str,
        backup_data: SyncChanges
    ) -> SyncRestoreResponse:
        """
        Replace the user's dataset with a backup.

        1. Sweep: soft-delete every live record of the user, attributed to
           ``device_id`` and stamped with the current time. Not conflict
           checked.
        2. Replay: feed the backup through the regular push path. A backup
           record only comes back to life if it is newer than what is stored,
           so changes made by other devices during the restore are kept.
        """
        swept_at = utcnow()
        swept = {}
        for entity_type in ENTITY_MODELS:
            swept[entity_type.value] = record_crud.soft_delete_all(
                db,
                entity_type,
                user_id,
                device_id=device_id,
                deleted_at=swept_at
            )

        logger.info(f"Restore for user {user_id} by device {device_id}: swept {swept}")

        replay = SyncService.push(db, user_id, device_id, backup_data)

        get_audit_logger().log_restore_performed(
            user_id=user_id,
            device_id=device_id,
            swept=swept,
            restored=replay.accepted.model_dump()
        )

        return SyncRestoreResponse(restored=replay.accepted)


backup_service = BackupService()
