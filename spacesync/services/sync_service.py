"""
Sync Service - push and pull for offline-first clients
"""

import logging
from datetime import datetime
from typing import Optional, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from spacesync.core.audit_log import get_audit_logger
from spacesync.crud.records import record_crud
from spacesync.models.mixins import ensure_utc, utcnow
from spacesync.models.sync import EntityType, ENTITY_MODELS, ConflictReason
from spacesync.schemas.sync import (
    ConflictDescriptor,
    RECORD_SCHEMAS,
    SyncChanges,
    SyncPullResponse,
    SyncPushResponse,
    SyncRecordIn,
)
from spacesync.services.conflict_resolver import Resolution, resolve

logger = logging.getLogger(__name__)

# A write that keeps losing races against concurrent writers is given up after this many tries
MAX_WRITE_ATTEMPTS = 3


class WriteContention(Exception):
    """A record could not be written because concurrent writers kept changing it."""


class SyncService:
    """Push and pull, each call an independent unit of work."""

    # ========================================
    # PUSH
    # ========================================

    @staticmethod
    def push(db: Session, user_id: str, device_id: str, changes: SyncChanges) -> SyncPushResponse:
        """
        Apply a batch of client changes record by record.

        Each record is checked for ownership, resolved against the stored
        version with Last-Write-Wins and written in its own transaction. A
        failure on one record never aborts the rest of the batch.
        """
        result = SyncPushResponse(synced_at=utcnow())

        for entity_type in ENTITY_MODELS:
            for record in changes.records_for(entity_type):
                SyncService._push_record(db, entity_type, record, user_id, device_id, result)

        logger.info(
            f"Push from device {device_id} for user {user_id}: "
            f"{result.accepted.total} accepted, {result.rejected.total} rejected, "
            f"{len(result.conflicts)} conflicts"
        )
        return result

    @staticmethod
    def _push_record(
        db: Session,
        entity_type: EntityType,
        record: SyncRecordIn,
        user_id: str,
        device_id: str,
        result: SyncPushResponse,
    ) -> None:
        record_id = getattr(record, "id", None)

        # Not a peer update: counted, never reported as a conflict
        if record.user_id != user_id:
            result.rejected.increment(entity_type)
            logger.warning(
                f"{ConflictReason.OWNERSHIP_MISMATCH.value} on {entity_type.value} {record_id}: "
                f"record claims user {record.user_id}, caller is {user_id}"
            )
            get_audit_logger().log_ownership_mismatch(
                user_id=user_id,
                device_id=device_id,
                entity_type=entity_type.value,
                record_id=record_id,
                claimed_user_id=record.user_id,
                reason=ConflictReason.OWNERSHIP_MISMATCH.value
            )
            return

        try:
            server_updated_at = SyncService._apply_record(db, entity_type, record, user_id, device_id)
        except (SQLAlchemyError, WriteContention):
            db.rollback()
            logger.exception(f"Failed to store {entity_type.value} {record_id} for user {user_id}")
            result.rejected.increment(entity_type)
            return

        if server_updated_at is None:
            result.accepted.increment(entity_type)
            return

        result.rejected.increment(entity_type)
        result.conflicts.append(
            ConflictDescriptor(
                id=record_id,
                entity_type=entity_type,
                reason=ConflictReason.OLDER_TIMESTAMP,
                server_updated_at=server_updated_at,
                client_updated_at=record.updated_at
            )
        )

    @staticmethod
    def _apply_record(
        db: Session,
        entity_type: EntityType,
        record: SyncRecordIn,
        user_id: str,
        device_id: str,
    ) -> Optional[datetime]:
        """
        Resolve one record against the store and write it if it wins.

        Returns None when the record was written, otherwise the stored
        ``updated_at`` it lost against.
        """
        record_id = getattr(record, "id", None)

        # Provenance comes from the authenticated caller, never the payload
        values = record.model_dump(exclude={"user_id", "device_id", "created_at"})
        values.update(user_id=user_id, device_id=device_id)

        for _ in range(MAX_WRITE_ATTEMPTS):
            existing = record_crud.get_record(db, entity_type, user_id, record_id)
            server_updated_at = existing.updated_at if existing is not None else None

            if resolve(record.updated_at, server_updated_at) == Resolution.REJECT:
                return server_updated_at

            if existing is None:
                try:
                    record_crud.insert_record(
                        db,
                        entity_type,
                        {**values, "created_at": record.created_at or utcnow()}
                    )
                    return None
                except IntegrityError:
                    # Created by a concurrent writer since the lookup
                    db.rollback()
                    continue

            if record_crud.update_if_newer(db, entity_type, user_id, record_id, values):
                return None
            # Overtaken by a concurrent writer since the lookup; resolve again

        raise WriteContention(f"{entity_type.value} {record_id} kept changing during write")

    # ========================================
    # PULL
    # ========================================

    @staticmethod
    def pull(
        db: Session,
        user_id: str,
        device_id: str,
        since: Optional[datetime] = None
    ) -> SyncPullResponse:
        """
        Everything the device has not seen since its watermark.

        The device's own writes are never echoed back. Soft-deleted records
        are returned like live ones. No pagination: ``has_more`` is always
        False.
        """
        # Taken before reading so nothing written during the pull is skipped next time
        synced_at = utcnow()
        if since is not None:
            since = ensure_utc(since)

        found = {}
        for entity_type in ENTITY_MODELS:
            rows = record_crud.get_changes_since(
                db,
                entity_type,
                user_id,
                since=since,
                exclude_device_id=device_id
            )
            found[entity_type] = [RECORD_SCHEMAS[entity_type].model_validate(row) for row in rows]

        changes = SyncService.build_changes(found)

        logger.info(
            f"Pull by device {device_id} for user {user_id} since {since.isoformat() if since else 'beginning'}: "
            f"{sum(len(records) for records in found.values())} records"
        )
        return SyncPullResponse(synced_at=synced_at, changes=changes, has_more=False)

    @staticmethod
    def build_changes(found: dict) -> SyncChanges:
        """Group records by entity type; the preferences singleton becomes a single value."""
        preferences: List[SyncRecordIn] = found.get(EntityType.PREFERENCES, [])
        return SyncChanges(
            spaces=found.get(EntityType.SPACES, []),
            categories=found.get(EntityType.CATEGORIES, []),
            items=found.get(EntityType.ITEMS, []),
            preferences=preferences[0] if preferences else None
        )
