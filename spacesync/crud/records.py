# spacesync/crud/records.py
from sqlalchemy import update
from sqlmodel import Session, select
from typing import List, Optional, Dict, Any, Type
from datetime import datetime

from spacesync.models.mixins import SyncRecordBase
from spacesync.models.sync import EntityType, ENTITY_MODELS, SINGLETON_TYPES


class RecordCRUD:
    """
    Storage for syncable records, one table per entity type.

    Every write commits on its own: a push is a sequence of independent
    record-level transactions, never one batch transaction.
    """

    @staticmethod
    def model_for(entity_type: EntityType) -> Type[SyncRecordBase]:
        return ENTITY_MODELS[entity_type]

    def _identity_filter(self, query, entity_type: EntityType, user_id: str, record_id: Optional[str]):
        model = self.model_for(entity_type)
        query = query.where(model.user_id == user_id)
        if entity_type not in SINGLETON_TYPES:
            query = query.where(model.id == record_id)
        return query

    def get_record(
        self,
        db: Session,
        entity_type: EntityType,
        user_id: str,
        record_id: Optional[str] = None
    ) -> Optional[SyncRecordBase]:
        """Point lookup by (id, user_id); singletons by user_id alone."""
        model = self.model_for(entity_type)
        query = self._identity_filter(select(model), entity_type, user_id, record_id)
        return db.exec(query).first()

    def get_changes_since(
        self,
        db: Session,
        entity_type: EntityType,
        user_id: str,
        since: Optional[datetime] = None,
        exclude_device_id: Optional[str] = None
    ) -> List[SyncRecordBase]:
        """Records updated after ``since`` that were not written by ``exclude_device_id``."""
        model = self.model_for(entity_type)
        query = select(model).where(model.user_id == user_id)

        if since is not None:
            query = query.where(model.updated_at > since)
        if exclude_device_id is not None:
            query = query.where(model.device_id != exclude_device_id)

        return db.exec(query.order_by(model.updated_at)).all()

    def get_all_for_user(self, db: Session, entity_type: EntityType, user_id: str) -> List[SyncRecordBase]:
        """Every record of the user, deleted ones included."""
        return self.get_changes_since(db, entity_type, user_id)

    def insert_record(self, db: Session, entity_type: EntityType, values: Dict[str, Any]) -> SyncRecordBase:
        """
        Insert a new record.

        Raises ``IntegrityError`` when the key already exists, i.e. a
        concurrent writer created it after our lookup.
        """
        model = self.model_for(entity_type)
        record = model(**values)
        db.add(record)
        db.commit()
        return record

    def update_if_newer(
        self,
        db: Session,
        entity_type: EntityType,
        user_id: str,
        record_id: Optional[str],
        values: Dict[str, Any]
    ) -> bool:
        """
        Replace a stored record only if its ``updated_at`` is still older.

        Compare-and-swap on ``updated_at``: returns False when a newer (or
        equal) version landed since it was read.
        """
        model = self.model_for(entity_type)
        statement = self._identity_filter(update(model), entity_type, user_id, record_id)
        statement = statement.where(model.updated_at < values["updated_at"]).values(**values)
        statement = statement.execution_options(synchronize_session=False)

        result = db.execute(statement)
        db.commit()
        return result.rowcount == 1

    def soft_delete_all(
        self,
        db: Session,
        entity_type: EntityType,
        user_id: str,
        device_id: str,
        deleted_at: datetime
    ) -> int:
        """Mark every live record of the user deleted. Returns the number swept."""
        model = self.model_for(entity_type)
        statement = (
            update(model)
            .where(model.user_id == user_id)
            .where(model.deleted == False)  # noqa: E712
            .values(deleted=True, updated_at=deleted_at, device_id=device_id)
            .execution_options(synchronize_session=False)
        )

        result = db.execute(statement)
        db.commit()
        return result.rowcount


record_crud = RecordCRUD()
