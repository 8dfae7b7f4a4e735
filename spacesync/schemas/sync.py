"""
Sync schemas for offline-first functionality
Wire format is camelCase; attributes mirror the table columns in snake_case
"""

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Dict, List, Optional, Type

from spacesync.models.mixins import ensure_utc
from spacesync.models.sync import EntityType, ConflictReason


class CamelModel(BaseModel):
    """Base for every sync payload: camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ===========================
# Records
# ===========================

class SyncRecordIn(CamelModel):
    """Common fields of every syncable record"""
    user_id: Optional[str] = Field(None, description="Owner of the record (a missing owner is rejected per record)")
    deleted: bool = Field(False, description="Soft delete flag")
    device_id: Optional[str] = Field(None, description="Device that wrote this version (overwritten by the server)")
    created_at: Optional[datetime] = Field(None, description="First acceptance into the store")
    updated_at: datetime = Field(..., description="Last-Write-Wins timestamp")

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return ensure_utc(v)


class SpaceRecord(SyncRecordIn):
    id: str = Field(..., min_length=1)
    name: str
    icon: Optional[str] = "📁"
    is_hidden: bool = False
    order: int = 0

    class Config:
        json_schema_extra = {
            "example": {
                "id": "space_1730000000000",
                "userId": "user_42",
                "name": "Groceries",
                "icon": "🛒",
                "isHidden": False,
                "order": 0,
                "deleted": False,
                "updatedAt": "2025-10-27T12:00:00.000Z"
            }
        }


class CategoryRecord(SyncRecordIn):
    id: str = Field(..., min_length=1)
    space_id: str
    name: str
    icon: Optional[str] = "📌"
    is_hidden: bool = False
    order: int = 0


class ItemRecord(SyncRecordIn):
    id: str = Field(..., min_length=1)
    space_id: str
    category_id: Optional[str] = None
    text: str
    is_completed: bool = False
    image_url: Optional[str] = None
    description: Optional[str] = None
    order: int = 0


class PreferencesRecord(SyncRecordIn):
    """Singleton per user; ``id`` is optional and only round-tripped."""
    id: Optional[str] = None
    is_dark_mode: bool = True
    theme_color: str = "blue"


RECORD_SCHEMAS: Dict[EntityType, Type[SyncRecordIn]] = {
    EntityType.SPACES: SpaceRecord,
    EntityType.CATEGORIES: CategoryRecord,
    EntityType.ITEMS: ItemRecord,
    EntityType.PREFERENCES: PreferencesRecord,
}


class SyncChanges(CamelModel):
    """A set of records grouped by entity type"""
    spaces: List[SpaceRecord] = Field(default_factory=list)
    categories: List[CategoryRecord] = Field(default_factory=list)
    items: List[ItemRecord] = Field(default_factory=list)
    preferences: Optional[PreferencesRecord] = None

    def records_for(self, entity_type: EntityType) -> List[SyncRecordIn]:
        """Records of one entity type, preferences wrapped in a list."""
        if entity_type == EntityType.PREFERENCES:
            return [self.preferences] if self.preferences is not None else []
        return list(getattr(self, entity_type.value))


# ===========================
# Counters & Conflicts
# ===========================

class EntityCounts(CamelModel):
    """Per-entity-type counter"""
    spaces: int = 0
    categories: int = 0
    items: int = 0
    preferences: int = 0

    def increment(self, entity_type: EntityType) -> None:
        setattr(self, entity_type.value, getattr(self, entity_type.value) + 1)

    @property
    def total(self) -> int:
        return self.spaces + self.categories + self.items + self.preferences


class ConflictDescriptor(CamelModel):
    """An incoming record that lost against the stored version"""
    id: Optional[str] = Field(None, description="Record id (None for preferences sent without one)")
    entity_type: EntityType
    reason: ConflictReason = ConflictReason.OLDER_TIMESTAMP
    server_updated_at: datetime
    client_updated_at: datetime


# ===========================
# Push
# ===========================

class SyncPushRequest(CamelModel):
    """
    Request to push local changes to server.

    ``device_id`` and ``changes`` are required; they are declared optional so
    the router can answer with a stable error code instead of a generic
    validation error.
    """
    device_id: Optional[str] = Field(None, description="Device pushing changes")
    last_sync_at: Optional[datetime] = Field(None, description="Client watermark (informational)")
    changes: Optional[SyncChanges] = Field(None, description="Records to apply")

    class Config:
        json_schema_extra = {
            "example": {
                "deviceId": "550e8400-e29b-41d4-a716-446655440000",
                "lastSyncAt": "2025-10-27T10:00:00Z",
                "changes": {
                    "spaces": [],
                    "categories": [],
                    "items": [
                        {
                            "id": "item_1",
                            "userId": "user_42",
                            "spaceId": "space_1",
                            "text": "Milk",
                            "updatedAt": "2025-10-27T11:30:00Z"
                        }
                    ]
                }
            }
        }


class SyncPushResponse(CamelModel):
    """Response from push sync operation"""
    synced_at: datetime = Field(..., description="Server timestamp to use as the next watermark")
    conflicts: List[ConflictDescriptor] = Field(default_factory=list)
    accepted: EntityCounts = Field(default_factory=EntityCounts)
    rejected: EntityCounts = Field(default_factory=EntityCounts)


# ===========================
# Pull
# ===========================

class SyncPullResponse(CamelModel):
    """Response from pull sync operation"""
    synced_at: datetime = Field(..., description="Server timestamp to use as the next watermark")
    changes: SyncChanges = Field(default_factory=SyncChanges)
    has_more: bool = Field(False, description="Always false: pulls are not paginated")


# ===========================
# Backup & Restore
# ===========================

class BackupResponse(CamelModel):
    """Full snapshot of a user's records, deleted ones included"""
    backup_at: datetime
    version: str
    user_id: str
    spaces: List[SpaceRecord] = Field(default_factory=list)
    categories: List[CategoryRecord] = Field(default_factory=list)
    items: List[ItemRecord] = Field(default_factory=list)
    preferences: Optional[PreferencesRecord] = None


class SyncRestoreRequest(CamelModel):
    """Request to replace the user's dataset with a backup"""
    device_id: Optional[str] = Field(None, description="Device performing the restore")
    backup_data: Optional[SyncChanges] = Field(None, description="Backup payload (the backup response is accepted as-is)")


class SyncRestoreResponse(CamelModel):
    """Accepted counts from the replay phase"""
    restored: EntityCounts = Field(default_factory=EntityCounts)
