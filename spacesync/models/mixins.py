"""
Base classes for syncable models.

Every entity that takes part in offline-first sync shares the same five
sync-relevant fields. The sync engine reads only these for its decisions and
persists everything else unmodified.
"""

from sqlalchemy import DateTime, Index
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC instant."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to an aware UTC instant.

    Naive values are interpreted as UTC (this is how they come back from
    databases that do not keep the offset, e.g. SQLite).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Stores naive UTC, always returns aware UTC.

    Comparisons on ``updated_at`` must happen between absolute instants, so
    offsets are resolved before anything reaches the database.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return ensure_utc(value).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class SyncRecordBase(SQLModel):
    """
    Common shape of every syncable record.

    Fields:
        user_id: Owner; every sync operation is scoped to one user
        deleted: Soft delete flag (deleted records keep syncing)
        device_id: Device that wrote the current version
        created_at: Set once, at first acceptance into the store
        updated_at: Bumped on every accepted write; sole input to LWW

    Usage:
        class MyRecord(SyncRecordBase, table=True):
            id: str = Field(primary_key=True, max_length=255)
            name: str
    """

    user_id: str = Field(primary_key=True, max_length=255, description="Owner of the record")

    deleted: bool = Field(default=False, description="Soft delete flag")

    device_id: str = Field(
        default="server",
        max_length=255,
        description="Device that last wrote this record"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_type=UTCDateTime,
        nullable=False,
        description="First acceptance into the store"
    )

    # Last-Write-Wins input
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=UTCDateTime,
        nullable=False,
        description="Last accepted write"
    )


def sync_indexes(table_name: str) -> tuple:
    """Indexes backing the per-user range scans done by pull, backup and restore."""
    return (
        Index(f"ix_{table_name}_user_updated", "user_id", "updated_at"),
        Index(f"ix_{table_name}_user_device", "user_id", "device_id"),
        Index(f"ix_{table_name}_user_deleted", "user_id", "deleted"),
    )
