from sqlmodel import Field
from typing import Optional

from spacesync.models.mixins import SyncRecordBase, sync_indexes


class Space(SyncRecordBase, table=True):
    __tablename__ = "spaces"
    __table_args__ = sync_indexes("spaces")

    # Client-generated, never reused
    id: str = Field(primary_key=True, max_length=255)

    name: str = Field(max_length=255)
    icon: Optional[str] = Field(default="📁", max_length=50)
    is_hidden: bool = Field(default=False)
    order: int = Field(default=0)
