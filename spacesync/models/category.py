from sqlmodel import Field
from typing import Optional

from spacesync.models.mixins import SyncRecordBase, sync_indexes


class Category(SyncRecordBase, table=True):
    __tablename__ = "categories"
    __table_args__ = sync_indexes("categories")

    id: str = Field(primary_key=True, max_length=255)

    # Not a foreign key: a category may arrive before its space within a batch
    space_id: str = Field(max_length=255, index=True)

    name: str = Field(max_length=255)
    icon: Optional[str] = Field(default="📌", max_length=50)
    is_hidden: bool = Field(default=False)
    order: int = Field(default=0)
