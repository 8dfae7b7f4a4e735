from sqlmodel import Field, Column, Text
from typing import Optional

from spacesync.models.mixins import SyncRecordBase, sync_indexes


class Item(SyncRecordBase, table=True):
    __tablename__ = "items"
    __table_args__ = sync_indexes("items")

    id: str = Field(primary_key=True, max_length=255)

    space_id: str = Field(max_length=255, index=True)
    category_id: Optional[str] = Field(default=None, max_length=255)

    text: str = Field(sa_column=Column(Text, nullable=False))
    is_completed: bool = Field(default=False)
    image_url: Optional[str] = Field(default=None, max_length=2048)
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    order: int = Field(default=0)
