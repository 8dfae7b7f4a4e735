from sqlmodel import Field
from typing import Optional

from spacesync.models.mixins import SyncRecordBase, sync_indexes


class UserPreferences(SyncRecordBase, table=True):
    """
    Singleton per user: keyed by ``user_id`` alone.

    ``id`` is whatever the client sent and is stored for round-tripping only.
    """
    __tablename__ = "user_preferences"
    __table_args__ = sync_indexes("user_preferences")

    id: Optional[str] = Field(default=None, max_length=255)

    is_dark_mode: bool = Field(default=True)
    theme_color: str = Field(default="blue", max_length=50)
