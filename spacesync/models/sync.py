"""
Sync registry for offline-first multiplatform support.

This module defines the closed set of entity types that take part in sync
and maps each of them to its table.
"""

from typing import Dict, Type
from enum import Enum

from spacesync.models.mixins import SyncRecordBase
from spacesync.models.space import Space
from spacesync.models.category import Category
from spacesync.models.item import Item
from spacesync.models.preferences import UserPreferences


class EntityType(str, Enum):
    """Entity types, named as they appear in sync payloads."""
    SPACES = "spaces"
    CATEGORIES = "categories"
    ITEMS = "items"
    PREFERENCES = "preferences"


class ConflictReason(str, Enum):
    """Why an incoming record was not applied."""
    OLDER_TIMESTAMP = "OLDER_TIMESTAMP"
    OWNERSHIP_MISMATCH = "OWNERSHIP_MISMATCH"


# Processing order for push, backup and restore
ENTITY_MODELS: Dict[EntityType, Type[SyncRecordBase]] = {
    EntityType.SPACES: Space,
    EntityType.CATEGORIES: Category,
    EntityType.ITEMS: Item,
    EntityType.PREFERENCES: UserPreferences,
}

# Singleton entity types are looked up by user_id only
SINGLETON_TYPES = frozenset({EntityType.PREFERENCES})
