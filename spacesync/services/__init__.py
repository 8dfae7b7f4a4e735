# spacesync/services/__init__.py
"""
Sync engine services.
"""

from spacesync.services.conflict_resolver import Resolution, resolve
from spacesync.services.sync_service import SyncService
from spacesync.services.backup_service import BackupService, backup_service

__all__ = [
    "Resolution",
    "resolve",
    "SyncService",
    "BackupService",
    "backup_service",
]
