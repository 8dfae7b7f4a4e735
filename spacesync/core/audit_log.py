"""
Audit trail for sync events that matter for security and support.

Events are emitted as JSON lines on the ``spacesync.audit`` logger and kept in
memory so they can be inspected without a log collector.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
import json
import logging


class AuditEventType(Enum):
    """Kinds of audited events."""
    # Sync events
    OWNERSHIP_MISMATCH = "ownership_mismatch"
    BACKUP_EXPORTED = "backup_exported"
    RESTORE_PERFORMED = "restore_performed"

    # Access events
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


@dataclass
class AuditEvent:
    """One audited occurrence, scoped to a user and optionally a device."""
    event_type: AuditEventType
    user_id: Optional[str] = None
    device_id: Optional[str] = None
    ip_address: Optional[str] = None
    level: int = logging.INFO
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        return json.dumps(
            {
                "event": self.event_type.value,
                "level": logging.getLevelName(self.level).lower(),
                "at": self.timestamp.isoformat(),
                "user_id": self.user_id,
                "device_id": self.device_id,
                "ip_address": self.ip_address,
                "details": self.details,
            },
            default=str
        )


class AuditLogger:
    """Records audit events for the sync API."""

    def __init__(self, app_name: str = "spacesync"):
        self.logger = logging.getLogger(f"{app_name}.audit")
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)
        self._events: List[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        self._events.append(event)
        self.logger.log(event.level, event.to_json())

    def log_ownership_mismatch(
        self,
        user_id: str,
        device_id: str,
        entity_type: str,
        record_id: Optional[str],
        claimed_user_id: Optional[str],
        reason: str
    ) -> None:
        """A pushed record claimed to belong to another user, or to nobody."""
        self.record(AuditEvent(
            event_type=AuditEventType.OWNERSHIP_MISMATCH,
            user_id=user_id,
            device_id=device_id,
            level=logging.WARNING,
            details={
                "entity_type": entity_type,
                "record_id": record_id,
                "claimed_user_id": claimed_user_id,
                "reason": reason
            }
        ))

    def log_backup_exported(self, user_id: str, record_count: int) -> None:
        self.record(AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            user_id=user_id,
            details={"record_count": record_count}
        ))

    def log_restore_performed(
        self,
        user_id: str,
        device_id: str,
        swept: Dict[str, int],
        restored: Dict[str, int]
    ) -> None:
        """Every live record of the user was swept, then the backup replayed."""
        self.record(AuditEvent(
            event_type=AuditEventType.RESTORE_PERFORMED,
            user_id=user_id,
            device_id=device_id,
            level=logging.WARNING,
            details={"swept": swept, "restored": restored}
        ))

    def log_unauthorized_access(self, resource: str, ip_address: Optional[str] = None) -> None:
        self.record(AuditEvent(
            event_type=AuditEventType.UNAUTHORIZED_ACCESS,
            ip_address=ip_address,
            level=logging.WARNING,
            details={"resource": resource}
        ))

    def log_rate_limit_exceeded(self, user_id: str, resource: str, retry_after: int) -> None:
        self.record(AuditEvent(
            event_type=AuditEventType.RATE_LIMIT_EXCEEDED,
            user_id=user_id,
            level=logging.WARNING,
            details={"resource": resource, "retry_after": retry_after}
        ))

    def get_events(
        self,
        user_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        limit: int = 100
    ) -> List[AuditEvent]:
        """Most recent events, newest last, optionally narrowed to a user and/or a type."""
        events = [
            e for e in self._events
            if (user_id is None or e.user_id == user_id)
            and (event_type is None or e.event_type == event_type)
        ]
        return events[-limit:]

    def clear(self) -> None:
        self._events.clear()


_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger
