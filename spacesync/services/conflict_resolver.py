"""
Last-Write-Wins conflict resolution.

A pure decision on two timestamps: no cross-record state, no per-field merge.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from spacesync.models.mixins import ensure_utc


class Resolution(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


def resolve(incoming_updated_at: datetime, existing_updated_at: Optional[datetime]) -> Resolution:
    """
    Decide whether an incoming version replaces the stored one.

    - No stored version: accept (this is how records get created).
    - Otherwise accept only if the incoming timestamp is strictly newer.
      Equal timestamps keep the stored version, so re-sending an accepted
      record is a no-op.
    """
    if existing_updated_at is None:
        return Resolution.ACCEPT

    if ensure_utc(incoming_updated_at) > ensure_utc(existing_updated_at):
        return Resolution.ACCEPT

    return Resolution.REJECT
