from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditEntry:
    """Write-once record of a single mutation."""

    audit_id: int
    user_id: int
    action: AuditAction
    entity_type: str
    entity_id: str
    created_at: datetime
    previous_value: Optional[dict] = None
    new_value: Optional[dict] = None
