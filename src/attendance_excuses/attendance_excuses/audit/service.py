from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_AUDIT_LIMIT
from ..core.enums import AuditAction
from ..core.exceptions import ValidationError
from .model import AuditEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Append-only sink shared by every mutating service."""

    def __init__(self, entries: AuditRepository, *, clock: Callable[[], datetime] = now_local):
        self._entries = entries
        self._clock = clock

    def record(
        self,
        acting_user: int,
        action: AuditAction,
        entity_type: str,
        entity_id,
        previous_value: Optional[dict] = None,
        new_value: Optional[dict] = None,
    ) -> int:
        audit_id = self._entries.append(
            user_id=int(acting_user),
            action=AuditAction(action),
            entity_type=entity_type,
            entity_id=str(entity_id),
            previous_value=dict(previous_value) if previous_value is not None else None,
            new_value=dict(new_value) if new_value is not None else None,
            created_at=self._clock(),
        )
        logger.info("audit %s %s:%s by user %s", AuditAction(action).value, entity_type, entity_id, acting_user)
        return audit_id

    def recent(self, limit: int = DEFAULT_AUDIT_LIMIT) -> Sequence[AuditEntry]:
        if int(limit) <= 0:
            raise ValidationError("limit must be positive")
        return self._entries.list_recent(limit=int(limit))

    def for_entity(self, entity_type: str, entity_id) -> Sequence[AuditEntry]:
        return self._entries.list_for_entity(entity_type=entity_type, entity_id=str(entity_id))

    @staticmethod
    def to_ui(entry: AuditEntry) -> dict:
        return {
            "audit_id": entry.audit_id,
            "user_id": entry.user_id,
            "action": entry.action.value,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "previous_value": entry.previous_value,
            "new_value": entry.new_value,
            "created_at": entry.created_at.isoformat(timespec="seconds"),
        }
