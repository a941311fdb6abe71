from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AuditAction
from .model import AuditEntry


class AuditRepository(Protocol):
    """Insert-only store. There is deliberately no update or delete."""

    def append(
        self,
        *,
        user_id: int,
        action: AuditAction,
        entity_type: str,
        entity_id: str,
        previous_value: Optional[dict],
        new_value: Optional[dict],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int) -> Sequence[AuditEntry]:
        """Newest first."""

        raise NotImplementedError

    def list_for_entity(self, *, entity_type: str, entity_id: str) -> Sequence[AuditEntry]:
        """Oldest first."""

        raise NotImplementedError
