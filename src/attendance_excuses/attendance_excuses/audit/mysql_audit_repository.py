from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AuditAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditEntry
from .repository import AuditRepository

_COLUMNS = "audit_id, user_id, action, entity_type, entity_id, previous_value, new_value, created_at"


def _to_entry(r: dict) -> AuditEntry:
    return AuditEntry(
        audit_id=int(r["audit_id"]),
        user_id=int(r["user_id"]),
        action=AuditAction(r["action"]),
        entity_type=r["entity_type"],
        entity_id=str(r["entity_id"]),
        created_at=r["created_at"],
        previous_value=from_json(r.get("previous_value")),
        new_value=from_json(r.get("new_value")),
    )


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(user_id, action, entity_type, entity_id, previous_value, new_value, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    action.value,
                    entity_type,
                    str(entity_id),
                    to_json(previous_value),
                    to_json(new_value),
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM audit_logs
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def list_for_entity(self, *, entity_type: str, entity_id: str) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM audit_logs
                WHERE entity_type=%s AND entity_id=%s
                ORDER BY created_at ASC, audit_id ASC
                """,
                (entity_type, str(entity_id)),
            )
            return [_to_entry(r) for r in fetchall(cur)]
