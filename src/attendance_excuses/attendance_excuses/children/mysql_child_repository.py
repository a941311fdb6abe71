from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Child
from .repository import ChildRepository


def _to_child(r: dict) -> Child:
    return Child(
        child_id=int(r["child_id"]),
        first_name=r["first_name"],
        last_name=r["last_name"],
        active=bool(r["active"]),
    )


class MySQLChildRepository(ChildRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, child_id: int) -> Optional[Child]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT child_id, first_name, last_name, active FROM children WHERE child_id=%s",
                (int(child_id),),
            )
            r = fetchone(cur)
            return _to_child(r) if r else None

    def list_active(self) -> Sequence[Child]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT child_id, first_name, last_name, active
                FROM children
                WHERE active=1
                ORDER BY last_name ASC, first_name ASC
                """
            )
            return [_to_child(r) for r in fetchall(cur)]

    def list_for_parent(self, parent_id: int) -> Sequence[Child]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.child_id, c.first_name, c.last_name, c.active
                FROM parent_children pc
                JOIN children c ON c.child_id = pc.child_id
                WHERE pc.parent_id=%s
                ORDER BY c.last_name ASC, c.first_name ASC
                """,
                (int(parent_id),),
            )
            return [_to_child(r) for r in fetchall(cur)]

    def is_parent_of(self, parent_id: int, child_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM parent_children WHERE parent_id=%s AND child_id=%s",
                (int(parent_id), int(child_id)),
            )
            return fetchone(cur) is not None
