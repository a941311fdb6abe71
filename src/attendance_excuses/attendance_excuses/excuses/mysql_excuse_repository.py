from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import Excuse
from .repository import ExcuseRepository

_COLUMNS = "excuse_id, child_id, from_date, to_date, reason, submitted_by, submitted_at, auto_approved"


def _to_excuse(r: dict) -> Excuse:
    return Excuse(
        excuse_id=int(r["excuse_id"]),
        child_id=int(r["child_id"]),
        from_date=normalize_mysql_date(r["from_date"]),
        to_date=normalize_mysql_date(r["to_date"]),
        submitted_by=int(r["submitted_by"]),
        submitted_at=r["submitted_at"],
        auto_approved=bool(r["auto_approved"]),
        reason=r.get("reason"),
    )


class MySQLExcuseRepository(ExcuseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        child_id: int,
        from_date: date,
        to_date: date,
        reason: Optional[str],
        submitted_by: int,
        submitted_at: datetime,
        auto_approved: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO excuses(child_id, from_date, to_date, reason, submitted_by, submitted_at, auto_approved)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(child_id), from_date, to_date, reason, int(submitted_by), submitted_at, int(bool(auto_approved))),
            )
            return int(cur.lastrowid)

    def get_by_id(self, excuse_id: int) -> Optional[Excuse]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM excuses WHERE excuse_id=%s", (int(excuse_id),))
            r = fetchone(cur)
            return _to_excuse(r) if r else None

    def find_covering(self, *, child_id: int, day: date) -> Optional[Excuse]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM excuses
                WHERE child_id=%s AND from_date <= %s AND to_date >= %s
                ORDER BY submitted_at DESC, excuse_id DESC
                LIMIT 1
                """,
                (int(child_id), day, day),
            )
            r = fetchone(cur)
            return _to_excuse(r) if r else None

    def update(
        self,
        *,
        excuse_id: int,
        from_date: date,
        to_date: date,
        reason: Optional[str],
        auto_approved: bool,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE excuses
                SET from_date=%s, to_date=%s, reason=%s, auto_approved=%s
                WHERE excuse_id=%s
                """,
                (from_date, to_date, reason, int(bool(auto_approved)), int(excuse_id)),
            )
            return cur.rowcount > 0

    def delete(self, excuse_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM excuses WHERE excuse_id=%s", (int(excuse_id),))
            return cur.rowcount > 0

    def list_for_child(self, *, child_id: int, limit: int) -> Sequence[Excuse]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM excuses
                WHERE child_id=%s
                ORDER BY submitted_at DESC, excuse_id DESC
                LIMIT %s
                """,
                (int(child_id), int(limit)),
            )
            return [_to_excuse(r) for r in fetchall(cur)]

    def list_filtered(
        self,
        *,
        child_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        auto_approved: Optional[bool] = None,
        submitted_since: Optional[datetime] = None,
        limit: int = 100,
    ) -> Sequence[Excuse]:
        clauses = ["1=1"]
        params: list[object] = []

        if child_id is not None:
            clauses.append("child_id=%s")
            params.append(int(child_id))
        if start is not None:
            clauses.append("from_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("from_date <= %s")
            params.append(end)
        if auto_approved is not None:
            clauses.append("auto_approved=%s")
            params.append(int(bool(auto_approved)))
        if submitted_since is not None:
            clauses.append("submitted_at >= %s")
            params.append(submitted_since)

        where = " AND ".join(clauses)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM excuses
                WHERE {where}
                ORDER BY submitted_at DESC, excuse_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_excuse(r) for r in fetchall(cur)]
