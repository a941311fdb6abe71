from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import ClosedDay
from .repository import ClosedDayRepository


def _to_closed_day(r: dict) -> ClosedDay:
    return ClosedDay(
        closed_day_id=int(r["closed_day_id"]),
        day=normalize_mysql_date(r["day"]),
        description=r.get("description"),
    )


class MySQLClosedDayRepository(ClosedDayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, closed_day_id: int) -> Optional[ClosedDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT closed_day_id, day, description FROM closed_days WHERE closed_day_id=%s",
                (int(closed_day_id),),
            )
            r = fetchone(cur)
            return _to_closed_day(r) if r else None

    def get_by_date(self, day: date) -> Optional[ClosedDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT closed_day_id, day, description FROM closed_days WHERE day=%s",
                (day,),
            )
            r = fetchone(cur)
            return _to_closed_day(r) if r else None

    def list_range(self, *, start: date, end: date) -> Sequence[ClosedDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT closed_day_id, day, description
                FROM closed_days
                WHERE day BETWEEN %s AND %s
                ORDER BY day ASC
                """,
                (start, end),
            )
            return [_to_closed_day(r) for r in fetchall(cur)]

    def create(self, *, day: date, description: Optional[str] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO closed_days(day, description) VALUES(%s,%s)",
                (day, description),
            )
            return int(cur.lastrowid)

    def delete(self, closed_day_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM closed_days WHERE closed_day_id=%s", (int(closed_day_id),))
            return cur.rowcount > 0
