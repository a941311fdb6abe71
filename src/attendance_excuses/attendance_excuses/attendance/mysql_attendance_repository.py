from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ExcuseStatus, Presence
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import Attendance
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, child_id, day, presence, excuse_status, excuse_id, recorded_by"


def _to_attendance(r: dict) -> Attendance:
    return Attendance(
        attendance_id=int(r["attendance_id"]),
        child_id=int(r["child_id"]),
        day=normalize_mysql_date(r["day"]),
        presence=Presence(r["presence"]),
        excuse_status=ExcuseStatus(r["excuse_status"]),
        recorded_by=int(r["recorded_by"]),
        excuse_id=int(r["excuse_id"]) if r.get("excuse_id") is not None else None,
    )


def _in_clause(values: Sequence[object]) -> str:
    return ",".join(["%s"] * len(values))


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_child_and_date(self, child_id: int, day: date) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE child_id=%s AND day=%s",
                (int(child_id), day),
            )
            r = fetchone(cur)
            return _to_attendance(r) if r else None

    def upsert(
        self,
        *,
        child_id: int,
        day: date,
        presence: Presence,
        excuse_status: ExcuseStatus,
        excuse_id: Optional[int],
        recorded_by: int,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(child_id, day, presence, excuse_status, excuse_id, recorded_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    presence=VALUES(presence),
                    excuse_status=VALUES(excuse_status),
                    excuse_id=VALUES(excuse_id),
                    recorded_by=VALUES(recorded_by)
                """,
                (int(child_id), day, presence.value, excuse_status.value, excuse_id, int(recorded_by)),
            )

    def link_absences(
        self,
        *,
        child_id: int,
        days: Sequence[date],
        excuse_id: int,
        excuse_status: ExcuseStatus,
    ) -> int:
        if not days:
            return 0

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance
                SET excuse_id=%s, excuse_status=%s
                WHERE child_id=%s AND presence=%s AND day IN ({_in_clause(days)})
                """,
                (int(excuse_id), excuse_status.value, int(child_id), Presence.ABSENT.value, *days),
            )
            return int(cur.rowcount)

    def set_status_for_excuse(
        self,
        *,
        excuse_id: int,
        excuse_status: ExcuseStatus,
        days: Optional[Sequence[date]] = None,
    ) -> int:
        clauses = ["excuse_id=%s", "presence=%s"]
        params: list[object] = [excuse_status.value, int(excuse_id), Presence.ABSENT.value]

        if days is not None:
            if not days:
                return 0
            clauses.append(f"day IN ({_in_clause(days)})")
            params.extend(days)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE attendance SET excuse_status=%s WHERE {where}", tuple(params))
            return int(cur.rowcount)

    def unlink_excuse(self, *, excuse_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET excuse_id=NULL, excuse_status=%s
                WHERE excuse_id=%s
                """,
                (ExcuseStatus.UNEXCUSED.value, int(excuse_id)),
            )
            return int(cur.rowcount)

    def list_for_child(self, *, child_id: int, start: date, end: date) -> Sequence[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE child_id=%s AND day BETWEEN %s AND %s
                ORDER BY day DESC
                """,
                (int(child_id), start, end),
            )
            return [_to_attendance(r) for r in fetchall(cur)]

    def list_for_date(self, day: date) -> Sequence[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.attendance_id, a.child_id, a.day, a.presence, a.excuse_status, a.excuse_id, a.recorded_by
                FROM attendance a
                JOIN children c ON c.child_id = a.child_id
                WHERE a.day=%s
                ORDER BY c.last_name ASC, c.first_name ASC
                """,
                (day,),
            )
            return [_to_attendance(r) for r in fetchall(cur)]

    def list_between(self, *, start: date, end: date) -> Sequence[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE day BETWEEN %s AND %s
                ORDER BY day ASC, child_id ASC
                """,
                (start, end),
            )
            return [_to_attendance(r) for r in fetchall(cur)]
