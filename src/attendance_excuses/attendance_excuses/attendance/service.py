from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Iterable, Optional, Sequence, Tuple

from ..audit.service import AuditTrail
from ..common.datetime_utils import DateLike, as_day, month_bounds, now_local
from ..common.validators import require_positive_id, require_presence
from ..core.constants import DEFAULT_HISTORY_DAYS
from ..core.enums import AuditAction, ExcuseStatus, Presence
from ..core.exceptions import ValidationError
from ..database.connection import TransactionManager
from ..excuses.repository import ExcuseRepository
from ..excuses.rules import excuse_status_for
from ..school_days.service import SchoolCalendar
from .model import Attendance, AttendanceStats, DailyAttendance, DayOverview, MonthOverview, TodayStatus
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def attendance_rate(present: int, total_days: int) -> float:
    """Percentage rounded half-up to one decimal; 0 when there are no school days."""
    if total_days <= 0:
        return 0.0
    return math.floor(present / total_days * 1000 + 0.5) / 10


class AttendanceLedger:
    def __init__(
        self,
        attendance: AttendanceRepository,
        excuses: ExcuseRepository,
        calendar: SchoolCalendar,
        audit: AuditTrail,
        tx: TransactionManager,
    ):
        self._attendance = attendance
        self._excuses = excuses
        self._calendar = calendar
        self._audit = audit
        self._tx = tx

    def record_attendance(self, child_id: int, day: DateLike, presence: Presence, recorded_by: int) -> Attendance:
        """Upsert the (child, day) row with an engine-derived excuse status.

        Writes no audit entry; bulk callers log one summary entry instead.
        """

        child_id = require_positive_id(child_id, "child_id")
        presence = require_presence(presence)
        day = as_day(day)

        excuse_id: Optional[int] = None
        auto_approved: Optional[bool] = None
        if presence == Presence.ABSENT:
            excuse = self._excuses.find_covering(child_id=child_id, day=day)
            if excuse:
                excuse_id = excuse.excuse_id
                auto_approved = excuse.auto_approved

        self._attendance.upsert(
            child_id=child_id,
            day=day,
            presence=presence,
            excuse_status=excuse_status_for(presence, auto_approved),
            excuse_id=excuse_id,
            recorded_by=int(recorded_by),
        )

        stored = self._attendance.get_for_child_and_date(child_id, day)
        if stored is None:
            raise RuntimeError(f"Attendance for child {child_id} on {day} was not stored")
        return stored

    def record_bulk(
        self,
        records: Iterable[Tuple[int, Presence]],
        day: DateLike,
        recorded_by: int,
    ) -> list[Attendance]:
        """Record one (child_id, presence) pair per child for ``day`` as one unit of work."""

        day = as_day(day)
        # Validate everything before the first write.
        pairs = [(require_positive_id(child_id, "child_id"), require_presence(presence)) for child_id, presence in records]

        with self._tx.transaction():
            results = [self.record_attendance(child_id, day, presence, recorded_by) for child_id, presence in pairs]
            self._audit.record(
                recorded_by,
                AuditAction.CREATE,
                "Attendance",
                f"bulk-{day.isoformat()}",
                new_value={
                    "date": day.isoformat(),
                    "record_count": len(pairs),
                    "present_count": sum(1 for _, p in pairs if p == Presence.PRESENT),
                },
            )

        logger.info("recorded attendance for %d children on %s by user %s", len(pairs), day.isoformat(), recorded_by)
        return results

    def can_record_attendance(self, day: DateLike, today: Optional[DateLike] = None) -> bool:
        day = as_day(day)
        today = as_day(today) if today is not None else now_local().date()

        if not self._calendar.is_teaching_day(day):
            return False
        return day <= today

    def stats_for_range(self, child_id: int, start: DateLike, end: DateLike) -> AttendanceStats:
        start, end = as_day(start), as_day(end)
        if end < start:
            raise ValidationError("The end date must not be before the start date")

        school_days = self._calendar.school_days_in_range(start, end)
        by_day = {a.day: a for a in self._attendance.list_for_child(child_id=int(child_id), start=start, end=end)}

        present = absent = excused = unexcused = 0
        for day in school_days:
            record = by_day.get(day)
            if record is None:
                # No record is not an absence.
                continue
            if record.presence == Presence.PRESENT:
                present += 1
            else:
                absent += 1
                if record.excuse_status == ExcuseStatus.EXCUSED:
                    excused += 1
                else:
                    unexcused += 1

        total_days = len(school_days)
        return AttendanceStats(
            total_days=total_days,
            present=present,
            absent=absent,
            excused=excused,
            unexcused=unexcused,
            attendance_rate=attendance_rate(present, total_days),
        )

    def get_today_status(self, child_id: int, today: Optional[DateLike] = None) -> TodayStatus:
        today = as_day(today) if today is not None else now_local().date()

        if not self._calendar.is_teaching_day(today):
            return TodayStatus(day=today, is_school_day=False)

        return TodayStatus(
            day=today,
            is_school_day=True,
            attendance=self._attendance.get_for_child_and_date(int(child_id), today),
        )

    def history(
        self,
        child_id: int,
        *,
        days: int = DEFAULT_HISTORY_DAYS,
        today: Optional[DateLike] = None,
    ) -> Sequence[Attendance]:
        """Records of the last ``days`` days up to today, newest first."""

        today = as_day(today) if today is not None else now_local().date()
        return self._attendance.list_for_child(
            child_id=int(child_id),
            start=today - timedelta(days=int(days)),
            end=today,
        )

    def attendance_for_date(self, day: DateLike) -> DailyAttendance:
        day = as_day(day)
        if not self._calendar.is_teaching_day(day):
            return DailyAttendance(day=day, is_closed=True)
        return DailyAttendance(day=day, is_closed=False, rows=tuple(self._attendance.list_for_date(day)))

    def day_overview(self, total_children: int, day: Optional[DateLike] = None) -> DayOverview:
        day = as_day(day) if day is not None else now_local().date()
        rows = self._attendance.list_between(start=day, end=day)
        present = sum(1 for a in rows if a.presence == Presence.PRESENT)
        return DayOverview(
            day=day,
            present=present,
            absent=len(rows) - present,
            total_children=int(total_children),
            recorded=bool(rows),
        )

    def month_overview(self, day: Optional[DateLike] = None) -> MonthOverview:
        """Totals over every stored row of the month containing ``day``."""

        start, end = month_bounds(as_day(day) if day is not None else now_local().date())
        rows = self._attendance.list_between(start=start, end=end)
        present = sum(1 for a in rows if a.presence == Presence.PRESENT)
        return MonthOverview(
            start=start,
            end=end,
            total_records=len(rows),
            present=present,
            absent=len(rows) - present,
            excused=sum(1 for a in rows if a.excuse_status == ExcuseStatus.EXCUSED),
            unexcused=sum(1 for a in rows if a.excuse_status == ExcuseStatus.UNEXCUSED),
        )

    @staticmethod
    def to_ui(a: Attendance) -> dict:
        return {
            "attendance_id": a.attendance_id,
            "child_id": a.child_id,
            "date": a.day.isoformat(),
            "presence": a.presence.value,
            "excuse_status": a.excuse_status.value,
            "excuse_id": a.excuse_id,
        }

    @staticmethod
    def stats_to_ui(s: AttendanceStats) -> dict:
        return {
            "total_days": s.total_days,
            "present": s.present,
            "absent": s.absent,
            "excused": s.excused,
            "unexcused": s.unexcused,
            "attendance_rate": s.attendance_rate,
        }
