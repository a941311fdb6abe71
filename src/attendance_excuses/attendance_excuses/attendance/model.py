from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import ExcuseStatus, Presence


@dataclass(frozen=True)
class Attendance:
    """Domain entity: one record per (child, day)."""

    attendance_id: int
    child_id: int
    day: date
    presence: Presence
    excuse_status: ExcuseStatus
    recorded_by: int
    excuse_id: Optional[int] = None


@dataclass(frozen=True)
class AttendanceStats:
    total_days: int
    present: int
    absent: int
    excused: int
    unexcused: int
    attendance_rate: float


@dataclass(frozen=True)
class TodayStatus:
    day: date
    is_school_day: bool
    attendance: Optional[Attendance] = None


@dataclass(frozen=True)
class DailyAttendance:
    day: date
    is_closed: bool
    rows: tuple[Attendance, ...] = ()


@dataclass(frozen=True)
class DayOverview:
    """Attendance of all children on one day."""

    day: date
    present: int
    absent: int
    total_children: int
    recorded: bool


@dataclass(frozen=True)
class MonthOverview:
    start: date
    end: date
    total_records: int
    present: int
    absent: int
    excused: int
    unexcused: int
