from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ExcuseStatus, Presence
from .model import Attendance


class AttendanceRepository(Protocol):
    def get_for_child_and_date(self, child_id: int, day: date) -> Optional[Attendance]:
        raise NotImplementedError

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
        """Insert or overwrite the row keyed by (child_id, day)."""

        raise NotImplementedError

    def link_absences(
        self,
        *,
        child_id: int,
        days: Sequence[date],
        excuse_id: int,
        excuse_status: ExcuseStatus,
    ) -> int:
        """Point the child's ABSENT rows on ``days`` at ``excuse_id``. Returns rows changed."""

        raise NotImplementedError

    def set_status_for_excuse(
        self,
        *,
        excuse_id: int,
        excuse_status: ExcuseStatus,
        days: Optional[Sequence[date]] = None,
    ) -> int:
        """Re-derive status on ABSENT rows linked to ``excuse_id`` (optionally only on ``days``)."""

        raise NotImplementedError

    def unlink_excuse(self, *, excuse_id: int) -> int:
        """Clear the link on every row referencing ``excuse_id`` and mark it UNEXCUSED."""

        raise NotImplementedError

    def list_for_child(self, *, child_id: int, start: date, end: date) -> Sequence[Attendance]:
        """Rows with start <= day <= end, newest first."""

        raise NotImplementedError

    def list_for_date(self, day: date) -> Sequence[Attendance]:
        raise NotImplementedError

    def list_between(self, *, start: date, end: date) -> Sequence[Attendance]:
        """Rows of every child with start <= day <= end."""

        raise NotImplementedError
