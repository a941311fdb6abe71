from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import ClosedDay


class ClosedDayRepository(Protocol):
    def get_by_id(self, closed_day_id: int) -> Optional[ClosedDay]:
        raise NotImplementedError

    def get_by_date(self, day: date) -> Optional[ClosedDay]:
        raise NotImplementedError

    def list_range(self, *, start: date, end: date) -> Sequence[ClosedDay]:
        """Closed days with start <= day <= end, ascending."""

        raise NotImplementedError

    def create(self, *, day: date, description: Optional[str] = None) -> int:
        raise NotImplementedError

    def delete(self, closed_day_id: int) -> bool:
        raise NotImplementedError
