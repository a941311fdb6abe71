from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional, Sequence

from ..audit.service import AuditTrail
from ..common.datetime_utils import DateLike, as_day, iter_days
from ..common.validators import optional_text
from ..core.constants import DEFAULT_CLOSED_WEEKDAYS, NEXT_SCHOOL_DAY_SEARCH_DAYS
from ..core.enums import AuditAction
from ..core.exceptions import NotFoundError, ValidationError
from ..database.connection import TransactionManager
from .model import ClosedDay
from .repository import ClosedDayRepository

logger = logging.getLogger(__name__)


def is_default_closed_day(day: DateLike) -> bool:
    """Friday, Saturday and Sunday are never teaching days."""
    return as_day(day).weekday() in DEFAULT_CLOSED_WEEKDAYS


def current_week_school_days(today: DateLike) -> List[date]:
    """Monday..Thursday of the week containing ``today`` (ignores closed days)."""
    day = as_day(today)
    monday = day - timedelta(days=day.weekday())
    return [monday + timedelta(days=i) for i in range(4)]


class SchoolCalendar:
    """Decides teaching days from the fixed weekly pattern plus ClosedDay rows.

    The ClosedDay set is read from the repository on every query; nothing is cached.
    """

    def __init__(
        self,
        closed_days: ClosedDayRepository,
        *,
        audit: Optional[AuditTrail] = None,
        tx: Optional[TransactionManager] = None,
    ):
        self._closed_days = closed_days
        self._audit = audit
        self._tx = tx

    def is_teaching_day(self, day: DateLike) -> bool:
        day = as_day(day)
        if is_default_closed_day(day):
            return False
        return self._closed_days.get_by_date(day) is None

    def school_days_in_range(self, start: DateLike, end: DateLike) -> List[date]:
        start, end = as_day(start), as_day(end)
        if end < start:
            return []

        closed = {cd.day for cd in self._closed_days.list_range(start=start, end=end)}
        return [d for d in iter_days(start, end) if not is_default_closed_day(d) and d not in closed]

    def next_school_day(self, after: DateLike) -> date:
        current = as_day(after) + timedelta(days=1)
        for _ in range(NEXT_SCHOOL_DAY_SEARCH_DAYS):
            if self.is_teaching_day(current):
                return current
            current += timedelta(days=1)
        return current

    def list_closed_days(self, year: int) -> Sequence[ClosedDay]:
        return self._closed_days.list_range(start=date(int(year), 1, 1), end=date(int(year), 12, 31))

    def add_closed_day(self, day: DateLike, description: Optional[str], acting_user: int) -> ClosedDay:
        day = as_day(day)
        description = optional_text(description)

        if self._closed_days.get_by_date(day) is not None:
            raise ValidationError(f"{day.isoformat()} is already a closed day")

        with self._transaction():
            closed_day_id = self._closed_days.create(day=day, description=description)
            self._record(
                acting_user,
                AuditAction.CREATE,
                closed_day_id,
                new_value={"day": day.isoformat(), "description": description},
            )

        logger.info("closed day %s added by user %s", day.isoformat(), acting_user)
        return ClosedDay(closed_day_id=closed_day_id, day=day, description=description)

    def remove_closed_day(self, closed_day_id: int, acting_user: int) -> None:
        closed_day = self._closed_days.get_by_id(int(closed_day_id))
        if not closed_day:
            raise NotFoundError("Closed day not found")

        with self._transaction():
            self._record(
                acting_user,
                AuditAction.DELETE,
                closed_day.closed_day_id,
                previous_value={"day": closed_day.day.isoformat(), "description": closed_day.description},
            )
            if not self._closed_days.delete(closed_day.closed_day_id):
                raise NotFoundError("Closed day not found")

        logger.info("closed day %s removed by user %s", closed_day.day.isoformat(), acting_user)

    def _transaction(self):
        if self._tx is None:
            raise RuntimeError("SchoolCalendar was built without a transaction manager")
        return self._tx.transaction()

    def _record(self, acting_user: int, action: AuditAction, entity_id, **values) -> None:
        if self._audit is None:
            raise RuntimeError("SchoolCalendar was built without an audit trail")
        self._audit.record(acting_user, action, "ClosedDay", entity_id, **values)
