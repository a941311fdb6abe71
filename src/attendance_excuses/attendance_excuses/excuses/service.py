from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..audit.service import AuditTrail
from ..children.repository import ChildRepository
from ..common.datetime_utils import DateLike, as_day, as_local_naive, now_local
from ..common.validators import optional_text, require_positive_id
from ..core.constants import (
    DEFAULT_DIRECTOR_LIST_LIMIT,
    DEFAULT_EXCUSE_LIST_LIMIT,
    PENDING_REVIEW_DAYS,
    PENDING_REVIEW_LIMIT,
)
from ..core.enums import AuditAction, Presence
from ..core.exceptions import NotFoundError
from ..database.connection import TransactionManager
from ..notifications.slack import ExcuseNotification, ExcuseNotifier
from ..school_days.service import SchoolCalendar
from .model import Excuse
from .repository import ExcuseRepository
from .rules import excuse_status_for, is_auto_approved, validate_range

logger = logging.getLogger(__name__)

ENTITY = "Excuse"


class ExcuseReconciler:
    """Creates, overrides, edits and deletes excuses and keeps attendance rows in step.

    Lifecycle: created (auto-approved or needs review) -> optionally overridden
    by a director -> optionally edited -> deleted. ``auto_approved`` is decided
    once at submission and only changes through ``override`` or ``edit_dates``.

    Callers are expected to have checked roles and the parent-child relationship;
    acting user ids are taken for audit attribution only.
    """

    def __init__(
        self,
        excuses: ExcuseRepository,
        attendance: AttendanceRepository,
        calendar: SchoolCalendar,
        audit: AuditTrail,
        tx: TransactionManager,
        *,
        children: Optional[ChildRepository] = None,
        notifier: Optional[ExcuseNotifier] = None,
    ):
        self._excuses = excuses
        self._attendance = attendance
        self._calendar = calendar
        self._audit = audit
        self._tx = tx
        self._children = children
        self._notifier = notifier

    def submit(
        self,
        child_id: int,
        from_date: DateLike,
        to_date: DateLike,
        reason: Optional[str],
        submitted_by: int,
        *,
        now: Optional[datetime] = None,
    ) -> Excuse:
        start, end = validate_range(from_date, to_date)
        child_id = require_positive_id(child_id, "child_id")
        reason = optional_text(reason)
        submitted_at = as_local_naive(now or now_local())
        # Decided once; never re-derived as time passes.
        auto_approved = is_auto_approved(submitted_at, start)

        with self._tx.transaction():
            excuse_id = self._excuses.create(
                child_id=child_id,
                from_date=start,
                to_date=end,
                reason=reason,
                submitted_by=int(submitted_by),
                submitted_at=submitted_at,
                auto_approved=auto_approved,
            )
            excuse = Excuse(
                excuse_id=excuse_id,
                child_id=child_id,
                from_date=start,
                to_date=end,
                submitted_by=int(submitted_by),
                submitted_at=submitted_at,
                auto_approved=auto_approved,
                reason=reason,
            )

            linked = self._attendance.link_absences(
                child_id=child_id,
                days=self._calendar.school_days_in_range(start, end),
                excuse_id=excuse_id,
                excuse_status=excuse_status_for(Presence.ABSENT, auto_approved),
            )
            self._audit.record(submitted_by, AuditAction.CREATE, ENTITY, excuse_id, new_value=excuse.snapshot())

        logger.info(
            "excuse %s submitted for child %s (%s..%s, auto_approved=%s, linked=%d)",
            excuse_id,
            child_id,
            start.isoformat(),
            end.isoformat(),
            auto_approved,
            linked,
        )
        self._notify(excuse)
        return excuse

    def override(self, excuse_id: int, new_auto_approved: bool, acting_user: int) -> Excuse:
        """Director decision on an excuse's approval."""

        current = self._require(excuse_id)
        new_auto_approved = bool(new_auto_approved)

        with self._tx.transaction():
            self._audit.record(
                acting_user,
                AuditAction.UPDATE,
                ENTITY,
                current.excuse_id,
                previous_value={"auto_approved": current.auto_approved},
                new_value={"auto_approved": new_auto_approved},
            )
            if not self._excuses.update(
                excuse_id=current.excuse_id,
                from_date=current.from_date,
                to_date=current.to_date,
                reason=current.reason,
                auto_approved=new_auto_approved,
            ):
                raise NotFoundError("Excuse not found")
            # Only rows still linked to this excuse; some days may have been reassigned.
            self._attendance.set_status_for_excuse(
                excuse_id=current.excuse_id,
                excuse_status=excuse_status_for(Presence.ABSENT, new_auto_approved),
            )

        logger.info("excuse %s override auto_approved=%s by user %s", current.excuse_id, new_auto_approved, acting_user)
        return replace(current, auto_approved=new_auto_approved)

    def edit_dates(
        self,
        excuse_id: int,
        new_from: DateLike,
        new_to: DateLike,
        acting_user: int,
        *,
        reason: Optional[str] = None,
        auto_approved: Optional[bool] = None,
    ) -> Excuse:
        """Change the range (and optionally reason/approval).

        ``reason`` and ``auto_approved`` keep their current values when None.
        """

        current = self._require(excuse_id)
        start, end = validate_range(new_from, new_to)

        updated = replace(
            current,
            from_date=start,
            to_date=end,
            reason=current.reason if reason is None else optional_text(reason),
            auto_approved=current.auto_approved if auto_approved is None else bool(auto_approved),
        )

        with self._tx.transaction():
            self._audit.record(
                acting_user,
                AuditAction.UPDATE,
                ENTITY,
                current.excuse_id,
                previous_value=current.snapshot(),
                new_value=updated.snapshot(),
            )
            if not self._excuses.update(
                excuse_id=updated.excuse_id,
                from_date=updated.from_date,
                to_date=updated.to_date,
                reason=updated.reason,
                auto_approved=updated.auto_approved,
            ):
                raise NotFoundError("Excuse not found")
            self._attendance.set_status_for_excuse(
                excuse_id=updated.excuse_id,
                excuse_status=excuse_status_for(Presence.ABSENT, updated.auto_approved),
                days=self._calendar.school_days_in_range(start, end),
            )

        logger.info("excuse %s edited by user %s", updated.excuse_id, acting_user)
        return updated

    def delete(self, excuse_id: int, acting_user: int) -> None:
        """Remove an excuse; covered absences fall back to UNEXCUSED (never PRESENT)."""

        current = self._require(excuse_id)

        with self._tx.transaction():
            self._audit.record(
                acting_user,
                AuditAction.DELETE,
                ENTITY,
                current.excuse_id,
                previous_value=current.snapshot(),
            )
            unlinked = self._attendance.unlink_excuse(excuse_id=current.excuse_id)
            if not self._excuses.delete(current.excuse_id):
                raise NotFoundError("Excuse not found")

        logger.info("excuse %s deleted by user %s (%d rows unlinked)", current.excuse_id, acting_user, unlinked)

    def get(self, excuse_id: int) -> Excuse:
        return self._require(excuse_id)

    def list_for_child(self, child_id: int, *, limit: int = DEFAULT_EXCUSE_LIST_LIMIT) -> Sequence[Excuse]:
        return self._excuses.list_for_child(child_id=int(child_id), limit=int(limit))

    def list_all(
        self,
        *,
        child_id: Optional[int] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        auto_approved: Optional[bool] = None,
        limit: int = DEFAULT_DIRECTOR_LIST_LIMIT,
    ) -> Sequence[Excuse]:
        return self._excuses.list_filtered(
            child_id=int(child_id) if child_id is not None else None,
            start=as_day(start) if start is not None else None,
            end=as_day(end) if end is not None else None,
            auto_approved=auto_approved,
            limit=int(limit),
        )

    def recent_pending(
        self,
        *,
        now: Optional[datetime] = None,
        days: int = PENDING_REVIEW_DAYS,
        limit: int = PENDING_REVIEW_LIMIT,
    ) -> Sequence[Excuse]:
        """Late excuses submitted in the last ``days`` days, newest first."""

        since = as_local_naive(now or now_local()) - timedelta(days=int(days))
        return self._excuses.list_filtered(auto_approved=False, submitted_since=since, limit=int(limit))

    @staticmethod
    def to_ui(e: Excuse) -> dict:
        return {
            "excuse_id": e.excuse_id,
            "child_id": e.child_id,
            "from_date": e.from_date.isoformat(),
            "to_date": e.to_date.isoformat(),
            "reason": e.reason,
            "auto_approved": e.auto_approved,
            "submitted_by": e.submitted_by,
            "submitted_at": e.submitted_at.isoformat(timespec="seconds"),
        }

    def _require(self, excuse_id: int) -> Excuse:
        excuse = self._excuses.get_by_id(int(excuse_id))
        if not excuse:
            raise NotFoundError("Excuse not found")
        return excuse

    def _notify(self, excuse: Excuse) -> None:
        """Fire-and-forget; the excuse is already committed."""

        if self._notifier is None:
            return

        try:
            child = self._children.get_by_id(excuse.child_id) if self._children else None
            self._notifier.send_excuse_notification(
                ExcuseNotification(
                    child_name=child.full_name if child else f"Child #{excuse.child_id}",
                    from_date=excuse.from_date,
                    to_date=excuse.to_date,
                    reason=excuse.reason,
                    is_on_time=excuse.auto_approved,
                )
            )
        except Exception:
            logger.exception("excuse %s notification failed", excuse.excuse_id)
