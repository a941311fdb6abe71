"""Excuse rules.

Core rule: an excuse submitted before 09:00 on the calendar day before its
first absent day is auto-approved (EXCUSED). Anything later is a late excuse
and stays UNEXCUSED until a director overrides it.

These are pure functions of their inputs. They never consult the school
calendar: the deadline is the previous calendar day even when that day is a
weekend or a closed day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import DateLike, as_day, as_local_naive, now_local
from ..core.constants import EXCUSE_DEADLINE_TIME, MAX_EXCUSE_SPAN_DAYS
from ..core.enums import ExcuseStatus, Presence
from ..core.exceptions import InvalidRangeError


@dataclass(frozen=True)
class DeadlineCountdown:
    days: int
    hours: int
    minutes: int
    is_past: bool


def deadline(from_date: DateLike) -> datetime:
    """09:00:00 local time on the day before ``from_date``."""
    return datetime.combine(as_day(from_date) - timedelta(days=1), EXCUSE_DEADLINE_TIME)


def is_auto_approved(submitted_at: DateLike, from_date: DateLike) -> bool:
    # Strict: submitting exactly at the deadline is late.
    return as_local_naive(submitted_at) < deadline(from_date)


def can_still_auto_approve(from_date: DateLike, now: Optional[datetime] = None) -> bool:
    return is_auto_approved(now or now_local(), from_date)


def time_until_deadline(from_date: DateLike, now: Optional[datetime] = None) -> DeadlineCountdown:
    now = as_local_naive(now or now_local())
    remaining = deadline(from_date) - now
    if remaining <= timedelta(0):
        return DeadlineCountdown(days=0, hours=0, minutes=0, is_past=True)

    total_minutes = int(remaining.total_seconds()) // 60
    return DeadlineCountdown(
        days=total_minutes // (24 * 60),
        hours=(total_minutes % (24 * 60)) // 60,
        minutes=total_minutes % 60,
        is_past=False,
    )


def format_deadline(from_date: DateLike) -> str:
    """E.g. ``Sunday 14 January, 09:00``."""
    d = deadline(from_date)
    return f"{d.strftime('%A')} {d.day} {d.strftime('%B')}, {d.strftime('%H:%M')}"


def validate_range(from_date: DateLike, to_date: DateLike) -> tuple[date, date]:
    """Return the normalized (from, to) pair or raise InvalidRangeError.

    The span (to - from) may be at most 30 days; exactly 30 is allowed.
    """

    start, end = as_day(from_date), as_day(to_date)
    if end < start:
        raise InvalidRangeError("The end date must not be before the start date")

    if (end - start).days > MAX_EXCUSE_SPAN_DAYS:
        raise InvalidRangeError(f"An excuse can cover at most {MAX_EXCUSE_SPAN_DAYS} days")

    return start, end


def excuse_status_for(presence: Presence, auto_approved: Optional[bool]) -> ExcuseStatus:
    """Derived status of an attendance row.

    ``auto_approved`` is None when no excuse covers the day.
    """

    if presence == Presence.PRESENT:
        return ExcuseStatus.NONE
    return ExcuseStatus.EXCUSED if auto_approved else ExcuseStatus.UNEXCUSED
