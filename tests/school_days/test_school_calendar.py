from __future__ import annotations

from datetime import date

import pytest

from src.attendance_excuses.attendance_excuses.core.enums import AuditAction
from src.attendance_excuses.attendance_excuses.core.exceptions import NotFoundError, ValidationError
from src.attendance_excuses.attendance_excuses.school_days.service import (
    current_week_school_days,
    is_default_closed_day,
)

DIRECTOR = 1


@pytest.mark.parametrize("day", [date(2024, 1, 12), date(2024, 1, 13), date(2024, 1, 14)])
def test_friday_to_sunday_are_closed(day):
    assert is_default_closed_day(day)


@pytest.mark.parametrize("day", [date(2024, 1, 15), date(2024, 1, 16), date(2024, 1, 17), date(2024, 1, 18)])
def test_monday_to_thursday_are_open(day):
    assert not is_default_closed_day(day)


def test_closed_day_overrides_weekday(calendar, repos):
    repos.closed_days.create(day=date(2024, 1, 16), description="Staff training")

    assert calendar.is_teaching_day(date(2024, 1, 15))
    assert not calendar.is_teaching_day(date(2024, 1, 16))


def test_school_days_in_range_skips_weekend_and_closed_days(calendar, repos):
    repos.closed_days.create(day=date(2024, 1, 23))

    days = calendar.school_days_in_range(date(2024, 1, 17), date(2024, 1, 24))

    assert days == [date(2024, 1, 17), date(2024, 1, 18), date(2024, 1, 22), date(2024, 1, 24)]


def test_school_days_in_range_is_empty_when_reversed(calendar):
    assert calendar.school_days_in_range(date(2024, 1, 18), date(2024, 1, 15)) == []


def test_next_school_day_skips_weekend_and_closed_days(calendar, repos):
    assert calendar.next_school_day(date(2024, 1, 18)) == date(2024, 1, 22)

    repos.closed_days.create(day=date(2024, 1, 22))
    assert calendar.next_school_day(date(2024, 1, 18)) == date(2024, 1, 23)


def test_current_week_school_days_starts_on_monday():
    assert current_week_school_days(date(2024, 1, 20)) == [
        date(2024, 1, 15),
        date(2024, 1, 16),
        date(2024, 1, 17),
        date(2024, 1, 18),
    ]


def test_add_closed_day_is_audited(calendar, repos):
    closed = calendar.add_closed_day(date(2024, 12, 23), " Winter break ", DIRECTOR)

    assert closed.description == "Winter break"
    assert not calendar.is_teaching_day(date(2024, 12, 23))

    (entry,) = repos.store.audit
    assert entry.action == AuditAction.CREATE
    assert entry.entity_type == "ClosedDay"
    assert entry.entity_id == str(closed.closed_day_id)
    assert entry.new_value == {"day": "2024-12-23", "description": "Winter break"}


def test_add_closed_day_rejects_duplicate_date(calendar):
    calendar.add_closed_day(date(2024, 12, 23), None, DIRECTOR)

    with pytest.raises(ValidationError):
        calendar.add_closed_day(date(2024, 12, 23), "again", DIRECTOR)


def test_add_closed_day_rolls_back_when_audit_fails(calendar, repos, monkeypatch):
    def boom(**kwargs):
        raise RuntimeError("audit store down")

    monkeypatch.setattr(repos.audit, "append", boom)

    with pytest.raises(RuntimeError):
        calendar.add_closed_day(date(2024, 12, 23), None, DIRECTOR)

    assert repos.store.closed_days == {}


def test_remove_closed_day(calendar, repos):
    closed = calendar.add_closed_day(date(2024, 12, 23), "Winter break", DIRECTOR)

    calendar.remove_closed_day(closed.closed_day_id, DIRECTOR)

    assert calendar.is_teaching_day(date(2024, 12, 23))
    assert [e.action for e in repos.store.audit] == [AuditAction.CREATE, AuditAction.DELETE]
    assert repos.store.audit[-1].previous_value == {"day": "2024-12-23", "description": "Winter break"}


def test_remove_unknown_closed_day(calendar):
    with pytest.raises(NotFoundError):
        calendar.remove_closed_day(999, DIRECTOR)


def test_list_closed_days_filters_by_year(calendar, repos):
    repos.closed_days.create(day=date(2023, 12, 27))
    repos.closed_days.create(day=date(2024, 1, 2))
    repos.closed_days.create(day=date(2024, 12, 23))

    assert [cd.day for cd in calendar.list_closed_days(2024)] == [date(2024, 1, 2), date(2024, 12, 23)]
