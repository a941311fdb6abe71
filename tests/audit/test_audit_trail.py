from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.attendance_excuses.attendance_excuses.audit.service import AuditTrail
from src.attendance_excuses.attendance_excuses.core.enums import AuditAction
from src.attendance_excuses.attendance_excuses.core.exceptions import ValidationError


@pytest.fixture
def trail(repos):
    ticks = iter(datetime(2024, 1, 15, 8, 0) + timedelta(minutes=i) for i in range(100))
    return AuditTrail(repos.audit, clock=lambda: next(ticks))


def test_record_stores_entry(trail, repos):
    audit_id = trail.record(1, AuditAction.CREATE, "Excuse", 7, new_value={"reason": "Flu"})

    (entry,) = repos.store.audit
    assert entry.audit_id == audit_id
    assert entry.user_id == 1
    assert entry.entity_id == "7"
    assert entry.previous_value is None
    assert entry.new_value == {"reason": "Flu"}
    assert entry.created_at == datetime(2024, 1, 15, 8, 0)


def test_recorded_values_are_copied(trail, repos):
    payload = {"reason": "Flu"}
    trail.record(1, AuditAction.CREATE, "Excuse", 7, new_value=payload)

    payload["reason"] = "changed"

    assert repos.store.audit[0].new_value == {"reason": "Flu"}


def test_recent_is_newest_first_and_limited(trail):
    for i in range(5):
        trail.record(1, AuditAction.UPDATE, "Excuse", i)

    recent = trail.recent(3)

    assert [e.entity_id for e in recent] == ["4", "3", "2"]


def test_recent_requires_positive_limit(trail):
    with pytest.raises(ValidationError):
        trail.recent(0)


def test_for_entity_is_oldest_first(trail):
    trail.record(1, AuditAction.CREATE, "ClosedDay", 3)
    trail.record(1, AuditAction.CREATE, "Excuse", 3)
    trail.record(1, AuditAction.DELETE, "ClosedDay", 3)

    history = trail.for_entity("ClosedDay", 3)

    assert [e.action for e in history] == [AuditAction.CREATE, AuditAction.DELETE]


def test_to_ui(trail):
    trail.record(1, "DELETE", "Excuse", 9, previous_value={"auto_approved": True})

    (entry,) = trail.recent()
    assert trail.to_ui(entry) == {
        "audit_id": entry.audit_id,
        "user_id": 1,
        "action": "DELETE",
        "entity_type": "Excuse",
        "entity_id": "9",
        "previous_value": {"auto_approved": True},
        "new_value": None,
        "created_at": "2024-01-15T08:00:00",
    }
