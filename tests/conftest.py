from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional, Sequence

import pytest

from src.attendance_excuses.attendance_excuses.attendance.model import Attendance
from src.attendance_excuses.attendance_excuses.audit.model import AuditEntry
from src.attendance_excuses.attendance_excuses.children.model import Child
from src.attendance_excuses.attendance_excuses.container import Container, assemble_container
from src.attendance_excuses.attendance_excuses.core.enums import AuditAction, ExcuseStatus, Presence
from src.attendance_excuses.attendance_excuses.excuses.model import Excuse
from src.attendance_excuses.attendance_excuses.notifications.slack import ExcuseNotification
from src.attendance_excuses.attendance_excuses.school_days.model import ClosedDay

DIRECTOR_ID = 1
TEACHER_ID = 2
PARENT_ID = 30
OTHER_PARENT_ID = 31


@dataclass
class InMemoryStore:
    children: dict[int, Child] = field(default_factory=dict)
    parent_links: set[tuple[int, int]] = field(default_factory=set)
    closed_days: dict[int, ClosedDay] = field(default_factory=dict)
    excuses: dict[int, Excuse] = field(default_factory=dict)
    attendance: dict[tuple[int, date], Attendance] = field(default_factory=dict)
    audit: list[AuditEntry] = field(default_factory=list)
    next_id: int = 0

    def new_id(self) -> int:
        self.next_id += 1
        return self.next_id


class FakeTransactions:
    """Snapshots the store on entry and restores it when the block raises."""

    def __init__(self, store: InMemoryStore):
        self._store = store
        self._depth = 0
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def transaction(self):
        if self._depth:
            yield self._store
            return

        snapshot = copy.deepcopy(self._store.__dict__)
        self._depth += 1
        try:
            yield self._store
            self.commits += 1
        except Exception:
            self._store.__dict__.update(snapshot)
            self.rollbacks += 1
            raise
        finally:
            self._depth -= 1


class InMemoryChildren:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, child_id: int) -> Optional[Child]:
        return self._store.children.get(child_id)

    def list_active(self) -> Sequence[Child]:
        items = [c for c in self._store.children.values() if c.active]
        return sorted(items, key=lambda c: (c.last_name, c.first_name))

    def list_for_parent(self, parent_id: int) -> Sequence[Child]:
        ids = {child_id for p, child_id in self._store.parent_links if p == parent_id}
        return [c for c in self.list_active() if c.child_id in ids]

    def is_parent_of(self, parent_id: int, child_id: int) -> bool:
        return (parent_id, child_id) in self._store.parent_links


class InMemoryClosedDays:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, closed_day_id: int) -> Optional[ClosedDay]:
        return self._store.closed_days.get(closed_day_id)

    def get_by_date(self, day: date) -> Optional[ClosedDay]:
        return next((cd for cd in self._store.closed_days.values() if cd.day == day), None)

    def list_range(self, *, start: date, end: date) -> Sequence[ClosedDay]:
        items = [cd for cd in self._store.closed_days.values() if start <= cd.day <= end]
        return sorted(items, key=lambda cd: cd.day)

    def create(self, *, day: date, description: Optional[str] = None) -> int:
        closed_day_id = self._store.new_id()
        self._store.closed_days[closed_day_id] = ClosedDay(closed_day_id, day, description)
        return closed_day_id

    def delete(self, closed_day_id: int) -> bool:
        return self._store.closed_days.pop(closed_day_id, None) is not None


class InMemoryExcuses:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def _newest_first(self, items):
        return sorted(items, key=lambda e: (e.submitted_at, e.excuse_id), reverse=True)

    def create(self, *, child_id, from_date, to_date, reason, submitted_by, submitted_at, auto_approved) -> int:
        excuse_id = self._store.new_id()
        self._store.excuses[excuse_id] = Excuse(
            excuse_id=excuse_id,
            child_id=child_id,
            from_date=from_date,
            to_date=to_date,
            submitted_by=submitted_by,
            submitted_at=submitted_at,
            auto_approved=auto_approved,
            reason=reason,
        )
        return excuse_id

    def get_by_id(self, excuse_id: int) -> Optional[Excuse]:
        return self._store.excuses.get(excuse_id)

    def find_covering(self, *, child_id: int, day: date) -> Optional[Excuse]:
        items = [e for e in self._store.excuses.values() if e.child_id == child_id and e.covers(day)]
        items = self._newest_first(items)
        return items[0] if items else None

    def update(self, *, excuse_id, from_date, to_date, reason, auto_approved) -> bool:
        current = self._store.excuses.get(excuse_id)
        if current is None:
            return False
        self._store.excuses[excuse_id] = replace(
            current, from_date=from_date, to_date=to_date, reason=reason, auto_approved=auto_approved
        )
        return True

    def delete(self, excuse_id: int) -> bool:
        return self._store.excuses.pop(excuse_id, None) is not None

    def list_for_child(self, *, child_id: int, limit: int) -> Sequence[Excuse]:
        return self._newest_first(e for e in self._store.excuses.values() if e.child_id == child_id)[:limit]

    def list_filtered(
        self, *, child_id=None, start=None, end=None, auto_approved=None, submitted_since=None, limit=100
    ) -> Sequence[Excuse]:
        items = [
            e
            for e in self._store.excuses.values()
            if (child_id is None or e.child_id == child_id)
            and (start is None or e.from_date >= start)
            and (end is None or e.from_date <= end)
            and (auto_approved is None or e.auto_approved == auto_approved)
            and (submitted_since is None or e.submitted_at >= submitted_since)
        ]
        return self._newest_first(items)[:limit]


class InMemoryAttendance:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_for_child_and_date(self, child_id: int, day: date) -> Optional[Attendance]:
        return self._store.attendance.get((child_id, day))

    def upsert(self, *, child_id, day, presence, excuse_status, excuse_id, recorded_by) -> None:
        existing = self._store.attendance.get((child_id, day))
        attendance_id = existing.attendance_id if existing else self._store.new_id()
        self._store.attendance[(child_id, day)] = Attendance(
            attendance_id=attendance_id,
            child_id=child_id,
            day=day,
            presence=presence,
            excuse_status=excuse_status,
            recorded_by=recorded_by,
            excuse_id=excuse_id,
        )

    def _rewrite(self, predicate, **changes) -> int:
        count = 0
        for key, row in list(self._store.attendance.items()):
            if predicate(row):
                self._store.attendance[key] = replace(row, **changes)
                count += 1
        return count

    def link_absences(self, *, child_id, days, excuse_id, excuse_status) -> int:
        wanted = set(days)
        return self._rewrite(
            lambda r: r.child_id == child_id and r.presence == Presence.ABSENT and r.day in wanted,
            excuse_id=excuse_id,
            excuse_status=excuse_status,
        )

    def set_status_for_excuse(self, *, excuse_id, excuse_status, days=None) -> int:
        wanted = set(days) if days is not None else None
        return self._rewrite(
            lambda r: r.excuse_id == excuse_id
            and r.presence == Presence.ABSENT
            and (wanted is None or r.day in wanted),
            excuse_status=excuse_status,
        )

    def unlink_excuse(self, *, excuse_id) -> int:
        return self._rewrite(
            lambda r: r.excuse_id == excuse_id,
            excuse_id=None,
            excuse_status=ExcuseStatus.UNEXCUSED,
        )

    def list_for_child(self, *, child_id, start, end) -> Sequence[Attendance]:
        items = [r for r in self._store.attendance.values() if r.child_id == child_id and start <= r.day <= end]
        return sorted(items, key=lambda r: r.day, reverse=True)

    def list_for_date(self, day: date) -> Sequence[Attendance]:
        children = self._store.children
        items = [r for r in self._store.attendance.values() if r.day == day and r.child_id in children]
        return sorted(items, key=lambda r: (children[r.child_id].last_name, children[r.child_id].first_name))

    def list_between(self, *, start, end) -> Sequence[Attendance]:
        items = [r for r in self._store.attendance.values() if start <= r.day <= end]
        return sorted(items, key=lambda r: (r.day, r.child_id))


class InMemoryAudit:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def append(self, *, user_id, action, entity_type, entity_id, previous_value, new_value, created_at) -> int:
        audit_id = self._store.new_id()
        self._store.audit.append(
            AuditEntry(
                audit_id=audit_id,
                user_id=user_id,
                action=AuditAction(action),
                entity_type=entity_type,
                entity_id=entity_id,
                created_at=created_at,
                previous_value=copy.deepcopy(previous_value),
                new_value=copy.deepcopy(new_value),
            )
        )
        return audit_id

    def list_recent(self, *, limit: int) -> Sequence[AuditEntry]:
        return sorted(self._store.audit, key=lambda e: (e.created_at, e.audit_id), reverse=True)[:limit]

    def list_for_entity(self, *, entity_type: str, entity_id: str) -> Sequence[AuditEntry]:
        items = [e for e in self._store.audit if e.entity_type == entity_type and e.entity_id == entity_id]
        return sorted(items, key=lambda e: (e.created_at, e.audit_id))


class RecordingNotifier:
    def __init__(self):
        self.sent: list[ExcuseNotification] = []
        self.fail = False

    def send_excuse_notification(self, data: ExcuseNotification) -> bool:
        if self.fail:
            raise RuntimeError("webhook exploded")
        self.sent.append(data)
        return True


@dataclass
class Repos:
    store: InMemoryStore
    tx: FakeTransactions
    children: InMemoryChildren
    closed_days: InMemoryClosedDays
    excuses: InMemoryExcuses
    attendance: InMemoryAttendance
    audit: InMemoryAudit


@pytest.fixture
def store() -> InMemoryStore:
    s = InMemoryStore()
    s.children = {
        1: Child(1, "Anna", "Novak"),
        2: Child(2, "Jakub", "Novak"),
        3: Child(3, "Eva", "Dvorak"),
    }
    s.parent_links = {(PARENT_ID, 1), (PARENT_ID, 2), (OTHER_PARENT_ID, 3)}
    s.next_id = 100
    return s


@pytest.fixture
def repos(store) -> Repos:
    return Repos(
        store=store,
        tx=FakeTransactions(store),
        children=InMemoryChildren(store),
        closed_days=InMemoryClosedDays(store),
        excuses=InMemoryExcuses(store),
        attendance=InMemoryAttendance(store),
        audit=InMemoryAudit(store),
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def container(repos, notifier) -> Container:
    return assemble_container(
        tx=repos.tx,
        children_repo=repos.children,
        closed_days_repo=repos.closed_days,
        excuses_repo=repos.excuses,
        attendance_repo=repos.attendance,
        audit_repo=repos.audit,
        notifier=notifier,
    )


@pytest.fixture
def calendar(container):
    return container.school_calendar


@pytest.fixture
def ledger(container):
    return container.attendance_ledger


@pytest.fixture
def reconciler(container):
    return container.excuse_reconciler


@pytest.fixture
def audit_trail(container):
    return container.audit_trail


@pytest.fixture
def on_time() -> datetime:
    """Early enough for any excuse starting 2024-01-15 or later."""
    return datetime(2024, 1, 13, 8, 0, 0)
