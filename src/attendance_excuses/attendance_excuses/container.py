from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditTrail
from .children.mysql_child_repository import MySQLChildRepository
from .children.repository import ChildRepository
from .database.connection import DBConfig, DatabaseConnection, TransactionManager
from .excuses.mysql_excuse_repository import MySQLExcuseRepository
from .excuses.repository import ExcuseRepository
from .excuses.service import ExcuseReconciler
from .notifications.slack import ExcuseNotifier, SlackNotifier
from .school_days.mysql_closed_day_repository import MySQLClosedDayRepository
from .school_days.repository import ClosedDayRepository
from .school_days.service import SchoolCalendar


@dataclass(frozen=True)
class Container:
    tx: TransactionManager

    children_repo: ChildRepository
    closed_days_repo: ClosedDayRepository
    excuses_repo: ExcuseRepository
    attendance_repo: AttendanceRepository
    audit_repo: AuditRepository

    audit_trail: AuditTrail
    school_calendar: SchoolCalendar
    attendance_ledger: AttendanceLedger
    excuse_reconciler: ExcuseReconciler
    notifier: Optional[ExcuseNotifier]


def assemble_container(
    *,
    tx: TransactionManager,
    children_repo: ChildRepository,
    closed_days_repo: ClosedDayRepository,
    excuses_repo: ExcuseRepository,
    attendance_repo: AttendanceRepository,
    audit_repo: AuditRepository,
    notifier: Optional[ExcuseNotifier] = None,
) -> Container:
    """Wire services on top of already-built repositories."""

    audit_trail = AuditTrail(audit_repo)
    school_calendar = SchoolCalendar(closed_days_repo, audit=audit_trail, tx=tx)
    attendance_ledger = AttendanceLedger(attendance_repo, excuses_repo, school_calendar, audit_trail, tx)
    excuse_reconciler = ExcuseReconciler(
        excuses_repo,
        attendance_repo,
        school_calendar,
        audit_trail,
        tx,
        children=children_repo,
        notifier=notifier,
    )

    return Container(
        tx=tx,
        children_repo=children_repo,
        closed_days_repo=closed_days_repo,
        excuses_repo=excuses_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        audit_trail=audit_trail,
        school_calendar=school_calendar,
        attendance_ledger=attendance_ledger,
        excuse_reconciler=excuse_reconciler,
        notifier=notifier,
    )


def build_container(*, db_config: dict, slack_webhook_url: Optional[str] = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble_container(
        tx=conn,
        children_repo=MySQLChildRepository(conn),
        closed_days_repo=MySQLClosedDayRepository(conn),
        excuses_repo=MySQLExcuseRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        notifier=SlackNotifier(slack_webhook_url),
    )
