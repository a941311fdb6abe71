from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..children.access import ensure_child_access
from ..common.datetime_utils import month_bounds, now_local
from ..common.identity import roles_required
from ..common.validators import require_date, require_positive_id
from ..core.constants import DEFAULT_HISTORY_DAYS
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    ledger = container.attendance_ledger

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_for_date")
    @roles_required(Role.TEACHER, Role.DIRECTOR)
    def attendance_for_date():
        day = require_date(request.args.get("date") or now_local().date().isoformat(), "date")
        daily = ledger.attendance_for_date(day)
        return jsonify(
            {
                "date": daily.day.isoformat(),
                "is_closed": daily.is_closed,
                "can_record": ledger.can_record_attendance(day),
                "attendance": [ledger.to_ui(a) for a in daily.rows],
            }
        )

    @app.route("/api/attendance", methods=["POST"], endpoint="save_attendance")
    @roles_required(Role.TEACHER, Role.DIRECTOR)
    def save_attendance():
        payload = request.get_json(silent=True) or {}
        day = require_date(payload.get("date"), "date")

        if not ledger.can_record_attendance(day):
            raise ValidationError("Attendance cannot be recorded for this day")

        records = payload.get("records")
        if not isinstance(records, list):
            raise ValidationError("records must be a list")

        pairs = [(r.get("child_id"), r.get("presence")) for r in records if isinstance(r, dict)]
        if len(pairs) != len(records):
            raise ValidationError("every record must be an object with child_id and presence")

        saved = ledger.record_bulk(pairs, day, g.identity.user_id)
        return jsonify({"success": True, "record_count": len(saved)}), 201

    @app.route("/api/children/<int:child_id>/today", methods=["GET"], endpoint="child_today")
    @roles_required(Role.DIRECTOR, Role.TEACHER, Role.PARENT)
    def child_today(child_id: int):
        ensure_child_access(container.children_repo, g.identity, child_id)
        status = ledger.get_today_status(child_id)
        return jsonify(
            {
                "date": status.day.isoformat(),
                "is_school_day": status.is_school_day,
                "is_closed": not status.is_school_day,
                "attendance": ledger.to_ui(status.attendance) if status.attendance else None,
            }
        )

    @app.route("/api/children/<int:child_id>/attendance", methods=["GET"], endpoint="child_history")
    @roles_required(Role.DIRECTOR, Role.TEACHER, Role.PARENT)
    def child_history(child_id: int):
        ensure_child_access(container.children_repo, g.identity, child_id)
        days = require_positive_id(request.args.get("days") or DEFAULT_HISTORY_DAYS, "days")
        return jsonify([ledger.to_ui(a) for a in ledger.history(child_id, days=days)])

    @app.route("/api/children/<int:child_id>/stats", methods=["GET"], endpoint="child_stats")
    @roles_required(Role.DIRECTOR, Role.TEACHER, Role.PARENT)
    def child_stats(child_id: int):
        ensure_child_access(container.children_repo, g.identity, child_id)

        first, last = month_bounds(now_local().date())
        start = require_date(request.args.get("start") or first.isoformat(), "start")
        end = require_date(request.args.get("end") or last.isoformat(), "end")

        stats = ledger.stats_for_range(child_id, start, end)
        return jsonify({"start": start.isoformat(), "end": end.isoformat(), **ledger.stats_to_ui(stats)})

    @app.route("/api/dashboard", methods=["GET"], endpoint="director_dashboard")
    @roles_required(Role.DIRECTOR)
    def director_dashboard():
        children = {c.child_id: c for c in container.children_repo.list_active()}
        today = ledger.day_overview(len(children))
        month = ledger.month_overview(today.day)

        pending = []
        for e in container.excuse_reconciler.recent_pending():
            child = children.get(e.child_id) or container.children_repo.get_by_id(e.child_id)
            pending.append(
                {
                    **container.excuse_reconciler.to_ui(e),
                    "child_name": child.full_name if child else f"Child #{e.child_id}",
                }
            )

        return jsonify(
            {
                "today": {
                    "date": today.day.isoformat(),
                    "present": today.present,
                    "absent": today.absent,
                    "total": today.total_children,
                    "recorded": today.recorded,
                },
                "month": {
                    "start": month.start.isoformat(),
                    "end": month.end.isoformat(),
                    "total_records": month.total_records,
                    "present": month.present,
                    "absent": month.absent,
                    "excused": month.excused,
                    "unexcused": month.unexcused,
                },
                "recent_excuses": pending,
            }
        )
