from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import now_local
from ..common.identity import roles_required
from ..common.validators import require_date, require_positive_id
from ..core.enums import Role
from ..container import Container
from .model import ClosedDay
from .service import current_week_school_days


def _to_ui(cd: ClosedDay) -> dict:
    return {
        "closed_day_id": cd.closed_day_id,
        "date": cd.day.isoformat(),
        "description": cd.description,
    }


def register(app: Flask, container: Container) -> None:
    calendar = container.school_calendar

    @app.route("/api/closed-days", methods=["GET"], endpoint="list_closed_days")
    @roles_required(Role.DIRECTOR)
    def list_closed_days():
        year = require_positive_id(request.args.get("year") or now_local().year, "year")
        return jsonify([_to_ui(cd) for cd in calendar.list_closed_days(year)])

    @app.route("/api/closed-days", methods=["POST"], endpoint="add_closed_day")
    @roles_required(Role.DIRECTOR)
    def add_closed_day():
        payload = request.get_json(silent=True) or {}
        closed_day = calendar.add_closed_day(
            require_date(payload.get("date"), "date"),
            payload.get("description"),
            g.identity.user_id,
        )
        return jsonify(_to_ui(closed_day)), 201

    @app.route("/api/closed-days/<int:closed_day_id>", methods=["DELETE"], endpoint="remove_closed_day")
    @roles_required(Role.DIRECTOR)
    def remove_closed_day(closed_day_id: int):
        calendar.remove_closed_day(closed_day_id, g.identity.user_id)
        return jsonify({"success": True})

    @app.route("/api/school-days/check", methods=["GET"], endpoint="check_school_day")
    @roles_required(Role.DIRECTOR, Role.TEACHER, Role.PARENT)
    def check_school_day():
        day = require_date(request.args.get("date"), "date")
        is_teaching = calendar.is_teaching_day(day)
        return jsonify(
            {
                "date": day.isoformat(),
                "is_teaching_day": is_teaching,
                "is_closed": not is_teaching,
                "next_school_day": calendar.next_school_day(day).isoformat(),
            }
        )

    @app.route("/api/school-days/week", methods=["GET"], endpoint="school_week")
    @roles_required(Role.DIRECTOR, Role.TEACHER, Role.PARENT)
    def school_week():
        day = require_date(request.args.get("date") or now_local().date().isoformat(), "date")
        return jsonify(
            [
                {"date": d.isoformat(), "is_teaching_day": calendar.is_teaching_day(d)}
                for d in current_week_school_days(day)
            ]
        )
