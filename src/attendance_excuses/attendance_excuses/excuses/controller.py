from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..children.access import ensure_child_access
from ..common.identity import roles_required
from ..common.validators import optional_bool, require_date, require_positive_id
from ..core.constants import DEFAULT_DIRECTOR_LIST_LIMIT, DEFAULT_EXCUSE_LIST_LIMIT
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from .rules import can_still_auto_approve, deadline, format_deadline, time_until_deadline


def register(app: Flask, container: Container) -> None:
    reconciler = container.excuse_reconciler

    @app.route("/api/excuses", methods=["POST"], endpoint="submit_excuse")
    @roles_required(Role.PARENT)
    def submit_excuse():
        payload = request.get_json(silent=True) or {}
        child_id = require_positive_id(payload.get("child_id"), "child_id")
        from_date = require_date(payload.get("from_date"), "from_date")
        to_date = require_date(payload.get("to_date"), "to_date")

        ensure_child_access(container.children_repo, g.identity, child_id)

        excuse = reconciler.submit(child_id, from_date, to_date, payload.get("reason"), g.identity.user_id)
        return jsonify({"success": True, "excuse": reconciler.to_ui(excuse)}), 201

    @app.route("/api/excuses/deadline", methods=["GET"], endpoint="excuse_deadline")
    @roles_required(Role.PARENT, Role.DIRECTOR)
    def excuse_deadline():
        from_date = require_date(request.args.get("from_date"), "from_date")
        countdown = time_until_deadline(from_date)
        return jsonify(
            {
                "from_date": from_date.isoformat(),
                "deadline": deadline(from_date).isoformat(timespec="seconds"),
                "deadline_label": format_deadline(from_date),
                "can_auto_approve": can_still_auto_approve(from_date),
                "is_past": countdown.is_past,
                "days": countdown.days,
                "hours": countdown.hours,
                "minutes": countdown.minutes,
            }
        )

    @app.route("/api/children/<int:child_id>/excuses", methods=["GET"], endpoint="child_excuses")
    @roles_required(Role.DIRECTOR, Role.TEACHER, Role.PARENT)
    def child_excuses(child_id: int):
        ensure_child_access(container.children_repo, g.identity, child_id)
        limit = require_positive_id(request.args.get("limit") or DEFAULT_EXCUSE_LIST_LIMIT, "limit")
        return jsonify([reconciler.to_ui(e) for e in reconciler.list_for_child(child_id, limit=limit)])

    @app.route("/api/excuses", methods=["GET"], endpoint="list_excuses")
    @roles_required(Role.DIRECTOR)
    def list_excuses():
        args = request.args
        auto_approved = optional_bool(args.get("auto_approved"))
        if optional_bool(args.get("pending")):
            if auto_approved:
                raise ValidationError("pending and auto_approved cannot be combined")
            auto_approved = False

        excuses = reconciler.list_all(
            child_id=require_positive_id(args["child_id"], "child_id") if args.get("child_id") else None,
            start=require_date(args["start"], "start") if args.get("start") else None,
            end=require_date(args["end"], "end") if args.get("end") else None,
            auto_approved=auto_approved,
            limit=require_positive_id(args.get("limit") or DEFAULT_DIRECTOR_LIST_LIMIT, "limit"),
        )
        return jsonify([reconciler.to_ui(e) for e in excuses])

    @app.route("/api/excuses/<int:excuse_id>/override", methods=["POST"], endpoint="override_excuse")
    @roles_required(Role.DIRECTOR)
    def override_excuse(excuse_id: int):
        payload = request.get_json(silent=True) or {}
        auto_approved = optional_bool(payload.get("auto_approved"))
        if auto_approved is None:
            raise ValidationError("auto_approved is required")

        excuse = reconciler.override(excuse_id, auto_approved, g.identity.user_id)
        return jsonify(reconciler.to_ui(excuse))

    @app.route("/api/excuses/<int:excuse_id>", methods=["PUT"], endpoint="edit_excuse")
    @roles_required(Role.DIRECTOR)
    def edit_excuse(excuse_id: int):
        payload = request.get_json(silent=True) or {}
        excuse = reconciler.edit_dates(
            excuse_id,
            require_date(payload.get("from_date"), "from_date"),
            require_date(payload.get("to_date"), "to_date"),
            g.identity.user_id,
            reason=payload.get("reason"),
            auto_approved=optional_bool(payload.get("auto_approved")),
        )
        return jsonify(reconciler.to_ui(excuse))

    @app.route("/api/excuses/<int:excuse_id>", methods=["DELETE"], endpoint="delete_excuse")
    @roles_required(Role.DIRECTOR)
    def delete_excuse(excuse_id: int):
        reconciler.delete(excuse_id, g.identity.user_id)
        return jsonify({"success": True})
