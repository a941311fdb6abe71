from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.identity import roles_required
from ..common.validators import require_positive_id
from ..core.constants import DEFAULT_AUDIT_LIMIT
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    audit = container.audit_trail

    @app.route("/api/audit", methods=["GET"], endpoint="audit_log")
    @roles_required(Role.DIRECTOR)
    def audit_log():
        limit = require_positive_id(request.args.get("limit") or DEFAULT_AUDIT_LIMIT, "limit")
        return jsonify([audit.to_ui(e) for e in audit.recent(limit)])
