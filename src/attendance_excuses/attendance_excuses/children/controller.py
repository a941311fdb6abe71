from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.identity import roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/children", methods=["GET"], endpoint="list_children")
    @roles_required(Role.DIRECTOR, Role.TEACHER, Role.PARENT)
    def list_children():
        identity = g.identity
        if identity.role == Role.PARENT:
            children = container.children_repo.list_for_parent(identity.user_id)
        else:
            children = container.children_repo.list_active()

        return jsonify(
            [
                {
                    "child_id": c.child_id,
                    "first_name": c.first_name,
                    "last_name": c.last_name,
                    "active": c.active,
                }
                for c in children
            ]
        )
