"""Caller identity forwarded by the upstream identity provider.

The provider authenticates the user and sets ``X-User-Id`` / ``X-User-Role``.
This service trusts those headers and performs no credential checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthorizationError

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


class MissingIdentityError(AuthorizationError):
    """No identity headers on the request (maps to HTTP 401)."""


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: Role


def current_identity() -> Identity:
    raw_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    raw_role = (request.headers.get(USER_ROLE_HEADER) or "").strip().lower()
    if not raw_id or not raw_role:
        raise MissingIdentityError("Authentication required")

    try:
        return Identity(user_id=int(raw_id), role=Role(raw_role))
    except ValueError:
        raise MissingIdentityError("Invalid identity headers")


def roles_required(*roles: Role):
    allowed = set(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            identity = current_identity()
            if identity.role not in allowed:
                raise AuthorizationError("You do not have permission for this action")
            g.identity = identity
            return view(*args, **kwargs)

        return wrapper

    return decorator
