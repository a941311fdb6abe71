from __future__ import annotations

from ..common.identity import Identity
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .repository import ChildRepository


def ensure_child_access(children: ChildRepository, identity: Identity, child_id: int) -> None:
    """Parents may only act on their own children; staff may act on any child."""

    if identity.role in {Role.DIRECTOR, Role.TEACHER}:
        return
    if identity.role == Role.PARENT and children.is_parent_of(identity.user_id, int(child_id)):
        return
    raise AuthorizationError("Access denied")
