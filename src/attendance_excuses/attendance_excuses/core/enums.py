from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles forwarded by the identity provider."""

    DIRECTOR = "director"
    TEACHER = "teacher"
    PARENT = "parent"


class Presence(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"


class ExcuseStatus(str, Enum):
    """Derived status of an attendance row; never set directly by callers."""

    NONE = "NONE"
    EXCUSED = "EXCUSED"
    UNEXCUSED = "UNEXCUSED"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
