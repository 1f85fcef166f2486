"""Canonical enumerations.

Inbound strings are normalized here, once, at the boundary. Past this
point the code only compares enum members.
"""

from enum import Enum


class ReportStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class ReportType(str, Enum):
    EMERGENCY = "emergency"
    NON_EMERGENCY = "non_emergency"


class UserRole(str, Enum):
    CITIZEN = "citizen"
    ADMIN = "admin"


def _canonical(value) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value or "").strip().lower().replace("-", "_").replace(" ", "_")


def _normalize(enum_cls, value):
    try:
        return enum_cls(_canonical(value))
    except ValueError:
        return None


def normalize_status(value) -> ReportStatus | None:
    return _normalize(ReportStatus, value)


def normalize_type(value) -> ReportType | None:
    return _normalize(ReportType, value)


def normalize_role(value) -> UserRole | None:
    # token claims may spell the admin role out in full
    if _canonical(value) == "administrator":
        return UserRole.ADMIN
    return _normalize(UserRole, value)


STATUS_VALUES = tuple(s.value for s in ReportStatus)
TYPE_VALUES = tuple(t.value for t in ReportType)
ROLE_VALUES = tuple(r.value for r in UserRole)
