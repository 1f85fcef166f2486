from flask_jwt_extended import get_jwt, get_jwt_identity

from civic_reports.models.enums import UserRole, normalize_role
from civic_reports.services.query_service import Scope
from civic_reports.utils.errors import ApiError


def current_user_id() -> int:
    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError):
        raise ApiError("Invalid token", 401)


def current_role() -> UserRole:
    """Role as asserted by the auth service: `role` claim, or an ADMIN entry in `roles`."""
    claims = get_jwt() or {}

    role = normalize_role(claims.get("role"))
    if role is not None:
        return role

    roles = claims.get("roles") or []
    if any(normalize_role(r) == UserRole.ADMIN for r in roles):
        return UserRole.ADMIN
    return UserRole.CITIZEN


def current_scope() -> Scope:
    return Scope.for_identity(current_user_id(), current_role())


def require_admin() -> None:
    if current_role() != UserRole.ADMIN:
        raise ApiError("Not authorized (admin)", 403, payload={"code": "ADMIN_REQUIRED"})


def require_citizen() -> None:
    # Reports are only created through citizen submission
    if current_role() == UserRole.ADMIN:
        raise ApiError(
            "Administrators cannot submit reports. Use a citizen account.",
            403,
            payload={"code": "ADMIN_FORBIDDEN"},
        )
