"""Role-scoped, multi-filter report queries.

Every view (citizen dashboard, my reports, admin tabs) goes through `query`.
Nothing keeps a derived copy of the result around; callers re-run the query
when the change feed tells them something moved.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import OperationalError

from civic_reports.extensions import db
from civic_reports.models import Report
from civic_reports.models.enums import ReportStatus, ReportType, UserRole, normalize_role, normalize_type
from civic_reports.utils.errors import ValidationError


BUCKET_NONE = "none"
BUCKET_PENDING = "pending"
BUCKET_RESOLVED = "resolved"

# "pending" is a triage bucket: in-progress work still needs attention.
BUCKET_STATUSES = {
    BUCKET_PENDING: (ReportStatus.PENDING.value, ReportStatus.IN_PROGRESS.value),
    BUCKET_RESOLVED: (ReportStatus.RESOLVED.value,),
}

_BUCKET_ALIASES = {
    "": BUCKET_NONE,
    "none": BUCKET_NONE,
    "all": BUCKET_NONE,
    "total": BUCKET_NONE,
    "pending": BUCKET_PENDING,
    "active": BUCKET_PENDING,
    "resolved": BUCKET_RESOLVED,
}

ALL = "all"


@dataclass(frozen=True)
class Scope:
    """Who is looking. Citizens see their own reports, admins see everything."""

    user_id: int | None = None
    is_admin: bool = False

    @classmethod
    def citizen(cls, user_id: int) -> "Scope":
        return cls(user_id=int(user_id), is_admin=False)

    @classmethod
    def admin(cls) -> "Scope":
        return cls(user_id=None, is_admin=True)

    @classmethod
    def for_identity(cls, user_id, role) -> "Scope":
        if normalize_role(role) == UserRole.ADMIN:
            return cls.admin()
        return cls.citizen(user_id)


@dataclass(frozen=True)
class ReportFilters:
    status_bucket: str = BUCKET_NONE
    emergency: str = ALL
    category: int | str = ALL

    @classmethod
    def parse(cls, status_bucket=None, emergency=None, category=None) -> "ReportFilters":
        errors = {}

        bucket = _BUCKET_ALIASES.get(str(status_bucket or "").strip().lower())
        if bucket is None:
            errors["bucket"] = "Must be one of: none, pending, resolved"

        raw_emergency = str(emergency or "").strip().lower()
        if raw_emergency in ("", ALL):
            emergency_value = ALL
        else:
            t = normalize_type(raw_emergency)
            emergency_value = t.value if t else None
            if t is None:
                errors["type"] = "Must be one of: all, emergency, non_emergency"

        raw_category = str(category if category is not None else "").strip().lower()
        if raw_category in ("", ALL):
            category_value = ALL
        else:
            try:
                category_value = int(raw_category)
            except ValueError:
                category_value = None
                errors["category"] = "Must be 'all' or a category id"

        if errors:
            raise ValidationError("Invalid report filters", errors=errors)

        return cls(status_bucket=bucket, emergency=emergency_value, category=category_value)


def with_retry(fn):
    # Reads are idempotent: a busy/locked store is worth another try.
    delays = current_app.config.get("QUERY_RETRY_DELAYS", (0.15, 0.4, 0.9))
    for delay in delays:
        try:
            return fn()
        except OperationalError as e:
            db.session.rollback()
            current_app.logger.warning("[reports] read failed, retrying in %ss: %s", delay, e)
            time.sleep(delay)
    # last attempt
    return fn()


def _scoped(query, scope: Scope):
    if scope.is_admin:
        return query
    return query.filter(Report.reporter_id == scope.user_id)


def _apply_filters(query, filters: ReportFilters):
    statuses = BUCKET_STATUSES.get(filters.status_bucket)
    if statuses:
        query = query.filter(Report.status.in_(statuses))

    if filters.emergency != ALL:
        query = query.filter(Report.type == filters.emergency)

    if filters.category != ALL:
        query = query.filter(Report.category_id == filters.category)

    return query


def query(scope: Scope, filters: ReportFilters | None = None, limit: int | None = None) -> list[Report]:
    filters = filters or ReportFilters()

    q = _apply_filters(_scoped(Report.query, scope), filters)
    q = q.order_by(Report.created_at.desc(), Report.id.desc()).populate_existing()
    if limit is not None:
        q = q.limit(max(1, min(int(limit), 200)))

    if current_app.config.get("REPORTS_DEBUG"):
        current_app.logger.info("[reports] query scope=%s filters=%s limit=%s", scope, filters, limit)

    return with_retry(q.all)


def summarize(scope: Scope) -> dict:
    """Tab counts for a dashboard in the given scope."""

    def _count_by(column):
        q = _scoped(db.session.query(column, func.count(Report.id)), scope).group_by(column)
        return dict(with_retry(q.all))

    by_status = _count_by(Report.status)
    by_type = _count_by(Report.type)

    pending = int(by_status.get(ReportStatus.PENDING.value, 0))
    in_progress = int(by_status.get(ReportStatus.IN_PROGRESS.value, 0))
    resolved = int(by_status.get(ReportStatus.RESOLVED.value, 0))

    return {
        "total": pending + in_progress + resolved,
        "pending": pending + in_progress,
        "in_progress": in_progress,
        "resolved": resolved,
        "emergency": int(by_type.get(ReportType.EMERGENCY.value, 0)),
        "non_emergency": int(by_type.get(ReportType.NON_EMERGENCY.value, 0)),
    }
