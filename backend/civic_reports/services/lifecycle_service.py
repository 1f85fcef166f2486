"""Report lifecycle: submission, status transitions, officer assignment and
resolution details.

This module is the only writer of Report rows. Every mutation is recorded as a
ReportEvent in the same transaction and published on the change channel once
committed.
"""

from datetime import datetime
import threading

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from civic_reports.extensions import channel, db
from civic_reports.models import Officer, Report, ReportEvent, ReportImage, User
from civic_reports.models.enums import ReportStatus, normalize_status, normalize_type, TYPE_VALUES
from civic_reports.realtime import ChangeEvent
from civic_reports.services import catalog_service
from civic_reports.utils.errors import (
    IllegalTransitionError,
    InconsistentReferenceError,
    NotFoundError,
    ValidationError,
)


TRANSITIONS = {
    ReportStatus.PENDING.value: (ReportStatus.IN_PROGRESS.value,),
    ReportStatus.IN_PROGRESS.value: (ReportStatus.RESOLVED.value,),
    ReportStatus.RESOLVED.value: (),
}

MAX_IMAGES_DEFAULT = 5


class ReportLocks:
    """Striped locks so writes to one report never interleave in this process."""

    def __init__(self, stripes: int = 64):
        self._locks = [threading.Lock() for _ in range(stripes)]

    def for_report(self, report_id) -> threading.Lock:
        return self._locks[hash(int(report_id)) % len(self._locks)]


_locks = ReportLocks()


def _now() -> datetime:
    return datetime.utcnow()


def _clean(value) -> str:
    return "" if value is None else str(value).strip()


def _as_id(value, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid identifier", errors={field: "Must be an integer id"})


def allowed_transitions(status) -> list[str]:
    s = normalize_status(status)
    return list(TRANSITIONS.get(s.value, ())) if s else []


def get_report(report_id) -> Report:
    report = db.session.get(Report, _as_id(report_id, "report_id"))
    if report is None:
        raise NotFoundError("Report", report_id)
    return report


def _record_event(report: Report, change: str) -> ReportEvent:
    event = ReportEvent(
        report_id=report.id,
        reporter_id=report.reporter_id,
        kind="created" if change == "created" else "updated",
        change=change,
        status=report.status,
        version=report.version,
        created_at=report.updated_at,
    )
    db.session.add(event)
    return event


def _commit_and_publish(event: ReportEvent) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    channel.publish(ChangeEvent.from_record(event))


def _touch(report: Report, **values) -> None:
    """Write `values` plus the bookkeeping columns, then reload the row."""
    now = max(_now(), report.updated_at or report.created_at)
    db.session.execute(
        update(Report)
        .where(Report.id == report.id)
        .values(updated_at=now, version=Report.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    db.session.refresh(report)


def _validate_draft(draft: dict) -> dict:
    errors = {}

    title = _clean(draft.get("title"))
    if not title:
        errors["title"] = "Title is required"

    description = _clean(draft.get("description"))
    if not description:
        errors["description"] = "Description is required"

    category_id = draft.get("category_id")
    if category_id is None or _clean(category_id) == "":
        errors["category_id"] = "Category is required"

    raw_type = draft.get("type")
    report_type = None
    if raw_type is not None and _clean(raw_type) != "":
        report_type = normalize_type(raw_type)
        if report_type is None:
            errors["type"] = f"Must be one of: {', '.join(TYPE_VALUES)}"

    max_images = int(current_app.config.get("MAX_REPORT_IMAGES", MAX_IMAGES_DEFAULT))
    image_refs = [_clean(ref) for ref in (draft.get("image_refs") or [])]
    if len(image_refs) > max_images:
        errors["image_refs"] = f"At most {max_images} images per report"
    elif any(not ref for ref in image_refs):
        errors["image_refs"] = "Image references cannot be empty"

    lat = draft.get("location_lat")
    lng = draft.get("location_lng")
    if (lat is None) != (lng is None):
        errors["location"] = "Latitude and longitude must be given together"
    elif lat is not None:
        try:
            lat, lng = float(lat), float(lng)
        except (TypeError, ValueError):
            errors["location"] = "Coordinates must be numbers"
        else:
            if not (-90 <= lat <= 90 and -180 <= lng <= 180):
                errors["location"] = "Coordinates out of range"

    if errors:
        raise ValidationError("Please fill all required fields", errors=errors)

    subcategory_id = draft.get("subcategory_id")
    if subcategory_id is not None and _clean(subcategory_id) == "":
        subcategory_id = None

    return {
        "title": title,
        "description": description,
        "category_id": _as_id(category_id, "category_id"),
        "subcategory_id": _as_id(subcategory_id, "subcategory_id") if subcategory_id is not None else None,
        "type": report_type,
        "image_refs": image_refs,
        "location_address": _clean(draft.get("location_address")) or None,
        "location_lat": lat,
        "location_lng": lng,
    }


def submit(draft: dict, reporter_id: int) -> Report:
    data = _validate_draft(draft or {})

    reporter = db.session.get(User, reporter_id)
    if reporter is None:
        raise NotFoundError("User", reporter_id)

    category = catalog_service.get_category(data["category_id"])

    if data["subcategory_id"] is not None:
        subcategory = catalog_service.get_subcategory(data["subcategory_id"])
        if subcategory.category_id != category.id:
            raise InconsistentReferenceError(
                "Subcategory does not belong to the selected category",
                errors={"subcategory_id": f"Not a subcategory of '{category.name}'"},
            )

    report_type = data["type"].value if data["type"] else category.type
    if report_type != category.type:
        raise InconsistentReferenceError(
            "Report type does not match the category",
            errors={"type": f"'{category.name}' is a {category.type} category"},
        )

    now = _now()
    report = Report(
        title=data["title"],
        description=data["description"],
        type=report_type,
        status=ReportStatus.PENDING.value,
        category_id=category.id,
        subcategory_id=data["subcategory_id"],
        location_address=data["location_address"],
        location_lat=data["location_lat"],
        location_lng=data["location_lng"],
        assigned_officer_id=None,
        resolution_details=None,
        reporter_id=reporter.id,
        created_at=now,
        updated_at=now,
        version=1,
    )
    for idx, ref in enumerate(data["image_refs"]):
        report.images.append(ReportImage(ref=ref, position=idx))

    try:
        db.session.add(report)
        db.session.flush()  # assigns report.id
    except SQLAlchemyError:
        db.session.rollback()
        raise

    with _locks.for_report(report.id):
        event = _record_event(report, "created")
        _commit_and_publish(event)

    current_app.logger.info(
        "[reports] submitted id=%s reporter=%s type=%s category=%s",
        report.id,
        report.reporter_id,
        report.type,
        report.category_id,
    )
    return report


def advance_status(report_id, target_status) -> Report:
    target = normalize_status(target_status)

    with _locks.for_report(_as_id(report_id, "report_id")):
        report = get_report(report_id)
        current = report.status
        target_value = target.value if target else _clean(target_status)

        if target is None or target.value not in TRANSITIONS.get(current, ()):
            raise IllegalTransitionError(current, target_value, allowed_transitions(current))

        now = max(_now(), report.updated_at or report.created_at)
        try:
            # compare-and-set on the status we validated against
            result = db.session.execute(
                update(Report)
                .where(Report.id == report.id, Report.status == current)
                .values(status=target.value, updated_at=now, version=Report.version + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.session.rollback()
                fresh = get_report(report_id)
                raise IllegalTransitionError(fresh.status, target.value, allowed_transitions(fresh.status))

            db.session.refresh(report)
            event = _record_event(report, "status")
        except SQLAlchemyError:
            db.session.rollback()
            raise
        _commit_and_publish(event)

    current_app.logger.info(
        "[reports] status id=%s %s -> %s v=%s",
        report.id,
        current,
        report.status,
        report.version,
    )
    return report


def assign_officer(report_id, officer_id) -> Report:
    with _locks.for_report(_as_id(report_id, "report_id")):
        report = get_report(report_id)

        if officer_id is not None:
            officer = db.session.get(Officer, _as_id(officer_id, "officer_id"))
            if officer is None:
                raise NotFoundError("Officer", officer_id)
            officer_id = officer.id

        try:
            _touch(report, assigned_officer_id=officer_id)
            event = _record_event(report, "officer")
        except SQLAlchemyError:
            db.session.rollback()
            raise
        _commit_and_publish(event)

    current_app.logger.info(
        "[reports] officer id=%s officer=%s v=%s",
        report.id,
        report.assigned_officer_id,
        report.version,
    )
    return report


def attach_resolution(report_id, details) -> Report:
    text = _clean(details)
    if not text:
        raise ValidationError(
            "Resolution details are required",
            errors={"resolution_details": "Cannot be empty"},
        )

    with _locks.for_report(_as_id(report_id, "report_id")):
        report = get_report(report_id)

        # Allowed before resolution too; the UI enforces ordering.
        if report.status != ReportStatus.RESOLVED.value and current_app.config.get("REPORTS_DEBUG"):
            current_app.logger.info("[reports] resolution attached early id=%s status=%s", report.id, report.status)

        try:
            _touch(report, resolution_details=text)
            event = _record_event(report, "resolution")
        except SQLAlchemyError:
            db.session.rollback()
            raise
        _commit_and_publish(event)

    current_app.logger.info("[reports] resolution id=%s v=%s", report.id, report.version)
    return report
