import json

from flask import Blueprint, Response, current_app, request, stream_with_context
from flask_jwt_extended import jwt_required

from civic_reports.extensions import channel
from civic_reports.schemas.report_schemas import (
    OfficerAssignmentSchema,
    ReportDraftSchema,
    ReportQuerySchema,
    ReportSchema,
    ResolutionSchema,
    StatusChangeSchema,
)
from civic_reports.services import lifecycle_service, query_service
from civic_reports.utils.errors import ChannelDisconnectedError, NotFoundError
from civic_reports.utils.responses import success_response
from civic_reports.utils.security import (
    current_scope,
    current_user_id,
    require_admin,
    require_citizen,
)

bp = Blueprint("reports", __name__)

report_schema = ReportSchema()
reports_schema = ReportSchema(many=True)
draft_schema = ReportDraftSchema()
query_schema = ReportQuerySchema()
status_schema = StatusChangeSchema()
officer_schema = OfficerAssignmentSchema()
resolution_schema = ResolutionSchema()


@bp.get("/ping")
def ping():
    return success_response(message="reports ok")


@bp.post("")
@jwt_required()
def submit_report():
    """
    Submit a new report (citizens only).
    Body JSON:
    {
      "title": "Pothole",
      "description": "Deep pothole on Main St",
      "category_id": 3,
      "subcategory_id": 7,
      "type": "non_emergency",
      "location_address": "Main St 100",
      "image_refs": ["media/abc.jpg"]
    }
    """
    require_citizen()
    reporter_id = current_user_id()

    data = draft_schema.load(request.get_json() or {})
    report = lifecycle_service.submit(data, reporter_id)

    return success_response(
        data=report_schema.dump(report),
        message="Report submitted",
        status_code=201,
    )


@bp.get("")
@jwt_required()
def list_reports():
    """
    Reports visible to the caller, newest first.
    Query params: bucket=none|pending|resolved, type=all|emergency|non_emergency,
    category=all|<id>, limit
    """
    args = query_schema.load(request.args)
    filters = query_service.ReportFilters.parse(
        status_bucket=args.get("bucket"),
        emergency=args.get("type"),
        category=args.get("category"),
    )
    reports = query_service.query(current_scope(), filters, limit=args.get("limit"))

    return success_response(
        data={"items": reports_schema.dump(reports), "total": len(reports)},
        message="OK" if reports else "No reports match",
    )


@bp.get("/summary")
@jwt_required()
def summary():
    data = query_service.summarize(current_scope())
    return success_response(data=data, message="OK")


@bp.get("/<int:report_id>")
@jwt_required()
def get_report(report_id: int):
    scope = current_scope()
    report = lifecycle_service.get_report(report_id)

    # Someone else's report does not exist as far as a citizen is concerned
    if not scope.is_admin and report.reporter_id != scope.user_id:
        raise NotFoundError("Report", report_id)

    return success_response(data=report_schema.dump(report), message="OK")


@bp.post("/<int:report_id>/status")
@jwt_required()
def advance_status(report_id: int):
    require_admin()
    data = status_schema.load(request.get_json() or {})
    report = lifecycle_service.advance_status(report_id, data["status"])
    return success_response(data=report_schema.dump(report), message="Status updated")


@bp.post("/<int:report_id>/officer")
@jwt_required()
def assign_officer(report_id: int):
    require_admin()
    data = officer_schema.load(request.get_json() or {})
    report = lifecycle_service.assign_officer(report_id, data["officer_id"])
    message = "Officer assigned" if report.assigned_officer_id else "Officer unassigned"
    return success_response(data=report_schema.dump(report), message=message)


@bp.post("/<int:report_id>/resolution")
@jwt_required()
def attach_resolution(report_id: int):
    require_admin()
    data = resolution_schema.load(request.get_json() or {})
    report = lifecycle_service.attach_resolution(report_id, data["resolution_details"])
    return success_response(data=report_schema.dump(report), message="Resolution saved")


def _sse(event: str, data: dict, event_id=None) -> str:
    lines = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    lines.append(f"event: {event}")
    lines.append(f"data: {json.dumps(data, ensure_ascii=False)}")
    return "\n".join(lines) + "\n\n"


@bp.get("/stream")
@jwt_required()
def stream_reports():
    """
    Server-Sent Events feed of report changes in the caller's scope.
    Clients re-run their query on every `report` event. On `reconnect` they
    open a new stream and re-query once; missed events are not replayed.
    """
    scope = current_scope()
    heartbeat = float(current_app.config.get("CHANNEL_HEARTBEAT_SECONDS", 15))
    subscription = channel.subscribe(scope)
    current_app.logger.info("[stream] open subscription=%s scope=%s", subscription.id, scope)

    def generate():
        try:
            yield _sse("ready", {"subscription": subscription.id})
            while True:
                try:
                    event = subscription.get(timeout=heartbeat)
                except ChannelDisconnectedError as err:
                    current_app.logger.info(
                        "[stream] lost subscription=%s reason=%s", subscription.id, err.reason
                    )
                    yield _sse("reconnect", {"reason": err.reason})
                    return
                if event is None:
                    yield ": keep-alive\n\n"
                    continue
                yield _sse("report", event.to_dict(), event_id=event.sequence)
        finally:
            subscription.disconnect()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
