from flask import Blueprint
from flask_jwt_extended import jwt_required

from civic_reports.services import overview_service
from civic_reports.utils.responses import success_response
from civic_reports.utils.security import require_admin

bp = Blueprint("admin", __name__)


@bp.get("/ping")
def ping_admin():
    return success_response(message="admin ok")


@bp.get("/overview")
@jwt_required()
def system_overview():
    require_admin()
    data = overview_service.system_overview()
    return success_response(data=data, message="OK")
