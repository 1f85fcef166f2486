from flask import Blueprint
from flask_jwt_extended import jwt_required

from civic_reports.schemas.catalog_schemas import OfficerSchema
from civic_reports.services import catalog_service
from civic_reports.utils.responses import success_response
from civic_reports.utils.security import require_admin

bp = Blueprint("officers", __name__)

officers_schema = OfficerSchema(many=True)


@bp.get("")
@jwt_required()
def list_officers():
    require_admin()
    officers = catalog_service.list_officers()
    return success_response(data=officers_schema.dump(officers), message="OK")
