from flask import Blueprint, request

from civic_reports.schemas.catalog_schemas import CategorySchema, SubcategorySchema
from civic_reports.services import catalog_service
from civic_reports.utils.responses import success_response

bp = Blueprint("categories", __name__)

categories_schema = CategorySchema(many=True)
subcategories_schema = SubcategorySchema(many=True)


@bp.get("")
def list_categories():
    categories = catalog_service.list_categories(type=request.args.get("type"))
    return success_response(data=categories_schema.dump(categories), message="OK")


@bp.get("/<int:category_id>/subcategories")
def list_subcategories(category_id: int):
    subcategories = catalog_service.list_subcategories(category_id)
    return success_response(data=subcategories_schema.dump(subcategories), message="OK")
