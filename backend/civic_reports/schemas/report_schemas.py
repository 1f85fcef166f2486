from marshmallow import EXCLUDE, fields, validate, validates_schema, ValidationError

from civic_reports.extensions import ma
from civic_reports.models import Report


class ReportDraftSchema(ma.Schema):
    """
    What a citizen sends to submit a report.
    Type, category and subcategory consistency is checked by the lifecycle service.
    """

    title = fields.String(required=True)
    description = fields.String(required=True)
    category_id = fields.Integer(required=True)
    subcategory_id = fields.Integer(required=False, allow_none=True, load_default=None)
    type = fields.String(required=False, allow_none=True, load_default=None)

    location_address = fields.String(required=False, allow_none=True, load_default=None)
    location_lat = fields.Float(required=False, allow_none=True, load_default=None)
    location_lng = fields.Float(required=False, allow_none=True, load_default=None)

    # Opaque references returned by media storage
    image_refs = fields.List(fields.String(), required=False, load_default=list)

    @validates_schema
    def validate_coordinates(self, data, **kwargs):
        lat = data.get("location_lat")
        lng = data.get("location_lng")
        if (lat is None) != (lng is None):
            raise ValidationError(
                "location_lat and location_lng must be sent together",
                field_name="location_lat" if lat is None else "location_lng",
            )


class StatusChangeSchema(ma.Schema):
    status = fields.String(required=True)


class OfficerAssignmentSchema(ma.Schema):
    # null unassigns
    officer_id = fields.Integer(required=True, allow_none=True)


class ResolutionSchema(ma.Schema):
    resolution_details = fields.String(required=True, validate=validate.Length(min=1))


class ReportQuerySchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    bucket = fields.String(required=False, load_default=None)
    type = fields.String(required=False, load_default=None)
    category = fields.String(required=False, load_default=None)
    limit = fields.Integer(required=False, load_default=None, validate=validate.Range(min=1, max=200))


class ReportSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Report
        include_fk = True
        load_instance = False

    image_refs = fields.List(fields.String())
    location = fields.Dict(allow_none=True)

    category_name = fields.Method("get_category_name")
    subcategory_name = fields.Method("get_subcategory_name")
    assigned_officer = fields.Method("get_assigned_officer")

    def get_category_name(self, obj):
        return obj.category.name if getattr(obj, "category", None) else None

    def get_subcategory_name(self, obj):
        return obj.subcategory.name if getattr(obj, "subcategory", None) else None

    def get_assigned_officer(self, obj):
        officer = getattr(obj, "assigned_officer", None)
        if not officer:
            return None
        return {
            "id": officer.id,
            "name": officer.name,
            "department": officer.department,
        }
