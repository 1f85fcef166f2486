from civic_reports.extensions import ma
from civic_reports.models import Category, Officer, Subcategory


class CategorySchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Category


class SubcategorySchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Subcategory
        include_fk = True


class OfficerSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Officer
