from flask import current_app

from civic_reports.extensions import db
from civic_reports.models import Category, Officer, Subcategory
from civic_reports.models.enums import ReportType, normalize_type, TYPE_VALUES
from civic_reports.utils.errors import NotFoundError, ValidationError


DEFAULT_CATALOG = {
    ReportType.EMERGENCY: {
        "Fire": ["Building fire", "Vehicle fire", "Wildfire"],
        "Medical": ["Injury", "Unconscious person"],
        "Crime": ["Theft", "Assault", "Vandalism"],
        "Traffic Accident": ["Collision", "Hit and run"],
    },
    ReportType.NON_EMERGENCY: {
        "Roads": ["Pothole", "Broken traffic light", "Damaged sidewalk"],
        "Water Supply": ["Leak", "No water", "Contamination"],
        "Electricity": ["Power outage", "Street light out"],
        "Sanitation": ["Garbage not collected", "Blocked drain"],
    },
}

DEFAULT_OFFICERS = [
    {"name": "Ana Torres", "department": "Public Works", "contact": "works@city.gov"},
    {"name": "Luis Pérez", "department": "Fire Department", "contact": "fire@city.gov"},
    {"name": "Marta Gómez", "department": "Police", "contact": "police@city.gov"},
    {"name": "Raúl Díaz", "department": "Utilities", "contact": None},
]


def parse_category_type(value) -> ReportType | None:
    if value is None or str(value).strip() == "" or str(value).strip().lower() == "all":
        return None
    t = normalize_type(value)
    if t is None:
        raise ValidationError(
            f"Invalid category type. Use one of: {', '.join(TYPE_VALUES)}",
            errors={"type": f"Must be one of: {', '.join(TYPE_VALUES)}"},
        )
    return t


def list_categories(type=None) -> list[Category]:
    t = parse_category_type(type)
    query = Category.query
    if t is not None:
        query = query.filter(Category.type == t.value)
    return query.order_by(Category.name.asc(), Category.id.asc()).all()


def get_category(category_id) -> Category:
    category = db.session.get(Category, category_id) if category_id is not None else None
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def get_subcategory(subcategory_id) -> Subcategory:
    subcategory = db.session.get(Subcategory, subcategory_id) if subcategory_id is not None else None
    if subcategory is None:
        raise NotFoundError("Subcategory", subcategory_id)
    return subcategory


def list_subcategories(category_id) -> list[Subcategory]:
    category = get_category(category_id)
    return (
        Subcategory.query.filter_by(category_id=category.id)
        .order_by(Subcategory.name.asc(), Subcategory.id.asc())
        .all()
    )


def list_officers() -> list[Officer]:
    return Officer.query.order_by(Officer.name.asc(), Officer.id.asc()).all()


def seed_catalog(catalog: dict | None = None, officers: list[dict] | None = None) -> dict:
    """Insert whatever is missing from `catalog` (by name). Safe to run repeatedly.

    `catalog` maps a report type to {category name: [subcategory names]}.
    """
    catalog = DEFAULT_CATALOG if catalog is None else catalog
    officers = DEFAULT_OFFICERS if officers is None else officers

    created = {"categories": 0, "subcategories": 0, "officers": 0}

    for raw_type, categories in catalog.items():
        t = normalize_type(raw_type)
        if t is None:
            raise ValidationError(f"Invalid category type: {raw_type}")

        for category_name, subcategory_names in categories.items():
            category = Category.query.filter_by(name=category_name).first()
            if category is None:
                category = Category(name=category_name, type=t.value)
                db.session.add(category)
                db.session.flush()
                created["categories"] += 1
            elif category.type != t.value:
                raise ValidationError(
                    f"Category '{category_name}' already exists as {category.type}"
                )

            for sub_name in subcategory_names or []:
                exists = Subcategory.query.filter_by(category_id=category.id, name=sub_name).first()
                if exists is None:
                    db.session.add(Subcategory(name=sub_name, category_id=category.id))
                    created["subcategories"] += 1

    for data in officers:
        exists = Officer.query.filter_by(name=data["name"], department=data["department"]).first()
        if exists is None:
            db.session.add(
                Officer(name=data["name"], department=data["department"], contact=data.get("contact"))
            )
            created["officers"] += 1

    db.session.commit()
    current_app.logger.info(
        "[catalog] seeded categories=%s subcategories=%s officers=%s",
        created["categories"],
        created["subcategories"],
        created["officers"],
    )
    return created
