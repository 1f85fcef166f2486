# backend/seed_catalog.py
from civic_reports import create_app
from civic_reports.services import catalog_service

app = create_app()

with app.app_context():
    # Categories, subcategories and officers are seeded administratively;
    # the API only reads them.
    created = catalog_service.seed_catalog()

    print(
        "Catalog seeded: "
        f"{created['categories']} categories, "
        f"{created['subcategories']} subcategories, "
        f"{created['officers']} officers."
    )
