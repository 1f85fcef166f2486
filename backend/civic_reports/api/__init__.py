from .report_routes import bp as reports_bp
from .catalog_routes import bp as categories_bp
from .officer_routes import bp as officers_bp
from .admin_routes import bp as admin_bp

__all__ = [
    "reports_bp",
    "categories_bp",
    "officers_bp",
    "admin_bp",
]
