from .enums import ReportStatus, ReportType, UserRole
from .user import User
from .category import Category
from .subcategory import Subcategory
from .officer import Officer
from .report import Report
from .report_image import ReportImage
from .report_event import ReportEvent

__all__ = [
    "ReportStatus",
    "ReportType",
    "UserRole",
    "User",
    "Category",
    "Subcategory",
    "Officer",
    "Report",
    "ReportImage",
    "ReportEvent",
]
