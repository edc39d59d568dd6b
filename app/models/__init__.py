"""
Backoffice API - Models Module

SQLAlchemy mappings of the hosted database tables read by the back office.
"""

from app.core.database import Base

# Enums
from app.models.enums import UserRole

# Models
from app.models.profile import Profile
from app.models.course import Course, Lesson
from app.models.progress import UserProgress, LessonProgress
from app.models.banner import WebsiteBanner
from app.models.report_download import ImpactReportDownload

__all__ = [
    # Base
    "Base",
    # Enums
    "UserRole",
    # Models
    "Profile",
    "Course",
    "Lesson",
    "UserProgress",
    "LessonProgress",
    "WebsiteBanner",
    "ImpactReportDownload",
]
