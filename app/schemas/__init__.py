"""
Backoffice API - Schemas Module

Pydantic models for value objects and request/response validation.
"""

from app.schemas.analytics import (
    Granularity,
    ChartPeriod,
    CompletionMode,
    UserSignupEvent,
    TimeBucket,
    LessonProgressRecord,
    CourseProgressRecord,
    CourseCompletionStat,
    DeltaPoint,
    NewUsersChart,
    OverallStats,
    StatComparison,
    CourseCompletionRow,
)
from app.schemas.user import UserProfile, EnrolledCourse, UserDetails
from app.schemas.banner import Banner, BannerCreate, BannerUpdate, BannerStatusUpdate
from app.schemas.report import ReportDownload

__all__ = [
    # Analytics
    "Granularity",
    "ChartPeriod",
    "CompletionMode",
    "UserSignupEvent",
    "TimeBucket",
    "LessonProgressRecord",
    "CourseProgressRecord",
    "CourseCompletionStat",
    "DeltaPoint",
    "NewUsersChart",
    "OverallStats",
    "StatComparison",
    "CourseCompletionRow",
    # Users
    "UserProfile",
    "EnrolledCourse",
    "UserDetails",
    # Banners
    "Banner",
    "BannerCreate",
    "BannerUpdate",
    "BannerStatusUpdate",
    # Reports
    "ReportDownload",
]
