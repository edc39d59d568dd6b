"""
Pytest Configuration and Fixtures

Provides an in-memory data source and sample records for testing the
back-office services and API.
"""

from datetime import datetime, timezone
from typing import Optional
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import DataSourceError
from app.schemas.analytics import (
    CourseCompletionRow,
    CourseProgressRecord,
    CourseSummary,
    Granularity,
    LessonProgressRecord,
    TimeBucket,
    UserSignupEvent,
)
from app.schemas.banner import Banner, BannerBase, BannerCreate
from app.schemas.report import ReportDownload
from app.schemas.user import EnrolledCourse, UserProfile


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def utc(*args) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


# ==================== Data Source Fixtures ====================

class FakeDataSource:
    """
    In-memory DataSource.

    Put a method name in `failures` to make it raise DataSourceError;
    "method:key" fails only for that course, user or banner id.
    """

    concurrent_reads = True

    def __init__(self):
        self.profiles: list[UserProfile] = []
        self.signups: list[UserSignupEvent] = []
        self.series: Optional[list[TimeBucket]] = None
        self.completion_rows: Optional[list[CourseCompletionRow]] = None
        self.courses: list[CourseSummary] = []
        self.lesson_progress: dict[str, list[LessonProgressRecord]] = {}
        self.course_progress: dict[str, list[CourseProgressRecord]] = {}
        self.lesson_counts: dict[str, int] = {}
        self.active_ids: set[str] = set()
        self.legacy_completions = 0
        self.enrollments: dict[str, list[EnrolledCourse]] = {}
        self.last_logins: dict[str, datetime] = {}
        self.banners: list[Banner] = []
        self.downloads: list[ReportDownload] = []
        self.failures: set[str] = set()
        self.calls: list[str] = []

    def _check(self, name: str, key: Optional[str] = None) -> None:
        self.calls.append(name)
        if name in self.failures or (key is not None and f"{name}:{key}" in self.failures):
            raise DataSourceError(f"{name} failed", status_code=500)

    # ---- analytics ----

    async def count_users(self) -> int:
        self._check("count_users")
        return len(self.profiles)

    async def list_active_user_ids(self, since: datetime) -> set[str]:
        self._check("list_active_user_ids")
        return set(self.active_ids)

    async def count_profiles_updated_since(self, since: datetime) -> int:
        self._check("count_profiles_updated_since")
        return sum(1 for p in self.profiles if p.updated_at and p.updated_at >= since)

    async def count_published_courses(self) -> int:
        self._check("count_published_courses")
        return len(self.courses)

    async def count_legacy_completions(self) -> int:
        self._check("count_legacy_completions")
        return self.legacy_completions

    async def fetch_new_user_series(self, granularity: Granularity) -> Optional[list[TimeBucket]]:
        self._check("fetch_new_user_series")
        return list(self.series) if self.series is not None else None

    async def fetch_signup_events(self, since: datetime) -> list[UserSignupEvent]:
        self._check("fetch_signup_events")
        return [event for event in self.signups if event.created_at >= since]

    async def fetch_completion_rates(self) -> Optional[list[CourseCompletionRow]]:
        self._check("fetch_completion_rates")
        return list(self.completion_rows) if self.completion_rows is not None else None

    async def list_published_courses(self) -> list[CourseSummary]:
        self._check("list_published_courses")
        return list(self.courses)

    async def fetch_lesson_progress(self, course_id: str) -> list[LessonProgressRecord]:
        self._check("fetch_lesson_progress", course_id)
        return list(self.lesson_progress.get(course_id, []))

    async def fetch_course_progress(self, course_id: str) -> list[CourseProgressRecord]:
        self._check("fetch_course_progress", course_id)
        return list(self.course_progress.get(course_id, []))

    async def count_course_lessons(self, course_id: str) -> int:
        self._check("count_course_lessons", course_id)
        return self.lesson_counts.get(course_id, 0)

    # ---- users ----

    async def search_profiles(self, term: str, limit: int) -> list[UserProfile]:
        self._check("search_profiles")
        matches = [p for p in self.profiles if term.lower() in (p.full_name or "").lower()]
        return matches[:limit]

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        self._check("get_profile", user_id)
        return next((p for p in self.profiles if p.id == user_id), None)

    async def fetch_user_enrollments(self, user_id: str) -> list[EnrolledCourse]:
        self._check("fetch_user_enrollments", user_id)
        return list(self.enrollments.get(user_id, []))

    async def fetch_last_login(self, user_id: str) -> Optional[datetime]:
        self._check("fetch_last_login", user_id)
        return self.last_logins.get(user_id)

    async def list_students(self) -> list[UserProfile]:
        self._check("list_students")
        return [p for p in self.profiles if p.role == "student"]

    # ---- banners ----

    async def list_banners(self) -> list[Banner]:
        self._check("list_banners")
        return list(self.banners)

    async def get_banner(self, banner_id: str) -> Optional[Banner]:
        self._check("get_banner", banner_id)
        return next((b for b in self.banners if b.id == banner_id), None)

    async def get_banner_by_key(self, banner_key: str) -> Optional[Banner]:
        self._check("get_banner_by_key", banner_key)
        return next((b for b in self.banners if b.banner_key == banner_key), None)

    async def insert_banner(
        self,
        data: BannerBase,
        created_by: Optional[str],
        now: datetime,
    ) -> Banner:
        self._check("insert_banner")
        banner = Banner(
            **data.model_dump(),
            id=f"banner-{len(self.banners) + 1}",
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self.banners.insert(0, banner)
        return banner

    async def update_banner(self, banner_id: str, values: dict) -> Optional[Banner]:
        self._check("update_banner", banner_id)
        for index, banner in enumerate(self.banners):
            if banner.id == banner_id:
                self.banners[index] = banner.model_copy(update=values)
                return self.banners[index]
        return None

    async def delete_banner(self, banner_id: str) -> bool:
        self._check("delete_banner", banner_id)
        before = len(self.banners)
        self.banners = [b for b in self.banners if b.id != banner_id]
        return len(self.banners) < before

    # ---- reports ----

    async def list_report_downloads(self, limit: int) -> list[ReportDownload]:
        self._check("list_report_downloads")
        return self.downloads[:limit]


@pytest.fixture
def fake_source() -> FakeDataSource:
    """Empty in-memory data source."""
    return FakeDataSource()


# ==================== Record Factories ====================

def lesson_record(
    user_id: str,
    lesson_id: str,
    completed: bool = True,
    updated_at: Optional[datetime] = None,
    course_id: str = "course-1",
) -> LessonProgressRecord:
    """Build a lesson progress revision."""
    updated_at = updated_at or utc(2024, 3, 1)
    return LessonProgressRecord(
        user_id=user_id,
        course_id=course_id,
        lesson_id=lesson_id,
        completed_at=updated_at if completed else None,
        updated_at=updated_at,
    )


def profile(
    user_id: str,
    full_name: str = "Test User",
    role: str = "student",
    created_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
) -> UserProfile:
    """Build a profile."""
    return UserProfile(
        id=user_id,
        full_name=full_name,
        role=role,
        created_at=created_at or utc(2024, 1, 1),
        updated_at=updated_at or utc(2024, 1, 1),
    )


@pytest.fixture
def sample_banner_data() -> BannerCreate:
    """Valid banner payload."""
    return BannerCreate(
        banner_key="homepage",
        badge_text="New",
        text="Impact report 2024 is out",
        link_url="https://example.org/report",
        link_text="Read it",
        is_active=True,
        start_date=utc(2024, 3, 1),
        end_date=utc(2024, 4, 1),
    )


# ==================== HTTP Client Fixtures ====================

@pytest.fixture
def mock_httpx_response():
    """
    Factory fixture to create mock httpx responses.

    Usage:
        response = mock_httpx_response(status_code=200, json_data=[{"id": 1}])
    """
    def _create_response(
        status_code: int = 200,
        json_data=None,
        text: str = "",
        headers: Optional[dict] = None,
    ):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data
        response.text = text
        response.headers = headers or {}
        return response
    return _create_response
