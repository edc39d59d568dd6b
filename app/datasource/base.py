"""
Data Source Protocol

The read/write surface the services need from the hosted database.
Implementations raise DataSourceError on failure. Methods backed by optional
server-side SQL functions return None when the function is unavailable, so
callers can fall back to computing the result themselves.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from app.schemas.analytics import (
    CourseCompletionRow,
    CourseProgressRecord,
    CourseSummary,
    Granularity,
    LessonProgressRecord,
    TimeBucket,
    UserSignupEvent,
)
from app.schemas.banner import Banner, BannerBase
from app.schemas.report import ReportDownload
from app.schemas.user import EnrolledCourse, UserProfile


LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so a search term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


@runtime_checkable
class DataSource(Protocol):

    # Whether independent reads may be awaited concurrently
    concurrent_reads: bool

    # ---- analytics ----

    async def count_users(self) -> int: ...

    async def list_active_user_ids(self, since: datetime) -> set[str]:
        """Users with a progress update at or after `since`."""
        ...

    async def count_profiles_updated_since(self, since: datetime) -> int: ...

    async def count_published_courses(self) -> int: ...

    async def count_legacy_completions(self) -> int:
        """Course-level progress rows at 100%."""
        ...

    async def fetch_new_user_series(self, granularity: Granularity) -> Optional[list[TimeBucket]]:
        """Server-computed signup buckets, None when the function is missing."""
        ...

    async def fetch_signup_events(self, since: datetime) -> list[UserSignupEvent]: ...

    async def fetch_completion_rates(self) -> Optional[list[CourseCompletionRow]]:
        """Server-computed completion table, None when the function is missing."""
        ...

    async def list_published_courses(self) -> list[CourseSummary]: ...

    async def fetch_lesson_progress(self, course_id: str) -> list[LessonProgressRecord]: ...

    async def fetch_course_progress(self, course_id: str) -> list[CourseProgressRecord]: ...

    async def count_course_lessons(self, course_id: str) -> int: ...

    # ---- users ----

    async def search_profiles(self, term: str, limit: int) -> list[UserProfile]:
        """Case-insensitive name match, newest first."""
        ...

    async def get_profile(self, user_id: str) -> Optional[UserProfile]: ...

    async def fetch_user_enrollments(self, user_id: str) -> list[EnrolledCourse]:
        """Course progress for one user, most recently updated first."""
        ...

    async def fetch_last_login(self, user_id: str) -> Optional[datetime]:
        """Last sign-in from the server function, None when unavailable."""
        ...

    async def list_students(self) -> list[UserProfile]:
        """Student profiles, least recently updated first."""
        ...

    # ---- banners ----

    async def list_banners(self) -> list[Banner]: ...

    async def get_banner(self, banner_id: str) -> Optional[Banner]: ...

    async def get_banner_by_key(self, banner_key: str) -> Optional[Banner]:
        """Most recently created banner for the key."""
        ...

    async def insert_banner(
        self,
        data: BannerBase,
        created_by: Optional[str],
        now: datetime,
    ) -> Banner: ...

    async def update_banner(self, banner_id: str, values: dict) -> Optional[Banner]: ...

    async def delete_banner(self, banner_id: str) -> bool: ...

    # ---- reports ----

    async def list_report_downloads(self, limit: int) -> list[ReportDownload]: ...
