"""
SQL Data Source

Reads and writes the hosted PostgreSQL database directly with async
SQLAlchemy. Server-side SQL functions are called with plain SELECTs and
treated as optional, mirroring the REST gateway's rpc endpoints.
"""

import logging
import uuid
from datetime import datetime
from functools import wraps
from typing import Optional

from sqlalchemy import delete, distinct, func, select, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import DataSourceError
from app.datasource.base import LIKE_ESCAPE, escape_like
from app.models.banner import WebsiteBanner
from app.models.course import Course, Lesson
from app.models.enums import UserRole
from app.models.profile import Profile
from app.models.progress import LessonProgress, UserProgress
from app.models.report_download import ImpactReportDownload
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


logger = logging.getLogger(__name__)


def _wrap_errors(method):
    """Re-raise SQLAlchemy failures as DataSourceError."""

    @wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            raise DataSourceError(f"{method.__name__} failed: {e}") from e

    return wrapper


def _uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _profile(row: Profile) -> UserProfile:
    return UserProfile(
        id=str(row.id),
        full_name=row.full_name,
        role=row.role,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _banner(row: WebsiteBanner) -> Banner:
    return Banner(
        id=str(row.id),
        banner_key=row.banner_key,
        badge_text=row.badge_text,
        text=row.text,
        link_url=row.link_url,
        link_text=row.link_text,
        is_active=row.is_active,
        start_date=row.start_date,
        end_date=row.end_date,
        created_by=str(row.created_by) if row.created_by else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlDataSource:
    """DataSource backed by an AsyncSession."""

    # One session cannot run statements concurrently
    concurrent_reads = False

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _scalar_count(self, statement) -> int:
        result = await self._session.execute(statement)
        return int(result.scalar_one() or 0)

    async def _call_function(self, statement, params: dict) -> Optional[list]:
        """
        Run a SELECT against an optional SQL function.

        Returns None if the function is missing or fails; the failed
        statement is rolled back inside a savepoint so the session stays usable.
        """
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(statement, params)
                return list(result.mappings().all())
        except DBAPIError as e:
            logger.info(f"SQL function unavailable: {e.orig}")
            return None

    # ============== Analytics ==============

    @_wrap_errors
    async def count_users(self) -> int:
        return await self._scalar_count(select(func.count()).select_from(Profile))

    @_wrap_errors
    async def list_active_user_ids(self, since: datetime) -> set[str]:
        result = await self._session.execute(
            select(distinct(UserProgress.user_id)).where(UserProgress.updated_at >= since)
        )
        return {str(user_id) for user_id in result.scalars().all()}

    @_wrap_errors
    async def count_profiles_updated_since(self, since: datetime) -> int:
        return await self._scalar_count(
            select(func.count()).select_from(Profile).where(Profile.updated_at >= since)
        )

    @_wrap_errors
    async def count_published_courses(self) -> int:
        return await self._scalar_count(
            select(func.count()).select_from(Course).where(Course.is_published.is_(True))
        )

    @_wrap_errors
    async def count_legacy_completions(self) -> int:
        return await self._scalar_count(
            select(func.count())
            .select_from(UserProgress)
            .where(UserProgress.progress_percentage == 100)
        )

    @_wrap_errors
    async def fetch_new_user_series(self, granularity: Granularity) -> Optional[list[TimeBucket]]:
        rows = await self._call_function(
            text("SELECT period_start, new_users_count FROM get_new_users_over_time(:trunc_level)"),
            {"trunc_level": granularity.value},
        )
        if rows is None:
            return None
        return [
            TimeBucket(period_start=row["period_start"], count=row["new_users_count"])
            for row in rows
        ]

    @_wrap_errors
    async def fetch_signup_events(self, since: datetime) -> list[UserSignupEvent]:
        result = await self._session.execute(
            select(Profile.id, Profile.created_at)
            .where(Profile.created_at >= since)
            .order_by(Profile.created_at.asc())
        )
        return [
            UserSignupEvent(user_id=str(user_id), created_at=created_at)
            for user_id, created_at in result.all()
        ]

    @_wrap_errors
    async def fetch_completion_rates(self) -> Optional[list[CourseCompletionRow]]:
        rows = await self._call_function(
            text(
                "SELECT course_id, course_title, total_enrollments, completed_count, "
                "completion_rate FROM get_course_completion_rates()"
            ),
            {},
        )
        if rows is None:
            return None
        return [
            CourseCompletionRow(
                course_id=str(row["course_id"]),
                course_title=row["course_title"] or "Unknown Course",
                total_enrollments=row["total_enrollments"] or 0,
                completed_count=row["completed_count"] or 0,
                completion_rate=float(row["completion_rate"] or 0),
            )
            for row in rows
        ]

    @_wrap_errors
    async def list_published_courses(self) -> list[CourseSummary]:
        result = await self._session.execute(
            select(Course.id, Course.title).where(Course.is_published.is_(True))
        )
        return [
            CourseSummary(id=str(course_id), title=title)
            for course_id, title in result.all()
        ]

    @_wrap_errors
    async def fetch_lesson_progress(self, course_id: str) -> list[LessonProgressRecord]:
        course_uuid = _uuid(course_id)
        if course_uuid is None:
            return []
        result = await self._session.execute(
            select(LessonProgress).where(LessonProgress.course_id == course_uuid)
        )
        return [
            LessonProgressRecord(
                user_id=str(row.user_id),
                course_id=str(row.course_id),
                lesson_id=str(row.lesson_id),
                completed_at=row.completed_at,
                updated_at=row.updated_at,
            )
            for row in result.scalars().all()
        ]

    @_wrap_errors
    async def fetch_course_progress(self, course_id: str) -> list[CourseProgressRecord]:
        course_uuid = _uuid(course_id)
        if course_uuid is None:
            return []
        result = await self._session.execute(
            select(UserProgress).where(UserProgress.course_id == course_uuid)
        )
        return [
            CourseProgressRecord(
                user_id=str(row.user_id),
                course_id=str(row.course_id),
                progress_percentage=row.progress_percentage,
                updated_at=row.updated_at,
            )
            for row in result.scalars().all()
        ]

    @_wrap_errors
    async def count_course_lessons(self, course_id: str) -> int:
        course_uuid = _uuid(course_id)
        if course_uuid is None:
            return 0
        return await self._scalar_count(
            select(func.count()).select_from(Lesson).where(Lesson.course_id == course_uuid)
        )

    # ============== Users ==============

    @_wrap_errors
    async def search_profiles(self, term: str, limit: int) -> list[UserProfile]:
        result = await self._session.execute(
            select(Profile)
            .where(Profile.full_name.ilike(f"%{escape_like(term)}%", escape=LIKE_ESCAPE))
            .order_by(Profile.created_at.desc())
            .limit(limit)
        )
        return [_profile(row) for row in result.scalars().all()]

    @_wrap_errors
    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        user_uuid = _uuid(user_id)
        if user_uuid is None:
            return None
        row = await self._session.get(Profile, user_uuid)
        return _profile(row) if row else None

    @_wrap_errors
    async def fetch_user_enrollments(self, user_id: str) -> list[EnrolledCourse]:
        user_uuid = _uuid(user_id)
        if user_uuid is None:
            return []
        result = await self._session.execute(
            select(UserProgress)
            .where(UserProgress.user_id == user_uuid)
            .options(selectinload(UserProgress.course))
            .order_by(UserProgress.updated_at.desc())
        )
        return [
            EnrolledCourse(
                course_id=str(row.course_id),
                course_title=row.course.title if row.course else None,
                course_slug=row.course.slug if row.course else None,
                progress_percentage=row.progress_percentage,
                updated_at=row.updated_at,
            )
            for row in result.scalars().all()
        ]

    @_wrap_errors
    async def fetch_last_login(self, user_id: str) -> Optional[datetime]:
        rows = await self._call_function(
            text("SELECT get_user_last_login(:user_id) AS last_login"),
            {"user_id": user_id},
        )
        if not rows:
            return None
        return rows[0]["last_login"]

    @_wrap_errors
    async def list_students(self) -> list[UserProfile]:
        result = await self._session.execute(
            select(Profile)
            .where(Profile.role == UserRole.STUDENT.value)
            .order_by(Profile.updated_at.asc())
        )
        return [_profile(row) for row in result.scalars().all()]

    # ============== Banners ==============

    @_wrap_errors
    async def list_banners(self) -> list[Banner]:
        result = await self._session.execute(
            select(WebsiteBanner).order_by(WebsiteBanner.created_at.desc())
        )
        return [_banner(row) for row in result.scalars().all()]

    async def _get_banner_row(self, banner_id: str) -> Optional[WebsiteBanner]:
        banner_uuid = _uuid(banner_id)
        if banner_uuid is None:
            return None
        return await self._session.get(WebsiteBanner, banner_uuid)

    @_wrap_errors
    async def get_banner(self, banner_id: str) -> Optional[Banner]:
        row = await self._get_banner_row(banner_id)
        return _banner(row) if row else None

    @_wrap_errors
    async def get_banner_by_key(self, banner_key: str) -> Optional[Banner]:
        result = await self._session.execute(
            select(WebsiteBanner)
            .where(WebsiteBanner.banner_key == banner_key)
            .order_by(WebsiteBanner.created_at.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _banner(row) if row else None

    @_wrap_errors
    async def insert_banner(
        self,
        data: BannerBase,
        created_by: Optional[str],
        now: datetime,
    ) -> Banner:
        row = WebsiteBanner(
            **data.model_dump(),
            created_by=_uuid(created_by) if created_by else None,
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)
        await self._session.commit()
        await self._session.refresh(row)
        return _banner(row)

    @_wrap_errors
    async def update_banner(self, banner_id: str, values: dict) -> Optional[Banner]:
        row = await self._get_banner_row(banner_id)
        if row is None:
            return None
        for field, value in values.items():
            setattr(row, field, value)
        await self._session.commit()
        await self._session.refresh(row)
        return _banner(row)

    @_wrap_errors
    async def delete_banner(self, banner_id: str) -> bool:
        banner_uuid = _uuid(banner_id)
        if banner_uuid is None:
            return False
        result = await self._session.execute(
            delete(WebsiteBanner).where(WebsiteBanner.id == banner_uuid)
        )
        await self._session.commit()
        return result.rowcount > 0

    # ============== Reports ==============

    @_wrap_errors
    async def list_report_downloads(self, limit: int) -> list[ReportDownload]:
        result = await self._session.execute(
            select(ImpactReportDownload)
            .order_by(ImpactReportDownload.downloaded_at.desc())
            .limit(limit)
        )
        return [
            ReportDownload(
                id=str(row.id),
                name=row.name,
                email=row.email,
                report_title=row.report_title,
                report_year=row.report_year,
                downloaded_at=row.downloaded_at,
            )
            for row in result.scalars().all()
        ]
