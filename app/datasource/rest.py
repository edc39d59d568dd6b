"""
REST Data Source

Reads and writes through the hosted database's REST gateway (PostgREST
dialect): table endpoints with `column=op.value` filters, exact counts via
the Content-Range header, and server-side SQL functions under `rpc/`.
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter
from pydantic_core import to_jsonable_python

from app.core.exceptions import DataSourceError
from app.core.http_client import request_with_retry
from app.datasource.base import escape_like
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

PROFILE_COLUMNS = "id,full_name,role,created_at,updated_at"

_datetime_adapter = TypeAdapter(datetime)


def _iso(value: datetime) -> str:
    return value.isoformat()


def _stringify(row: dict, *keys: str) -> dict:
    """Copy a row with the given id columns as strings."""
    converted = dict(row)
    for key in keys:
        if converted.get(key) is not None:
            converted[key] = str(converted[key])
    return converted


def parse_content_range(header: Optional[str]) -> int:
    """
    Extract the total from a Content-Range header.

    Examples: "0-24/3573" -> 3573, "*/0" -> 0, "*/*" -> 0.
    """
    if not header or "/" not in header:
        return 0
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0


class RestDataSource:
    """DataSource backed by the hosted REST gateway."""

    concurrent_reads = True

    def __init__(self, base_url: str, api_key: str):
        """
        Args:
            base_url: Gateway root, e.g. https://<project>.supabase.co/rest/v1
            api_key: Service key sent as apikey and bearer token.
        """
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        }

    # ============== Transport ==============

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self._base_url}/{path}"
        try:
            response = await request_with_retry(
                method,
                url,
                params=params,
                json=json,
                headers={**self._headers, **(headers or {})},
            )
        except httpx.HTTPError as e:
            raise DataSourceError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise DataSourceError(
                f"{method} {path} rejected: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    async def _select(self, table: str, params: dict[str, Any]) -> list[dict]:
        response = await self._request("GET", table, params=params)
        return response.json() or []

    async def _count(self, table: str, params: Optional[dict[str, Any]] = None) -> int:
        response = await self._request(
            "HEAD",
            table,
            params={"select": "*", **(params or {})},
            headers={"Prefer": "count=exact"},
        )
        return parse_content_range(response.headers.get("content-range"))

    async def _rpc(self, function: str, args: Optional[dict[str, Any]] = None) -> Any:
        """
        Call a server-side SQL function.

        Returns None when the gateway rejects the call (function missing,
        bad signature, permission); transport failures still raise.
        """
        try:
            response = await self._request("POST", f"rpc/{function}", json=args or {})
        except DataSourceError as e:
            if e.status_code is None:
                raise
            logger.info(f"Function {function} unavailable: {e}")
            return None
        return response.json()

    async def _write(self, method: str, table: str, params: dict, body: Any = None) -> list[dict]:
        response = await self._request(
            method,
            table,
            params=params,
            json=to_jsonable_python(body) if body is not None else None,
            headers={"Prefer": "return=representation"},
        )
        return response.json() or []

    # ============== Analytics ==============

    async def count_users(self) -> int:
        return await self._count("profiles")

    async def list_active_user_ids(self, since: datetime) -> set[str]:
        rows = await self._select(
            "user_progress",
            {"select": "user_id", "updated_at": f"gte.{_iso(since)}"},
        )
        return {str(row["user_id"]) for row in rows}

    async def count_profiles_updated_since(self, since: datetime) -> int:
        return await self._count("profiles", {"updated_at": f"gte.{_iso(since)}"})

    async def count_published_courses(self) -> int:
        return await self._count("courses", {"is_published": "eq.true"})

    async def count_legacy_completions(self) -> int:
        return await self._count("user_progress", {"progress_percentage": "eq.100"})

    async def fetch_new_user_series(self, granularity: Granularity) -> Optional[list[TimeBucket]]:
        rows = await self._rpc("get_new_users_over_time", {"trunc_level": granularity.value})
        if rows is None:
            return None
        return [
            TimeBucket(period_start=row["period_start"], count=row["new_users_count"])
            for row in rows
        ]

    async def fetch_signup_events(self, since: datetime) -> list[UserSignupEvent]:
        rows = await self._select(
            "profiles",
            {
                "select": "id,created_at",
                "created_at": f"gte.{_iso(since)}",
                "order": "created_at.asc",
            },
        )
        return [
            UserSignupEvent(user_id=str(row["id"]), created_at=row["created_at"])
            for row in rows
        ]

    async def fetch_completion_rates(self) -> Optional[list[CourseCompletionRow]]:
        rows = await self._rpc("get_course_completion_rates")
        if rows is None:
            return None
        return [
            CourseCompletionRow.model_validate(_stringify(row, "course_id"))
            for row in rows
        ]

    async def list_published_courses(self) -> list[CourseSummary]:
        rows = await self._select("courses", {"select": "id,title", "is_published": "eq.true"})
        return [CourseSummary.model_validate(_stringify(row, "id")) for row in rows]

    async def fetch_lesson_progress(self, course_id: str) -> list[LessonProgressRecord]:
        rows = await self._select(
            "lesson_progress",
            {
                "select": "user_id,course_id,lesson_id,completed_at,updated_at",
                "course_id": f"eq.{course_id}",
            },
        )
        return [
            LessonProgressRecord.model_validate(_stringify(row, "user_id", "course_id", "lesson_id"))
            for row in rows
        ]

    async def fetch_course_progress(self, course_id: str) -> list[CourseProgressRecord]:
        rows = await self._select(
            "user_progress",
            {
                "select": "user_id,course_id,progress_percentage,updated_at",
                "course_id": f"eq.{course_id}",
            },
        )
        return [
            CourseProgressRecord.model_validate(_stringify(row, "user_id", "course_id"))
            for row in rows
        ]

    async def count_course_lessons(self, course_id: str) -> int:
        return await self._count("lessons", {"course_id": f"eq.{course_id}"})

    # ============== Users ==============

    async def search_profiles(self, term: str, limit: int) -> list[UserProfile]:
        rows = await self._select(
            "profiles",
            {
                "select": PROFILE_COLUMNS,
                "full_name": f"ilike.*{escape_like(term)}*",
                "order": "created_at.desc",
                "limit": limit,
            },
        )
        return [UserProfile.model_validate(_stringify(row, "id")) for row in rows]

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        rows = await self._select(
            "profiles",
            {"select": PROFILE_COLUMNS, "id": f"eq.{user_id}", "limit": 1},
        )
        return UserProfile.model_validate(_stringify(rows[0], "id")) if rows else None

    async def fetch_user_enrollments(self, user_id: str) -> list[EnrolledCourse]:
        rows = await self._select(
            "user_progress",
            {
                "select": "course_id,progress_percentage,updated_at,courses:course_id(id,title,slug)",
                "user_id": f"eq.{user_id}",
                "order": "updated_at.desc",
            },
        )
        enrollments = []
        for row in rows:
            course = row.get("courses") or {}
            enrollments.append(
                EnrolledCourse(
                    course_id=str(row["course_id"]),
                    course_title=course.get("title"),
                    course_slug=course.get("slug"),
                    progress_percentage=row.get("progress_percentage"),
                    updated_at=row.get("updated_at"),
                )
            )
        return enrollments

    async def fetch_last_login(self, user_id: str) -> Optional[datetime]:
        value = await self._rpc("get_user_last_login", {"user_id": user_id})
        if not value:
            return None
        return _datetime_adapter.validate_python(value)

    async def list_students(self) -> list[UserProfile]:
        rows = await self._select(
            "profiles",
            {"select": PROFILE_COLUMNS, "role": "eq.student", "order": "updated_at.asc"},
        )
        return [UserProfile.model_validate(_stringify(row, "id")) for row in rows]

    # ============== Banners ==============

    @staticmethod
    def _banner(row: dict) -> Banner:
        return Banner.model_validate(_stringify(row, "id", "created_by"))

    async def list_banners(self) -> list[Banner]:
        rows = await self._select("website_banners", {"select": "*", "order": "created_at.desc"})
        return [self._banner(row) for row in rows]

    async def get_banner(self, banner_id: str) -> Optional[Banner]:
        rows = await self._select(
            "website_banners",
            {"select": "*", "id": f"eq.{banner_id}", "limit": 1},
        )
        return self._banner(rows[0]) if rows else None

    async def get_banner_by_key(self, banner_key: str) -> Optional[Banner]:
        rows = await self._select(
            "website_banners",
            {
                "select": "*",
                "banner_key": f"eq.{banner_key}",
                "order": "created_at.desc",
                "limit": 1,
            },
        )
        return self._banner(rows[0]) if rows else None

    async def insert_banner(
        self,
        data: BannerBase,
        created_by: Optional[str],
        now: datetime,
    ) -> Banner:
        body = {
            **data.model_dump(),
            "created_by": created_by,
            "created_at": now,
            "updated_at": now,
        }
        rows = await self._write("POST", "website_banners", {"select": "*"}, body)
        if not rows:
            raise DataSourceError("Banner insert returned no row")
        return self._banner(rows[0])

    async def update_banner(self, banner_id: str, values: dict) -> Optional[Banner]:
        rows = await self._write(
            "PATCH",
            "website_banners",
            {"id": f"eq.{banner_id}", "select": "*"},
            values,
        )
        return self._banner(rows[0]) if rows else None

    async def delete_banner(self, banner_id: str) -> bool:
        rows = await self._write("DELETE", "website_banners", {"id": f"eq.{banner_id}"})
        return bool(rows)

    # ============== Reports ==============

    async def list_report_downloads(self, limit: int) -> list[ReportDownload]:
        rows = await self._select(
            "impact_report_downloads",
            {"select": "*", "order": "downloaded_at.desc", "limit": limit},
        )
        return [ReportDownload.model_validate(_stringify(row, "id")) for row in rows]
