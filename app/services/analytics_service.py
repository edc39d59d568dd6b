"""
Analytics Service

Dashboard analytics: overview stat cards, the new-users chart and course
completion rates. Reads go through a DataSource; every read failure is
logged and degrades to an empty or zero result.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Awaitable, Coroutine, Optional, Protocol, Sequence, TypeVar

from app.core.config import settings
from app.core.exceptions import DataSourceError
from app.datasource.base import DataSource
from app.schemas.analytics import (
    ChartPeriod,
    CompletionMode,
    CourseCompletionRow,
    CourseSummary,
    Granularity,
    NewUsersChart,
    OverallStats,
    StatComparison,
    TimeBucket,
)
from app.services.aggregation import (
    aggregate_new_users,
    annotate_deltas,
    compare_snapshots,
    compute_completion_rate,
    filter_by_date_range,
    most_recent,
    normalize_precomputed_series,
    rank_completion_rows,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _gather(source: DataSource, *aws: Coroutine[Any, Any, T]) -> list[T]:
    """
    Await reads concurrently when the source allows it, else in order.

    In order, a failure stops the run and the reads not yet started are
    closed unawaited.
    """
    if getattr(source, "concurrent_reads", False):
        return list(await asyncio.gather(*aws))

    pending = list(aws)
    results = []
    try:
        while pending:
            results.append(await pending.pop(0))
    finally:
        for aw in pending:
            aw.close()
    return results


# ============== New-user series strategies ==============

class SeriesStrategy(Protocol):
    """One way of producing the new-user series; None means "not available"."""

    name: str

    async def load(
        self,
        source: DataSource,
        granularity: Granularity,
        window_days: int,
        now: datetime,
    ) -> Optional[list[TimeBucket]]: ...


class PrecomputedSeriesStrategy:
    """Series computed by the get_new_users_over_time SQL function."""

    name = "server function"

    async def load(
        self,
        source: DataSource,
        granularity: Granularity,
        window_days: int,
        now: datetime,
    ) -> Optional[list[TimeBucket]]:
        series = await source.fetch_new_user_series(granularity)
        if series is None:
            return None
        return normalize_precomputed_series(series)


class ClientBucketingStrategy:
    """Signups fetched for the window and bucketed here."""

    name = "client bucketing"

    async def load(
        self,
        source: DataSource,
        granularity: Granularity,
        window_days: int,
        now: datetime,
    ) -> Optional[list[TimeBucket]]:
        events = await source.fetch_signup_events(now - timedelta(days=window_days))
        return aggregate_new_users(events, granularity, window_days, now=now)


SERIES_STRATEGIES: tuple[SeriesStrategy, ...] = (
    PrecomputedSeriesStrategy(),
    ClientBucketingStrategy(),
)


async def get_new_users_over_time(
    source: DataSource,
    granularity: Granularity,
    window_days: Optional[int] = None,
    now: Optional[datetime] = None,
    strategies: Sequence[SeriesStrategy] = SERIES_STRATEGIES,
) -> list[TimeBucket]:
    """
    Get new signups per bucket in chronological order.

    Strategies are tried in order; the first one that returns a series wins.

    Args:
        source: Data source.
        granularity: Day or week buckets.
        window_days: Lookback for client bucketing; defaults to ANALYTICS_WINDOW_DAYS.
        now: Reference time, defaults to the current UTC time.
        strategies: Strategies in order of preference.

    Returns:
        Ordered buckets, or [] when the data source fails.
    """
    window_days = window_days if window_days is not None else settings.ANALYTICS_WINDOW_DAYS
    now = now or datetime.now(timezone.utc)

    for strategy in strategies:
        try:
            series = await strategy.load(source, granularity, window_days, now)
        except DataSourceError as e:
            logger.error(f"Error fetching new users over time ({strategy.name}): {e}")
            return []
        if series is not None:
            return series
        logger.info(f"New-user series: {strategy.name} unavailable, falling back")

    return []


async def get_new_users_chart(
    source: DataSource,
    period: ChartPeriod = ChartPeriod.WEEKLY,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = None,
) -> NewUsersChart:
    """
    Build the new-users chart.

    Deltas are computed over the full series; the date filter and the
    most-recent truncation are applied afterwards.
    """
    series = await get_new_users_over_time(source, period.granularity)
    points = annotate_deltas(series)
    points = filter_by_date_range(points, start_date, end_date)
    points = most_recent(points, limit if limit is not None else settings.CHART_MAX_POINTS)
    return NewUsersChart(period=period, points=points)


# ============== Overview stats ==============

async def _count_or_zero(metric: str, read: Awaitable[int]) -> int:
    try:
        return await read
    except DataSourceError as e:
        logger.error(f"Error fetching {metric}: {e}")
        return 0


async def _count_active_users(source: DataSource, since: datetime) -> int:
    try:
        return len(await source.list_active_user_ids(since))
    except DataSourceError as e:
        # Progress table unreadable: fall back to recently updated profiles
        logger.error(f"Error fetching active users: {e}")
        return await _count_or_zero(
            "recently updated profiles",
            source.count_profiles_updated_since(since),
        )


async def get_overall_stats(
    source: DataSource,
    active_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> OverallStats:
    """
    Get the dashboard headline numbers.

    Args:
        source: Data source.
        active_days: Activity window; defaults to ACTIVE_USERS_DAYS.
        now: Reference time, defaults to the current UTC time.

    Returns:
        OverallStats; a metric whose read fails is reported as 0.
    """
    active_days = active_days if active_days is not None else settings.ACTIVE_USERS_DAYS
    since = (now or datetime.now(timezone.utc)) - timedelta(days=active_days)

    total_users, active_users, total_courses, total_completions = await _gather(
        source,
        _count_or_zero("total users", source.count_users()),
        _count_active_users(source, since),
        _count_or_zero("total courses", source.count_published_courses()),
        _count_or_zero("total completions", source.count_legacy_completions()),
    )
    return OverallStats(
        total_users=total_users,
        active_users=active_users,
        total_courses=total_courses,
        total_completions=total_completions,
    )


async def compare_with_snapshot(
    source: DataSource,
    previous: Optional[OverallStats],
) -> list[StatComparison]:
    """Fresh overview stats compared with a caller-held snapshot."""
    current = await get_overall_stats(source)
    return compare_snapshots(current, previous)


# ============== Completion rates ==============

async def _course_completion_row(
    source: DataSource,
    course: CourseSummary,
    mode: CompletionMode,
) -> Optional[CourseCompletionRow]:
    try:
        if mode == CompletionMode.LEGACY:
            records = await source.fetch_course_progress(course.id)
            total_lessons = 0
        else:
            records, total_lessons = await _gather(
                source,
                source.fetch_lesson_progress(course.id),
                source.count_course_lessons(course.id),
            )
    except DataSourceError as e:
        logger.error(f"Error fetching progress for course {course.id}: {e}")
        return None

    stat = compute_completion_rate(records, total_lessons, mode=mode, course_id=course.id)
    return CourseCompletionRow(
        course_id=course.id,
        course_title=course.title or "Unknown Course",
        total_enrollments=stat.enrolled_count,
        completed_count=stat.completed_count,
        completion_rate=stat.completion_rate,
    )


async def get_course_completion_rates(
    source: DataSource,
    mode: Optional[CompletionMode] = None,
) -> list[CourseCompletionRow]:
    """
    Get completion figures for every published course.

    Prefers the get_course_completion_rates SQL function. Otherwise each
    course is computed here with the given mode (default COMPLETION_MODE);
    courses whose progress cannot be read are skipped.

    Returns:
        Rows sorted by completion rate, highest first; [] on failure.
    """
    mode = mode or CompletionMode(settings.COMPLETION_MODE)

    try:
        precomputed = await source.fetch_completion_rates()
        if precomputed is not None:
            return precomputed
        courses = await source.list_published_courses()
    except DataSourceError as e:
        logger.error(f"Error fetching course completion rates: {e}")
        return []

    rows = await _gather(
        source,
        *(_course_completion_row(source, course, mode) for course in courses),
    )
    return rank_completion_rows(row for row in rows if row is not None)
