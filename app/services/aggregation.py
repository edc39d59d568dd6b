"""
Analytics Aggregation

Pure computations behind the dashboard:
- new-user time bucketing (day / ISO week)
- course completion rates from progress records
- period-over-period deltas for chart tooltips and stat cards

Nothing here performs I/O; inputs are already-fetched collections and every
call returns new value objects.
"""

import math
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Sequence, Union

from app.schemas.analytics import (
    CompletionMode,
    CourseCompletionRow,
    CourseCompletionStat,
    CourseProgressRecord,
    DeltaPoint,
    Granularity,
    LessonProgressRecord,
    OverallStats,
    StatComparison,
    TimeBucket,
    UserSignupEvent,
)


# Chart shows at most this many of the most recent points
DEFAULT_DISPLAY_POINTS = 30

STAT_METRICS = ("total_users", "active_users", "total_courses", "total_completions")


# ============== Helpers ==============

def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utc_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values, unlike round()."""
    return int(math.floor(value + 0.5))


def bucket_start(moment: datetime, granularity: Granularity) -> datetime:
    """
    Get the start of the bucket containing a timestamp.

    Week buckets start on Monday; Sunday is the last day of its week.

    Args:
        moment: Event timestamp.
        granularity: Day or week.

    Returns:
        UTC midnight of the day, or of the Monday of its ISO week.
    """
    day = as_utc(moment).date()
    if granularity == Granularity.WEEK:
        day = day - timedelta(days=day.weekday())
    return _utc_midnight(day)


# ============== Time-Bucket Aggregator ==============

def aggregate_new_users(
    events: Iterable[UserSignupEvent],
    granularity: Granularity,
    window_days: Optional[int],
    now: Optional[datetime] = None,
) -> list[TimeBucket]:
    """
    Count signups per day or week over a lookback window.

    Buckets with no signups are not emitted. Output is strictly ascending
    by period_start.

    Args:
        events: Signup events, any order.
        granularity: Day or week buckets.
        window_days: Events older than now - window_days are ignored.
            None disables the window.
        now: Reference time, defaults to the current UTC time.

    Returns:
        Sparse, chronologically ordered list of buckets.
    """
    cutoff = None
    if window_days is not None:
        reference = as_utc(now) if now is not None else datetime.now(timezone.utc)
        cutoff = reference - timedelta(days=window_days)

    counts: Counter[datetime] = Counter()
    for event in events:
        created_at = as_utc(event.created_at)
        if cutoff is not None and created_at < cutoff:
            continue
        counts[bucket_start(created_at, granularity)] += 1

    return [
        TimeBucket(period_start=key, count=counts[key])
        for key in sorted(counts)
    ]


def normalize_precomputed_series(buckets: Sequence[TimeBucket]) -> list[TimeBucket]:
    """
    Put a server-computed series into chronological order.

    The series is otherwise used verbatim; the server function returns it
    most recent first.
    """
    series = list(buckets)
    if len(series) > 1 and series[0].period_start > series[-1].period_start:
        series.reverse()
    return series


# ============== Completion-Rate Calculator ==============

def user_progress_percentage(completed_lessons: int, total_lessons: int) -> int:
    """Whole-number progress through a course, clamped to 0-100."""
    if total_lessons <= 0:
        return 0
    percentage = round_half_up(completed_lessons / total_lessons * 100)
    return max(0, min(100, percentage))


def _revision_key(record: LessonProgressRecord) -> tuple:
    # Ties on updated_at go to the completed revision, then the later completion
    completed_at = as_utc(record.completed_at) if record.completed_at else None
    return (
        as_utc(record.updated_at),
        completed_at is not None,
        completed_at or datetime.min.replace(tzinfo=timezone.utc),
    )


def latest_lesson_states(
    records: Iterable[LessonProgressRecord],
) -> dict[tuple[str, str], LessonProgressRecord]:
    """Keep the latest revision per (user_id, lesson_id)."""
    latest: dict[tuple[str, str], LessonProgressRecord] = {}
    for record in records:
        key = (record.user_id, record.lesson_id)
        current = latest.get(key)
        if current is None or _revision_key(record) > _revision_key(current):
            latest[key] = record
    return latest


def _completion_stat(
    course_id: Optional[str],
    enrolled_count: int,
    completed_count: int,
) -> CourseCompletionStat:
    rate = round(completed_count / enrolled_count * 100, 2) if enrolled_count > 0 else 0.0
    return CourseCompletionStat(
        course_id=course_id,
        enrolled_count=enrolled_count,
        completed_count=completed_count,
        completion_rate=rate,
    )


def compute_completion_rate(
    records: Sequence[Union[LessonProgressRecord, CourseProgressRecord]],
    total_lessons_in_course: int,
    *,
    mode: CompletionMode = CompletionMode.PER_LESSON,
    course_id: Optional[str] = None,
) -> CourseCompletionStat:
    """
    Compute enrollment and completion figures for one course.

    Per-lesson mode: a user is enrolled with any progress record and
    completed when every lesson's latest revision carries a completion
    timestamp. Legacy mode: completed when a stored progress_percentage is
    exactly 100; total_lessons_in_course is ignored.

    Args:
        records: LessonProgressRecord (per-lesson) or CourseProgressRecord
            (legacy) items for the course.
        total_lessons_in_course: Lesson count of the course.
        mode: Which progress schema the records follow.
        course_id: Copied onto the result.

    Returns:
        CourseCompletionStat; all zero for no records or no lessons.
    """
    if mode == CompletionMode.LEGACY:
        return _legacy_completion_rate(records, course_id)

    if not records or total_lessons_in_course <= 0:
        return CourseCompletionStat(course_id=course_id)

    enrolled = {record.user_id for record in records}

    completed_lessons: dict[str, set[str]] = {user_id: set() for user_id in enrolled}
    for (user_id, lesson_id), record in latest_lesson_states(records).items():
        if record.completed_at is not None:
            completed_lessons[user_id].add(lesson_id)

    completed_count = sum(
        1
        for lessons in completed_lessons.values()
        if user_progress_percentage(len(lessons), total_lessons_in_course) == 100
    )
    return _completion_stat(course_id, len(enrolled), completed_count)


def _legacy_completion_rate(
    records: Sequence[CourseProgressRecord],
    course_id: Optional[str],
) -> CourseCompletionStat:
    enrolled = {record.user_id for record in records}
    completed = {
        record.user_id
        for record in records
        if record.progress_percentage is not None and record.progress_percentage == 100
    }
    return _completion_stat(course_id, len(enrolled), len(completed))


def rank_completion_rows(rows: Iterable[CourseCompletionRow]) -> list[CourseCompletionRow]:
    """Sort completion rows by rate, highest first."""
    return sorted(rows, key=lambda row: row.completion_rate, reverse=True)


# ============== Delta Annotator ==============

def _delta(current: int, previous: Optional[int]) -> tuple[Optional[int], Optional[float]]:
    if previous is None:
        return None, None
    absolute = current - previous
    percent = None
    if previous != 0:
        # round() can return -0.0 for tiny declines
        percent = round(absolute / previous * 100, 1) + 0.0
    return absolute, percent


def annotate_deltas(series: Sequence[TimeBucket]) -> list[DeltaPoint]:
    """
    Annotate each bucket with its change versus the preceding bucket.

    The first point has no predecessor; percent change is undefined when
    the previous count is zero.
    """
    points = []
    previous_count: Optional[int] = None
    for bucket in series:
        absolute, percent = _delta(bucket.count, previous_count)
        points.append(
            DeltaPoint(
                bucket=bucket,
                previous_count=previous_count,
                absolute_delta=absolute,
                percent_delta=percent,
            )
        )
        previous_count = bucket.count
    return points


def _signed(value: Union[int, float]) -> str:
    # Zero counts as growth and gets a "+"
    return f"+{value}" if value >= 0 else f"{value}"


def format_change(point: DeltaPoint) -> Optional[str]:
    """
    Render a point's change for display, e.g. "+5 (+50.0%)".

    Returns None for the first point of a series, and only the absolute
    part when the percentage is undefined.
    """
    if point.absolute_delta is None:
        return None
    label = _signed(point.absolute_delta)
    if point.percent_delta is not None:
        label += f" ({_signed(point.percent_delta)}%)"
    return label


def filter_by_date_range(
    points: Sequence[DeltaPoint],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[DeltaPoint]:
    """Keep points whose bucket date (UTC) lies within [start_date, end_date]."""
    kept = []
    for point in points:
        day = as_utc(point.bucket.period_start).date()
        if start_date is not None and day < start_date:
            continue
        if end_date is not None and day > end_date:
            continue
        kept.append(point)
    return kept


def most_recent(points: Sequence[DeltaPoint], limit: int = DEFAULT_DISPLAY_POINTS) -> list[DeltaPoint]:
    """Last `limit` points; applied after annotation so deltas stay true."""
    if limit <= 0:
        return []
    return list(points[-limit:])


# ============== Snapshot Comparator ==============

def compare_snapshots(
    current: OverallStats,
    previous: Optional[OverallStats] = None,
) -> list[StatComparison]:
    """
    Compare stat-card values with a previous snapshot.

    The snapshot is supplied by the caller; nothing is remembered here.
    Without a snapshot every delta is None.
    """
    comparisons = []
    for metric in STAT_METRICS:
        value = getattr(current, metric)
        previous_value = getattr(previous, metric) if previous is not None else None
        absolute, percent = _delta(value, previous_value)
        comparisons.append(
            StatComparison(
                metric=metric,
                value=value,
                previous_value=previous_value,
                absolute_delta=absolute,
                percent_delta=percent,
            )
        )
    return comparisons
