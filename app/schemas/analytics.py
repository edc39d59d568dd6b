"""
Analytics Schemas

Pydantic value objects for the analytics core and its responses.
"""

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class Granularity(str, enum.Enum):
    """Bucket size for time series."""
    DAY = "day"
    WEEK = "week"


class ChartPeriod(str, enum.Enum):
    """Period selector exposed to the dashboard."""
    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def granularity(self) -> Granularity:
        return Granularity.DAY if self is ChartPeriod.DAILY else Granularity.WEEK


class CompletionMode(str, enum.Enum):
    """Which progress schema drives completion rates."""
    PER_LESSON = "per_lesson"
    LEGACY = "legacy"


class UserSignupEvent(BaseModel):
    """A single account creation."""

    user_id: str
    created_at: datetime


class TimeBucket(BaseModel):
    """Count of events in one day or week, keyed by its UTC-midnight start."""

    period_start: datetime = Field(..., description="Bucket start (UTC midnight)")
    count: int = Field(..., ge=0, description="Events in the bucket")


class LessonProgressRecord(BaseModel):
    """One revision of a user's progress on a lesson."""

    user_id: str
    course_id: str
    lesson_id: str
    completed_at: Optional[datetime] = None
    updated_at: datetime


class CourseProgressRecord(BaseModel):
    """Legacy course-level progress with a stored percentage."""

    user_id: str
    course_id: str
    progress_percentage: Optional[float] = None
    updated_at: Optional[datetime] = None


class CourseCompletionStat(BaseModel):
    """Completion figures for one course."""

    course_id: Optional[str] = None
    enrolled_count: int = Field(0, ge=0)
    completed_count: int = Field(0, ge=0)
    completion_rate: float = Field(0.0, ge=0, le=100, description="Percent, 2 decimals")


class DeltaPoint(BaseModel):
    """A bucket annotated with its change versus the previous bucket."""

    bucket: TimeBucket
    previous_count: Optional[int] = None
    absolute_delta: Optional[int] = None
    percent_delta: Optional[float] = None

    @computed_field  # type: ignore[misc]
    @property
    def change_label(self) -> Optional[str]:
        """Display text such as "+5 (+50.0%)"; None for the first point."""
        from app.services.aggregation import format_change
        return format_change(self)


class NewUsersChart(BaseModel):
    """New-user series ready for the dashboard chart."""

    period: ChartPeriod
    points: list[DeltaPoint] = Field(default_factory=list)


class OverallStats(BaseModel):
    """Headline numbers for the dashboard stat cards."""

    total_users: int = Field(0, ge=0)
    active_users: int = Field(0, ge=0)
    total_courses: int = Field(0, ge=0)
    total_completions: int = Field(0, ge=0)


class StatComparison(BaseModel):
    """One stat card compared with a previous snapshot."""

    metric: str
    value: int
    previous_value: Optional[int] = None
    absolute_delta: Optional[int] = None
    percent_delta: Optional[float] = None


class SnapshotCompareRequest(BaseModel):
    """Body of the compare endpoint; the caller owns the previous snapshot."""

    previous: Optional[OverallStats] = None


class CourseSummary(BaseModel):
    """Published course reference."""

    id: str
    title: Optional[str] = None


class CourseCompletionRow(BaseModel):
    """One row of the course completion table."""

    course_id: str
    course_title: str = "Unknown Course"
    total_enrollments: int = Field(0, ge=0)
    completed_count: int = Field(0, ge=0)
    completion_rate: float = Field(0.0, description="Percent, 2 decimals")
