"""
Analytics Routes

Endpoints for the analytics dashboard.
"""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_staff, get_data_source
from app.datasource import DataSource
from app.schemas.analytics import (
    ChartPeriod,
    CompletionMode,
    CourseCompletionRow,
    NewUsersChart,
    OverallStats,
    SnapshotCompareRequest,
    StatComparison,
)
from app.services import analytics_service


router = APIRouter(
    prefix="/analytics",
    tags=["Analytics"],
    dependencies=[Depends(get_current_staff)],
)


@router.get(
    "/overview",
    response_model=OverallStats,
    summary="Get dashboard stat cards",
)
async def get_overview(
    source: Annotated[DataSource, Depends(get_data_source)],
) -> OverallStats:
    """
    Get total users, active users, published courses and completions.
    
    A metric that cannot be read is reported as 0.
    """
    return await analytics_service.get_overall_stats(source)


@router.post(
    "/overview/compare",
    response_model=list[StatComparison],
    summary="Compare stat cards with a previous snapshot",
)
async def compare_overview(
    body: SnapshotCompareRequest,
    source: Annotated[DataSource, Depends(get_data_source)],
) -> list[StatComparison]:
    """
    Compare current stat cards with a snapshot the client stored earlier.
    
    The server keeps no history; send the previous OverallStats back.
    """
    return await analytics_service.compare_with_snapshot(source, body.previous)


@router.get(
    "/new-users",
    response_model=NewUsersChart,
    summary="Get new users over time",
)
async def get_new_users(
    source: Annotated[DataSource, Depends(get_data_source)],
    period: ChartPeriod = ChartPeriod.WEEKLY,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Annotated[Optional[int], Query(ge=1, le=365)] = None,
) -> NewUsersChart:
    """
    Get new signups per day or week with change versus the previous period.
    
    **Query:**
    - period: daily or weekly
    - start_date / end_date: inclusive date filter
    - limit: most recent points to return (default CHART_MAX_POINTS)
    """
    return await analytics_service.get_new_users_chart(
        source,
        period=period,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )


@router.get(
    "/completion-rates",
    response_model=list[CourseCompletionRow],
    summary="Get course completion rates",
)
async def get_completion_rates(
    source: Annotated[DataSource, Depends(get_data_source)],
    mode: Optional[CompletionMode] = None,
) -> list[CourseCompletionRow]:
    """
    Get enrollment and completion figures per published course.
    
    `mode` selects the progress schema used when rates are computed here
    (default COMPLETION_MODE).
    """
    return await analytics_service.get_course_completion_rates(source, mode)
