"""
Users Service

Business logic for user search, user details and inactivity reports.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status

from app.core.exceptions import DataSourceError
from app.datasource.base import DataSource
from app.models.enums import UserRole
from app.schemas.user import EnrolledCourse, UserDetails, UserProfile
from app.services.aggregation import as_utc, round_half_up


logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2
DEFAULT_SEARCH_LIMIT = 50
DEFAULT_INACTIVE_DAYS = 30

ROLE_LABELS = {
    UserRole.STUDENT.value: "Student",
    UserRole.ADMIN.value: "Admin",
    UserRole.TEAM.value: "Team Member",
    UserRole.INSTRUCTOR.value: "Instructor",
}


def format_role(role: str) -> str:
    """Display name for a role; unknown roles are returned unchanged."""
    return ROLE_LABELS.get(role, role)


def calculate_overall_progress(enrollments: list[EnrolledCourse]) -> int:
    """
    Mean progress across a user's courses.
    
    Courses without a stored percentage count as 0.
    
    Returns:
        Rounded percentage, 0 when there are no courses.
    """
    if not enrollments:
        return 0
    total = sum(course.progress_percentage or 0 for course in enrollments)
    return max(0, min(100, round_half_up(total / len(enrollments))))


async def search_users(
    source: DataSource,
    term: str,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[UserProfile]:
    """
    Search profiles by name.
    
    Args:
        source: Data source.
        term: Search text; fewer than 2 characters returns nothing.
        limit: Maximum results.
        
    Returns:
        Matching profiles, newest first; [] on failure.
    """
    clean_term = (term or "").strip()
    if len(clean_term) < MIN_SEARCH_LENGTH:
        return []

    try:
        profiles = await source.search_profiles(clean_term, limit)
    except DataSourceError as e:
        logger.error(f"Error searching users by name: {e}")
        return []

    newest_first = sorted(
        profiles,
        key=lambda p: as_utc(p.created_at) if p.created_at else datetime.min.replace(tzinfo=timezone.utc),
        reverse=True,
    )
    return newest_first[:limit]


async def get_user_details(source: DataSource, user_id: str) -> UserDetails:
    """
    Get a profile with its learning progress.
    
    Args:
        source: Data source.
        user_id: Profile ID.
        
    Returns:
        UserDetails with enrolled courses, overall progress, last activity
        and last login.
        
    Raises:
        HTTPException: 404 if the profile does not exist.
        HTTPException: 502 if the profile cannot be read.
    """
    try:
        profile = await source.get_profile(user_id)
    except DataSourceError as e:
        logger.error(f"Error fetching user {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not load user",
        )

    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found",
        )

    try:
        enrollments = await source.fetch_user_enrollments(user_id)
    except DataSourceError as e:
        logger.error(f"Error fetching progress for user {user_id}: {e}")
        enrollments = []

    return UserDetails(
        **profile.model_dump(),
        role_label=format_role(profile.role),
        enrolled_courses=enrollments,
        overall_progress=calculate_overall_progress(enrollments),
        last_activity=enrollments[0].updated_at if enrollments else None,
        last_login=await get_last_login(source, profile),
    )


async def get_last_login(source: DataSource, profile: UserProfile) -> Optional[datetime]:
    """Last sign-in, falling back to the profile's updated_at."""
    try:
        last_login = await source.fetch_last_login(profile.id)
    except DataSourceError as e:
        logger.error(f"Error getting last login for {profile.id}: {e}")
        last_login = None
    return last_login or profile.updated_at


async def get_inactive_users(
    source: DataSource,
    days: int = DEFAULT_INACTIVE_DAYS,
    now: Optional[datetime] = None,
) -> list[UserProfile]:
    """
    Students with no recent activity.
    
    A student is inactive when they have no progress update in the window
    and their profile was last updated before it.
    
    Returns:
        Inactive students, least recently updated first; [] on failure.
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)

    try:
        active_ids = await source.list_active_user_ids(cutoff)
        students = await source.list_students()
    except DataSourceError as e:
        logger.error(f"Error fetching inactive users: {e}")
        return []

    return [
        student
        for student in students
        if student.id not in active_ids
        and (student.updated_at is None or as_utc(student.updated_at) < cutoff)
    ]
