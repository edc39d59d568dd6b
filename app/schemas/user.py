"""
User Schemas

Pydantic models for profile search and user details.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """Profile row as shown in search results."""

    id: str
    full_name: Optional[str] = None
    role: str = "student"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EnrolledCourse(BaseModel):
    """A course the user has progress in."""

    course_id: str
    course_title: Optional[str] = None
    course_slug: Optional[str] = None
    progress_percentage: Optional[float] = None
    updated_at: Optional[datetime] = None


class UserDetails(UserProfile):
    """Profile plus learning progress."""

    role_label: str = ""
    enrolled_courses: list[EnrolledCourse] = Field(default_factory=list)
    overall_progress: int = Field(0, ge=0, le=100, description="Mean course progress")
    last_activity: Optional[datetime] = None
    last_login: Optional[datetime] = None
