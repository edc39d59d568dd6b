"""
User Routes

Endpoints for user search and details.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_staff, get_data_source
from app.datasource import DataSource
from app.schemas.user import UserDetails, UserProfile
from app.services import users_service


router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(get_current_staff)],
)


@router.get(
    "/search",
    response_model=list[UserProfile],
    summary="Search users by name",
)
async def search_users(
    source: Annotated[DataSource, Depends(get_data_source)],
    q: Annotated[str, Query(max_length=100)] = "",
    limit: Annotated[int, Query(ge=1, le=200)] = users_service.DEFAULT_SEARCH_LIMIT,
) -> list[UserProfile]:
    """Search profiles by name; fewer than 2 characters returns nothing."""
    return await users_service.search_users(source, q, limit)


@router.get(
    "/inactive",
    response_model=list[UserProfile],
    summary="List inactive students",
)
async def list_inactive_users(
    source: Annotated[DataSource, Depends(get_data_source)],
    days: Annotated[int, Query(ge=1, le=365)] = users_service.DEFAULT_INACTIVE_DAYS,
) -> list[UserProfile]:
    """Students with no activity in the last `days` days."""
    return await users_service.get_inactive_users(source, days)


@router.get(
    "/{user_id}",
    response_model=UserDetails,
    summary="Get user details",
)
async def get_user(
    user_id: str,
    source: Annotated[DataSource, Depends(get_data_source)],
) -> UserDetails:
    """
    Get a profile with enrolled courses and progress.
    
    Raises:
        HTTPException: 404 if the user does not exist.
    """
    return await users_service.get_user_details(source, user_id)
