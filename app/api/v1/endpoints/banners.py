"""
Banner Routes

Endpoints for marketing banner management.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_current_staff, get_data_source
from app.datasource import DataSource
from app.schemas.banner import Banner, BannerCreate, BannerStatusUpdate, BannerUpdate
from app.schemas.user import UserProfile
from app.services import banner_service


router = APIRouter(
    prefix="/banners",
    tags=["Banners"],
    dependencies=[Depends(get_current_staff)],
)


@router.get(
    "",
    response_model=list[Banner],
    summary="List banners",
)
async def list_banners(
    source: Annotated[DataSource, Depends(get_data_source)],
) -> list[Banner]:
    """All banners, newest first."""
    return await banner_service.list_banners(source)


@router.get(
    "/key/{banner_key}",
    response_model=Banner,
    summary="Get banner by key",
)
async def get_banner_by_key(
    banner_key: str,
    source: Annotated[DataSource, Depends(get_data_source)],
) -> Banner:
    """Latest banner for a placement key, active or not."""
    return await banner_service.get_banner_by_key(source, banner_key)


@router.get(
    "/key/{banner_key}/active",
    response_model=Banner,
    summary="Get active banner by key",
)
async def get_active_banner(
    banner_key: str,
    source: Annotated[DataSource, Depends(get_data_source)],
) -> Banner:
    """Banner for a placement key if it is switched on and within its dates."""
    return await banner_service.get_active_banner(source, banner_key)


@router.post(
    "",
    response_model=Banner,
    status_code=status.HTTP_201_CREATED,
    summary="Create banner",
)
async def create_banner(
    banner_in: BannerCreate,
    current_user: Annotated[UserProfile, Depends(get_current_staff)],
    source: Annotated[DataSource, Depends(get_data_source)],
) -> Banner:
    """
    Create a banner owned by the caller.
    
    Raises:
        HTTPException: 400 if validation fails.
    """
    return await banner_service.create_banner(source, banner_in, current_user.id)


@router.put(
    "/{banner_id}",
    response_model=Banner,
    summary="Update banner",
)
async def update_banner(
    banner_id: str,
    banner_in: BannerUpdate,
    source: Annotated[DataSource, Depends(get_data_source)],
) -> Banner:
    """
    Replace a banner's editable fields.
    
    Raises:
        HTTPException: 400 if validation fails.
        HTTPException: 404 if the banner does not exist.
    """
    return await banner_service.update_banner(source, banner_id, banner_in)


@router.patch(
    "/{banner_id}/status",
    response_model=Banner,
    summary="Toggle banner status",
)
async def set_banner_status(
    banner_id: str,
    status_in: BannerStatusUpdate,
    source: Annotated[DataSource, Depends(get_data_source)],
) -> Banner:
    """Switch a banner on or off."""
    return await banner_service.set_banner_status(source, banner_id, status_in.is_active)


@router.delete(
    "/{banner_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete banner",
)
async def delete_banner(
    banner_id: str,
    source: Annotated[DataSource, Depends(get_data_source)],
) -> Response:
    """
    Delete a banner.
    
    Raises:
        HTTPException: 404 if the banner does not exist.
    """
    await banner_service.delete_banner(source, banner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
