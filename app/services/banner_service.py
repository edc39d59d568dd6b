"""
Banner Service

Business logic for marketing banner management.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from pydantic import AnyUrl, TypeAdapter, ValidationError

from app.core.exceptions import DataSourceError
from app.datasource.base import DataSource
from app.schemas.banner import Banner, BannerBase
from app.services.aggregation import as_utc


logger = logging.getLogger(__name__)

_url_adapter = TypeAdapter(AnyUrl)


def validate_banner(data: BannerBase) -> list[str]:
    """
    Check banner fields before saving.
    
    Returns:
        Human-readable error messages; empty when valid.
    """
    errors = []

    if not data.banner_key or not data.banner_key.strip():
        errors.append("Banner key is required")

    if not data.text or not data.text.strip():
        errors.append("Banner text is required")

    if data.link_url and data.link_url.strip():
        try:
            _url_adapter.validate_python(data.link_url.strip())
        except ValidationError:
            errors.append("Invalid link URL format")

    if data.start_date and data.end_date:
        if as_utc(data.start_date) > as_utc(data.end_date):
            errors.append("Start date must be before end date")

    return errors


def is_banner_active(banner: Banner, now: Optional[datetime] = None) -> bool:
    """Whether a banner is switched on and inside its display window."""
    if not banner.is_active:
        return False

    now = as_utc(now) if now else datetime.now(timezone.utc)

    if banner.start_date and as_utc(banner.start_date) > now:
        return False

    if banner.end_date and as_utc(banner.end_date) < now:
        return False

    return True


def _ensure_valid(data: BannerBase) -> None:
    errors = validate_banner(data)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=", ".join(errors),
        )


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _upstream_error(action: str, error: DataSourceError) -> HTTPException:
    logger.error(f"Error {action} banner: {error}")
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Error {action} banner",
    )


async def list_banners(source: DataSource) -> list[Banner]:
    """All banners, newest first; [] on failure."""
    try:
        return await source.list_banners()
    except DataSourceError as e:
        logger.error(f"Error fetching banners: {e}")
        return []


async def get_banner_by_key(source: DataSource, banner_key: str) -> Banner:
    """
    Latest banner for a key, regardless of status.
    
    Raises:
        HTTPException: 404 if no banner uses the key.
    """
    try:
        banner = await source.get_banner_by_key(banner_key)
    except DataSourceError as e:
        raise _upstream_error("fetching", e)

    if banner is None:
        raise _not_found(f"No banner with key {banner_key!r}")
    return banner


async def get_active_banner(
    source: DataSource,
    banner_key: str,
    now: Optional[datetime] = None,
) -> Banner:
    """
    Banner for a key if it is currently showing.
    
    Raises:
        HTTPException: 404 if missing, switched off or outside its window.
    """
    banner = await get_banner_by_key(source, banner_key)
    if not is_banner_active(banner, now):
        raise _not_found(f"No active banner with key {banner_key!r}")
    return banner


async def create_banner(
    source: DataSource,
    data: BannerBase,
    created_by: Optional[str],
    now: Optional[datetime] = None,
) -> Banner:
    """
    Create a banner.
    
    Raises:
        HTTPException: 400 if validation fails.
        HTTPException: 502 if the insert fails.
    """
    _ensure_valid(data)
    try:
        banner = await source.insert_banner(data, created_by, now or datetime.now(timezone.utc))
    except DataSourceError as e:
        raise _upstream_error("creating", e)

    logger.info(f"Banner {banner.id} created for key {banner.banner_key}")
    return banner


async def _apply_update(source: DataSource, banner_id: str, values: dict, action: str) -> Banner:
    try:
        banner = await source.update_banner(banner_id, values)
    except DataSourceError as e:
        raise _upstream_error(action, e)

    if banner is None:
        raise _not_found(f"Banner {banner_id} not found")
    return banner


async def update_banner(
    source: DataSource,
    banner_id: str,
    data: BannerBase,
    now: Optional[datetime] = None,
) -> Banner:
    """
    Replace a banner's editable fields.
    
    Raises:
        HTTPException: 400 if validation fails.
        HTTPException: 404 if the banner does not exist.
        HTTPException: 502 if the update fails.
    """
    _ensure_valid(data)
    values = {**data.model_dump(), "updated_at": now or datetime.now(timezone.utc)}
    return await _apply_update(source, banner_id, values, "updating")


async def set_banner_status(
    source: DataSource,
    banner_id: str,
    is_active: bool,
    now: Optional[datetime] = None,
) -> Banner:
    """Switch a banner on or off."""
    values = {"is_active": is_active, "updated_at": now or datetime.now(timezone.utc)}
    return await _apply_update(source, banner_id, values, "toggling")


async def delete_banner(source: DataSource, banner_id: str) -> None:
    """
    Delete a banner.
    
    Raises:
        HTTPException: 404 if the banner does not exist.
        HTTPException: 502 if the delete fails.
    """
    try:
        deleted = await source.delete_banner(banner_id)
    except DataSourceError as e:
        raise _upstream_error("deleting", e)

    if not deleted:
        raise _not_found(f"Banner {banner_id} not found")
    logger.info(f"Banner {banner_id} deleted")
