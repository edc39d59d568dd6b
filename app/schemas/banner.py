"""
Banner Schemas

Pydantic models for marketing banner CRUD.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class BannerBase(BaseModel):
    """Editable banner fields."""

    banner_key: str = Field("", max_length=100, description="Placement key")
    badge_text: Optional[str] = Field(None, max_length=100)
    text: str = Field("", description="Banner message")
    link_url: Optional[str] = Field(None, max_length=500)
    link_text: Optional[str] = Field(None, max_length=100)
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class BannerCreate(BannerBase):
    """Schema for creating a banner."""


class BannerUpdate(BannerBase):
    """Schema for replacing a banner's editable fields."""


class BannerStatusUpdate(BaseModel):
    """Schema for toggling a banner on or off."""

    is_active: bool


class Banner(BannerBase):
    """Stored banner."""

    id: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
