"""
Website Banner Model

Marketing banners shown on the public site, addressed by banner_key.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class WebsiteBanner(Base):
    """
    Website banner.
    
    Attributes:
        banner_key: Placement key, e.g. "homepage-announcement".
        badge_text: Optional short badge shown before the text.
        text: Banner message.
        link_url / link_text: Optional call to action.
        is_active: Manual on/off switch.
        start_date / end_date: Optional display window.
        created_by: Profile id of the staff member who created it.
    """

    __tablename__ = "website_banners"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    banner_key: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
    )
    badge_text: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    link_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    link_text: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    start_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<WebsiteBanner(id={self.id}, key={self.banner_key}, active={self.is_active})>"
