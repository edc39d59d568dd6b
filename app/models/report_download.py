"""
Impact Report Download Model

One row per download of a public impact report.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class ImpactReportDownload(Base):
    """Download log entry captured by the public report form."""

    __tablename__ = "impact_report_downloads"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    report_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    report_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    downloaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ImpactReportDownload(id={self.id}, report={self.report_title})>"
