"""
Report Schemas

Pydantic models for the impact report download log.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ReportDownload(BaseModel):
    """One logged report download."""

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    report_title: Optional[str] = None
    report_year: Optional[int] = None
    downloaded_at: Optional[datetime] = None
