"""
Report Routes

Endpoints for the impact report download log.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_staff, get_data_source
from app.datasource import DataSource
from app.schemas.report import ReportDownload
from app.services import report_service


router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    dependencies=[Depends(get_current_staff)],
)


@router.get(
    "/downloads",
    response_model=list[ReportDownload],
    summary="List report downloads",
)
async def list_report_downloads(
    source: Annotated[DataSource, Depends(get_data_source)],
    limit: Annotated[int, Query(ge=1, le=5000)] = report_service.DEFAULT_DOWNLOAD_LIMIT,
) -> list[ReportDownload]:
    """Logged impact report downloads, newest first."""
    return await report_service.list_report_downloads(source, limit)
