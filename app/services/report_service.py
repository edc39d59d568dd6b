"""
Report Service

Read access to the impact report download log.
"""

import logging

from app.core.exceptions import DataSourceError
from app.datasource.base import DataSource
from app.schemas.report import ReportDownload


logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_LIMIT = 1000


async def list_report_downloads(
    source: DataSource,
    limit: int = DEFAULT_DOWNLOAD_LIMIT,
) -> list[ReportDownload]:
    """
    Get logged report downloads, newest first.
    
    Args:
        source: Data source.
        limit: Maximum rows.
        
    Returns:
        Download records; [] on failure.
    """
    try:
        return await source.list_report_downloads(limit)
    except DataSourceError as e:
        logger.error(f"Error fetching report downloads: {e}")
        return []
