"""
Data source layer.

`open_data_source()` yields the implementation selected by DATA_SOURCE:
- rest: RestDataSource over the shared httpx client
- sql: SqlDataSource over a fresh AsyncSession
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from app.core.config import settings
from app.datasource.base import DataSource
from app.datasource.rest import RestDataSource
from app.datasource.sql import SqlDataSource


@asynccontextmanager
async def open_data_source() -> AsyncIterator[DataSource]:
    """Yield the configured data source for the duration of one request."""
    if settings.DATA_SOURCE == "sql":
        from app.core.database import get_session_maker

        async with get_session_maker()() as session:
            yield SqlDataSource(session)
    else:
        yield RestDataSource(settings.rest_base_url, settings.SUPABASE_SERVICE_KEY)


__all__ = ["DataSource", "RestDataSource", "SqlDataSource", "open_data_source"]
