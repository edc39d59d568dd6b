"""
Report Service Unit Tests

Tests for the report download log.
"""

import pytest

from app.schemas.report import ReportDownload
from conftest import utc


class TestListReportDownloads:
    """Tests for listing report downloads."""

    @pytest.mark.asyncio
    async def test_respects_limit(self, fake_source):
        """Verify the limit is passed through."""
        from app.services.report_service import list_report_downloads

        fake_source.downloads = [
            ReportDownload(id=str(i), name=f"Reader {i}", downloaded_at=utc(2024, 3, i + 1))
            for i in range(5)
        ]

        result = await list_report_downloads(fake_source, limit=2)

        assert [row.id for row in result] == ["0", "1"]

    @pytest.mark.asyncio
    async def test_error_returns_empty(self, fake_source):
        """Verify a failing read degrades to an empty list."""
        from app.services.report_service import list_report_downloads

        fake_source.failures.add("list_report_downloads")

        assert await list_report_downloads(fake_source) == []
