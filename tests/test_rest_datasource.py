"""
REST Data Source Unit Tests

Tests for gateway request shaping, counts, rpc fallbacks and error mapping.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.core.exceptions import DataSourceError
from app.schemas.analytics import Granularity
from conftest import utc


BASE_URL = "https://project.example.co/rest/v1"


def make_source():
    from app.datasource.rest import RestDataSource

    return RestDataSource(BASE_URL, "service-key")


class TestParseContentRange:
    """Tests for Content-Range parsing."""

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("0-24/3573", 3573),
            ("*/0", 0),
            ("*/*", 0),
            (None, 0),
            ("", 0),
        ],
    )
    def test_parse(self, header, expected):
        """Verify totals are extracted and unknowns read as 0."""
        from app.datasource.rest import parse_content_range

        assert parse_content_range(header) == expected


class TestRestRequests:
    """Tests for request construction."""

    @pytest.mark.asyncio
    async def test_count_uses_head_and_exact_count(self, mock_httpx_response):
        """Verify counts are HEAD requests read from Content-Range."""
        mock_request = AsyncMock(
            return_value=mock_httpx_response(headers={"content-range": "*/42"})
        )

        with patch("app.datasource.rest.request_with_retry", mock_request):
            total = await make_source().count_published_courses()

        assert total == 42
        method, url = mock_request.call_args.args
        kwargs = mock_request.call_args.kwargs
        assert method == "HEAD"
        assert url == f"{BASE_URL}/courses"
        assert kwargs["params"]["is_published"] == "eq.true"
        assert kwargs["headers"]["Prefer"] == "count=exact"
        assert kwargs["headers"]["apikey"] == "service-key"
        assert kwargs["headers"]["Authorization"] == "Bearer service-key"

    @pytest.mark.asyncio
    async def test_search_uses_ilike(self, mock_httpx_response):
        """Verify name search filters with a wildcard ilike."""
        rows = [{"id": 7, "full_name": "Ada", "role": "admin", "created_at": None, "updated_at": None}]
        mock_request = AsyncMock(return_value=mock_httpx_response(json_data=rows))

        with patch("app.datasource.rest.request_with_retry", mock_request):
            profiles = await make_source().search_profiles("ada", 10)

        params = mock_request.call_args.kwargs["params"]
        assert params["full_name"] == "ilike.*ada*"
        assert params["limit"] == 10
        assert profiles[0].id == "7"
        assert profiles[0].role == "admin"

    @pytest.mark.asyncio
    async def test_new_user_series_rpc(self, mock_httpx_response):
        """Verify the series function is called with the truncation level."""
        rows = [{"period_start": "2024-03-11T00:00:00+00:00", "new_users_count": 3}]
        mock_request = AsyncMock(return_value=mock_httpx_response(json_data=rows))

        with patch("app.datasource.rest.request_with_retry", mock_request):
            series = await make_source().fetch_new_user_series(Granularity.WEEK)

        method, url = mock_request.call_args.args
        assert method == "POST"
        assert url == f"{BASE_URL}/rpc/get_new_users_over_time"
        assert mock_request.call_args.kwargs["json"] == {"trunc_level": "week"}
        assert series[0].period_start == utc(2024, 3, 11)
        assert series[0].count == 3


class TestRestErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_missing_function_returns_none(self, mock_httpx_response):
        """Verify a rejected rpc call means the function is unavailable."""
        mock_request = AsyncMock(
            return_value=mock_httpx_response(status_code=404, text="function not found")
        )

        with patch("app.datasource.rest.request_with_retry", mock_request):
            result = await make_source().fetch_completion_rates()

        assert result is None

    @pytest.mark.asyncio
    async def test_rejected_select_raises(self, mock_httpx_response):
        """Verify non-2xx table reads raise DataSourceError with the status."""
        mock_request = AsyncMock(
            return_value=mock_httpx_response(status_code=401, text="bad key")
        )

        with patch("app.datasource.rest.request_with_retry", mock_request):
            with pytest.raises(DataSourceError) as exc_info:
                await make_source().list_banners()

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        """Verify connection failures raise DataSourceError, even for rpc."""
        mock_request = AsyncMock(side_effect=httpx.ConnectError("unreachable"))

        with patch("app.datasource.rest.request_with_retry", mock_request):
            with pytest.raises(DataSourceError) as exc_info:
                await make_source().fetch_new_user_series(Granularity.DAY)

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_delete_reports_missing_row(self, mock_httpx_response):
        """Verify deleting nothing returns False."""
        mock_request = AsyncMock(return_value=mock_httpx_response(json_data=[]))

        with patch("app.datasource.rest.request_with_retry", mock_request):
            deleted = await make_source().delete_banner("missing")

        assert deleted is False
        assert mock_request.call_args.kwargs["headers"]["Prefer"] == "return=representation"


class TestSearchEscaping:
    """Tests for literal matching of LIKE wildcards in search terms."""

    @pytest.mark.parametrize(
        "term,expected",
        [
            ("ada", "ada"),
            ("a_b", "a\\_b"),
            ("100%", "100\\%"),
            ("back\\slash", "back\\\\slash"),
        ],
    )
    def test_escape_like(self, term, expected):
        """Verify wildcards and the escape character are escaped."""
        from app.datasource.base import escape_like

        assert escape_like(term) == expected

    @pytest.mark.asyncio
    async def test_search_escapes_wildcards(self, mock_httpx_response):
        """Verify an underscore in the term is sent escaped."""
        mock_request = AsyncMock(return_value=mock_httpx_response(json_data=[]))

        with patch("app.datasource.rest.request_with_retry", mock_request):
            await make_source().search_profiles("a_b", 10)

        assert mock_request.call_args.kwargs["params"]["full_name"] == "ilike.*a\\_b*"
