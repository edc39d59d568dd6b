"""
Banner Service Unit Tests

Tests for banner validation, activity windows and CRUD error mapping.
"""

import pytest
from fastapi import HTTPException

from app.schemas.banner import Banner, BannerCreate
from conftest import utc


class TestValidateBanner:
    """Tests for banner field validation."""

    def test_valid_banner(self, sample_banner_data):
        """Verify a complete banner has no errors."""
        from app.services.banner_service import validate_banner

        assert validate_banner(sample_banner_data) == []

    def test_missing_key_and_text(self):
        """Verify required fields are reported."""
        from app.services.banner_service import validate_banner

        errors = validate_banner(BannerCreate(banner_key="  ", text=""))

        assert errors == ["Banner key is required", "Banner text is required"]

    def test_invalid_link(self, sample_banner_data):
        """Verify malformed URLs are rejected."""
        from app.services.banner_service import validate_banner

        data = sample_banner_data.model_copy(update={"link_url": "not a url"})

        assert validate_banner(data) == ["Invalid link URL format"]

    def test_dates_out_of_order(self, sample_banner_data):
        """Verify start after end is rejected."""
        from app.services.banner_service import validate_banner

        data = sample_banner_data.model_copy(
            update={"start_date": utc(2024, 5, 1), "end_date": utc(2024, 4, 1)}
        )

        assert validate_banner(data) == ["Start date must be before end date"]


class TestIsBannerActive:
    """Tests for the display window check."""

    def _banner(self, **overrides) -> Banner:
        fields = {"id": "b1", "banner_key": "home", "text": "Hello", "is_active": True}
        fields.update(overrides)
        return Banner(**fields)

    def test_switched_off(self):
        """Verify inactive banners never show."""
        assert not self._is_active(self._banner(is_active=False))

    def test_no_dates(self):
        """Verify undated active banners always show."""
        assert self._is_active(self._banner())

    def test_before_start(self):
        """Verify future banners do not show yet."""
        assert not self._is_active(self._banner(start_date=utc(2024, 4, 1)))

    def test_after_end(self):
        """Verify expired banners do not show."""
        assert not self._is_active(self._banner(end_date=utc(2024, 3, 1)))

    def test_within_window(self):
        """Verify banners inside their window show."""
        assert self._is_active(
            self._banner(start_date=utc(2024, 3, 1), end_date=utc(2024, 4, 1))
        )

    @staticmethod
    def _is_active(banner: Banner) -> bool:
        from app.services.banner_service import is_banner_active

        return is_banner_active(banner, now=utc(2024, 3, 15))


class TestBannerCrud:
    """Tests for banner create, update, toggle and delete."""

    @pytest.mark.asyncio
    async def test_create(self, fake_source, sample_banner_data):
        """Verify a valid banner is stored with its creator."""
        from app.services.banner_service import create_banner

        banner = await create_banner(fake_source, sample_banner_data, "admin-1", now=utc(2024, 3, 15))

        assert banner.created_by == "admin-1"
        assert banner.created_at == utc(2024, 3, 15)
        assert fake_source.banners == [banner]

    @pytest.mark.asyncio
    async def test_create_invalid_raises_400(self, fake_source):
        """Verify validation errors raise 400 without writing."""
        from app.services.banner_service import create_banner

        with pytest.raises(HTTPException) as exc_info:
            await create_banner(fake_source, BannerCreate(), "admin-1")

        assert exc_info.value.status_code == 400
        assert "Banner key is required" in exc_info.value.detail
        assert "insert_banner" not in fake_source.calls

    @pytest.mark.asyncio
    async def test_create_failure_raises_502(self, fake_source, sample_banner_data):
        """Verify a failing insert raises 502."""
        from app.services.banner_service import create_banner

        fake_source.failures.add("insert_banner")

        with pytest.raises(HTTPException) as exc_info:
            await create_banner(fake_source, sample_banner_data, "admin-1")

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_update(self, fake_source, sample_banner_data):
        """Verify fields are replaced and updated_at stamped."""
        from app.services.banner_service import create_banner, update_banner

        created = await create_banner(fake_source, sample_banner_data, "admin-1", now=utc(2024, 3, 1))
        changes = sample_banner_data.model_copy(update={"text": "Updated"})

        updated = await update_banner(fake_source, created.id, changes, now=utc(2024, 3, 2))

        assert updated.text == "Updated"
        assert updated.updated_at == utc(2024, 3, 2)
        assert updated.created_at == utc(2024, 3, 1)

    @pytest.mark.asyncio
    async def test_update_missing_raises_404(self, fake_source, sample_banner_data):
        """Verify updating an unknown banner raises 404."""
        from app.services.banner_service import update_banner

        with pytest.raises(HTTPException) as exc_info:
            await update_banner(fake_source, "missing", sample_banner_data)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_toggle_status(self, fake_source, sample_banner_data):
        """Verify a banner can be switched off."""
        from app.services.banner_service import create_banner, set_banner_status

        created = await create_banner(fake_source, sample_banner_data, None)

        toggled = await set_banner_status(fake_source, created.id, False)

        assert toggled.is_active is False

    @pytest.mark.asyncio
    async def test_delete(self, fake_source, sample_banner_data):
        """Verify deletion and 404 on a second delete."""
        from app.services.banner_service import create_banner, delete_banner

        created = await create_banner(fake_source, sample_banner_data, None)

        await delete_banner(fake_source, created.id)
        assert fake_source.banners == []

        with pytest.raises(HTTPException) as exc_info:
            await delete_banner(fake_source, created.id)
        assert exc_info.value.status_code == 404


class TestBannerReads:
    """Tests for banner lookups."""

    @pytest.mark.asyncio
    async def test_list_error_returns_empty(self, fake_source):
        """Verify a failing list degrades to an empty list."""
        from app.services.banner_service import list_banners

        fake_source.failures.add("list_banners")

        assert await list_banners(fake_source) == []

    @pytest.mark.asyncio
    async def test_active_banner(self, fake_source, sample_banner_data):
        """Verify the active lookup honours the display window."""
        from app.services.banner_service import create_banner, get_active_banner

        await create_banner(fake_source, sample_banner_data, None)

        banner = await get_active_banner(fake_source, "homepage", now=utc(2024, 3, 15))
        assert banner.banner_key == "homepage"

        with pytest.raises(HTTPException) as exc_info:
            await get_active_banner(fake_source, "homepage", now=utc(2024, 5, 1))
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_key_raises_404(self, fake_source):
        """Verify an unused key raises 404."""
        from app.services.banner_service import get_banner_by_key

        with pytest.raises(HTTPException) as exc_info:
            await get_banner_by_key(fake_source, "nowhere")

        assert exc_info.value.status_code == 404
