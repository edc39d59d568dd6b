"""
Security Unit Tests

Tests for access token verification and role checks.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from jose import jwt


SECRET = "test-secret"


def make_token(secret: str = SECRET, audience: str = "authenticated", expires_in: int = 3600) -> str:
    payload = {
        "sub": "user-1",
        "aud": audience,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


class TestDecodeAccessToken:
    """Tests for token verification."""

    def test_valid_token(self):
        """Verify a correctly signed token decodes."""
        with patch("app.core.security.settings.SUPABASE_JWT_SECRET", SECRET):
            from app.core.security import decode_access_token

            payload = decode_access_token(make_token())

        assert payload["sub"] == "user-1"

    def test_wrong_secret(self):
        """Verify a token signed elsewhere is rejected."""
        with patch("app.core.security.settings.SUPABASE_JWT_SECRET", SECRET):
            from app.core.security import decode_access_token

            assert decode_access_token(make_token(secret="other")) is None

    def test_expired_token(self):
        """Verify expired tokens are rejected."""
        with patch("app.core.security.settings.SUPABASE_JWT_SECRET", SECRET):
            from app.core.security import decode_access_token

            assert decode_access_token(make_token(expires_in=-60)) is None

    def test_wrong_audience(self):
        """Verify tokens for another audience are rejected."""
        with patch("app.core.security.settings.SUPABASE_JWT_SECRET", SECRET):
            from app.core.security import decode_access_token

            assert decode_access_token(make_token(audience="anon")) is None

    def test_no_secret_configured(self):
        """Verify nothing decodes without a configured secret."""
        with patch("app.core.security.settings.SUPABASE_JWT_SECRET", ""):
            from app.core.security import decode_access_token

            assert decode_access_token(make_token()) is None


class TestBackofficeAccess:
    """Tests for role checks."""

    def test_roles(self):
        """Verify only staff roles get in."""
        from app.core.security import has_backoffice_access

        assert has_backoffice_access("admin")
        assert has_backoffice_access("team")
        assert has_backoffice_access("instructor")
        assert not has_backoffice_access("student")
        assert not has_backoffice_access(None)
