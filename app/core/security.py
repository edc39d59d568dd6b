"""
Security Utilities

Verification of access tokens issued by the hosted identity service.
Tokens are never minted here.
"""

from jose import JWTError, jwt

from app.core.config import settings
from app.models.enums import UserRole


# Profile roles allowed into the back office
BACKOFFICE_ROLES = frozenset({UserRole.ADMIN.value, UserRole.TEAM.value, UserRole.INSTRUCTOR.value})


def decode_access_token(token: str) -> dict | None:
    """
    Decode and validate an access token from the identity service.
    
    Checks signature, expiry and audience.
    
    Args:
        token: JWT token string to decode.
        
    Returns:
        dict: Decoded token payload if valid, None otherwise.
    """
    if not settings.SUPABASE_JWT_SECRET:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
        return payload
    except JWTError:
        return None


def has_backoffice_access(role: str | None) -> bool:
    """Check whether a profile role may use the back office."""
    return role in BACKOFFICE_ROLES
