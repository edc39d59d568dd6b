"""
API Dependencies

Reusable dependencies for API routes: the request's data source and the
back-office access guard.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.core.config import settings
from app.core.exceptions import DataSourceError
from app.core.security import decode_access_token, has_backoffice_access
from app.datasource import DataSource, open_data_source
from app.schemas.user import UserProfile


# Tokens are issued by the hosted identity service's password grant
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/token?grant_type=password",
)


async def get_data_source() -> AsyncGenerator[DataSource, None]:
    """
    Dependency that provides the configured data source.
    
    Yields:
        DataSource: REST or SQL implementation, per DATA_SOURCE.
    """
    async with open_data_source() as source:
        yield source


async def get_current_staff(
    token: Annotated[str, Depends(oauth2_scheme)],
    source: Annotated[DataSource, Depends(get_data_source)],
) -> UserProfile:
    """
    Dependency to get the authenticated back-office user.
    
    This dependency:
    1. Extracts the bearer token from the Authorization header
    2. Verifies it against the identity service's signing secret
    3. Loads the caller's profile
    4. Requires an admin, team or instructor role
    
    Args:
        token: Bearer token from Authorization header (auto-extracted).
        source: Data source (auto-injected).
        
    Returns:
        UserProfile: The caller's profile.
        
    Raises:
        HTTPException: 401 if the token is invalid or the profile is missing.
        HTTPException: 403 if the role has no back-office access.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id: str | None = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    try:
        profile = await source.get_profile(user_id)
    except DataSourceError:
        raise credentials_exception

    if profile is None:
        raise credentials_exception

    if not has_backoffice_access(profile.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin, team, or instructor role required.",
        )

    return profile
