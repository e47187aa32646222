"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.database import get_async_session
from tanlink.core.security import decode_access_token
from tanlink.models.profile import Profile

# Cookie name for auth token
AUTH_COOKIE_NAME = "tanlink_token"


async def get_token_from_cookie(
    tanlink_token: Annotated[str | None, Cookie()] = None,
) -> str | None:
    """Extract auth token from httpOnly cookie."""
    return tanlink_token


async def get_current_profile_optional(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    token: Annotated[str | None, Depends(get_token_from_cookie)],
) -> Profile | None:
    """Get the signed-in profile if there is one, otherwise None.

    Use this for routes that work with or without authentication.
    """
    if token is None:
        return None

    token_data = decode_access_token(token)
    if token_data is None:
        return None

    return await session.get(Profile, token_data.profile_id)


async def get_current_profile(
    profile: Annotated[Profile | None, Depends(get_current_profile_optional)],
) -> Profile:
    """Get the signed-in profile.

    Raises HTTPException 401 if not authenticated.
    """
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return profile


# Type aliases for dependency injection
CurrentProfile = Annotated[Profile, Depends(get_current_profile)]
CurrentProfileOptional = Annotated[Profile | None, Depends(get_current_profile_optional)]
