"""Owner profile endpoints: attributes, theme and handle."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.database import get_async_session
from tanlink.core.deps import CurrentProfile
from tanlink.core.errors import ValidationError
from tanlink.core.rate_limit import RATE_LIMIT_API, RATE_LIMIT_HANDLE_CLAIM, limiter
from tanlink.schemas.profile import HandleAvailability, HandleClaim, ProfileResponse, ProfileUpdate
from tanlink.schemas.theme import ThemePreset
from tanlink.services import handle_service, profile_service

logger = structlog.get_logger()

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_profile(request: Request, profile: CurrentProfile) -> ProfileResponse:
    """Get the caller's profile, including its share URL."""
    return profile_service.to_response(profile)


@router.patch("", response_model=ProfileResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_profile(
    request: Request,
    profile_data: ProfileUpdate,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ProfileResponse:
    """Update display name, bio or photo reference."""
    updated = await profile_service.update_profile(session, profile, profile_data)
    await session.commit()
    logger.info("Profile updated", profile_id=str(profile.id))
    return profile_service.to_response(updated)


@router.put("/theme", response_model=ProfileResponse)
@limiter.limit(RATE_LIMIT_API)
async def set_theme(
    request: Request,
    theme: ThemePreset,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ProfileResponse:
    """Save a theme preset for the public page."""
    updated = await profile_service.set_theme(session, profile, theme)
    await session.commit()
    return profile_service.to_response(updated)


@router.delete("/theme", response_model=ProfileResponse)
@limiter.limit(RATE_LIMIT_API)
async def clear_theme(
    request: Request,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ProfileResponse:
    """Clear the theme so the page falls back to default rendering."""
    updated = await profile_service.set_theme(session, profile, None)
    await session.commit()
    return profile_service.to_response(updated)


@router.get("/handle", response_model=HandleAvailability)
@limiter.limit(RATE_LIMIT_API)
async def check_handle(
    request: Request,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    handle: Annotated[str, Query(max_length=64)],
) -> HandleAvailability:
    """Check whether a handle is well-formed and free for the caller."""
    try:
        normalized = handle_service.validate_format(handle)
    except ValidationError as e:
        return HandleAvailability(
            handle=handle_service.normalize_handle(handle),
            valid=False,
            available=False,
            reason=e.message,
        )

    available = await handle_service.is_available(session, normalized, profile.handle)
    return HandleAvailability(
        handle=normalized,
        valid=True,
        available=available,
        reason=None if available else "Handle is already taken",
    )


@router.put("/handle", response_model=ProfileResponse)
@limiter.limit(RATE_LIMIT_HANDLE_CLAIM)
async def claim_handle(
    request: Request,
    claim: HandleClaim,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ProfileResponse:
    """Claim a handle, releasing the caller's previous one."""
    updated = await handle_service.claim(session, profile.id, claim.handle)
    await session.commit()
    return profile_service.to_response(updated)
