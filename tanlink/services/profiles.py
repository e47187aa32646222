"""Profile service: implicit creation, attribute updates and themes."""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.config import get_settings
from tanlink.core.errors import ConflictError, NotFoundError, ValidationError
from tanlink.core.redis import invalidate_snapshot_cache
from tanlink.models.profile import Profile
from tanlink.schemas.profile import MAX_BIO_LENGTH, ProfileResponse, ProfileUpdate
from tanlink.schemas.theme import ThemePreset

logger = structlog.get_logger()


async def get_profile(session: AsyncSession, profile_id: UUID) -> Profile:
    """Get a profile by its identity.

    Raises:
        NotFoundError: no profile exists for the identity
    """
    profile = await session.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


async def get_profile_by_email(session: AsyncSession, email: str) -> Profile | None:
    result = await session.execute(select(Profile).where(Profile.email == email))
    return result.scalar_one_or_none()


async def get_profile_by_provider(
    session: AsyncSession,
    provider: str,
    provider_id: str,
) -> Profile | None:
    """Get a profile by its OAuth provider and provider ID."""
    result = await session.execute(
        select(Profile).where(
            Profile.provider == provider,
            Profile.provider_id == provider_id,
        )
    )
    return result.scalar_one_or_none()


async def get_or_create_from_oauth(
    session: AsyncSession,
    provider: str,
    provider_id: str,
    email: str | None,
    display_name: str | None = None,
    photo_url: str | None = None,
) -> tuple[Profile, bool]:
    """Get the profile for an identity, creating it on first sign-in.

    On later sign-ins the provider's name and photo only fill fields the
    owner has left empty.

    Returns:
        Tuple of (profile, created)

    Raises:
        ConflictError: the email is already bound to another identity
    """
    profile = await get_profile_by_provider(session, provider, provider_id)
    if profile:
        changed = False
        if not profile.display_name and display_name:
            profile.display_name = display_name
            changed = True
        if not profile.photo_url and photo_url:
            profile.photo_url = photo_url
            changed = True
        if changed:
            await session.flush()
            await session.refresh(profile)
        return profile, False

    if email:
        existing = await get_profile_by_email(session, email)
        if existing:
            # Account linking across providers is not supported
            raise ConflictError(f"Email {email} is already registered with {existing.provider}")

    profile = Profile(
        email=email,
        display_name=(display_name or "").strip(),
        photo_url=photo_url,
        provider=provider,
        provider_id=provider_id,
    )
    session.add(profile)
    await session.flush()
    await session.refresh(profile)

    logger.info("Profile created", profile_id=str(profile.id), provider=provider)
    return profile, True


async def update_profile(
    session: AsyncSession,
    profile: Profile,
    profile_data: ProfileUpdate,
) -> Profile:
    """Update owner-editable attributes. Text fields are trimmed.

    Raises:
        ValidationError: the trimmed bio is longer than 150 characters
    """
    update_data = profile_data.model_dump(exclude_unset=True)

    if "display_name" in update_data:
        profile.display_name = (update_data["display_name"] or "").strip()
    if "bio" in update_data:
        bio = (update_data["bio"] or "").strip()
        if len(bio) > MAX_BIO_LENGTH:
            raise ValidationError(f"Bio must be at most {MAX_BIO_LENGTH} characters")
        profile.bio = bio
    if "photo_url" in update_data:
        profile.photo_url = (update_data["photo_url"] or "").strip() or None
        if profile.photo_url is None:
            profile.photo_public_id = None
    if "photo_public_id" in update_data and profile.photo_url:
        profile.photo_public_id = update_data["photo_public_id"]

    await session.flush()
    await session.refresh(profile)

    await invalidate_snapshot_cache(profile.handle)
    return profile


async def set_theme(
    session: AsyncSession,
    profile: Profile,
    theme: ThemePreset | None,
) -> Profile:
    """Save a theme preset, or clear it with None."""
    profile.theme = theme.model_dump(mode="json", exclude_none=True) if theme else None
    await session.flush()
    await session.refresh(profile)

    await invalidate_snapshot_cache(profile.handle)
    logger.info(
        "Theme updated",
        profile_id=str(profile.id),
        theme_id=theme.id if theme else None,
    )
    return profile


def share_url(profile: Profile) -> str | None:
    """Public URL of a profile, once it has a handle."""
    if not profile.handle:
        return None
    return f"{get_settings().public_base_url.rstrip('/')}/{profile.handle}"


def to_response(profile: Profile) -> ProfileResponse:
    response = ProfileResponse.model_validate(profile)
    response.share_url = share_url(profile)
    return response
