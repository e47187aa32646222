"""Username registry: handle validation, availability and claims."""

import re
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.errors import ConflictError, NotFoundError, ValidationError
from tanlink.core.observability import record_handle_claim
from tanlink.core.redis import invalidate_snapshot_cache
from tanlink.models.handle import HandleReservation
from tanlink.models.profile import Profile

logger = structlog.get_logger()

HANDLE_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")

# Handles that would shadow application routes
RESERVED_HANDLES = frozenset(
    {
        "admin",
        "api",
        "auth",
        "dashboard",
        "docs",
        "health",
        "links",
        "login",
        "logout",
        "metrics",
        "onboarding",
        "openapi",
        "profile",
        "redoc",
        "settings",
        "static",
        "stats",
    }
)


def normalize_handle(handle: str) -> str:
    """Canonical (stored) form of a handle."""
    return handle.strip().lower()


def validate_format(handle: str) -> str:
    """Validate a handle and return its canonical form.

    Raises:
        ValidationError: if the handle is not 3-20 letters, digits or
            underscores, or is reserved
    """
    candidate = handle.strip()
    if not HANDLE_PATTERN.match(candidate):
        raise ValidationError(
            "Handle must be 3-20 characters and contain only letters, digits and underscores"
        )
    normalized = candidate.lower()
    if normalized in RESERVED_HANDLES:
        raise ValidationError(f"Handle '{normalized}' is reserved")
    return normalized


async def get_reservation(
    session: AsyncSession,
    handle: str,
) -> HandleReservation | None:
    """Look up the reservation for a handle, case-insensitively."""
    result = await session.execute(
        select(HandleReservation).where(HandleReservation.handle == normalize_handle(handle))
    )
    return result.scalar_one_or_none()


async def is_available(
    session: AsyncSession,
    handle: str,
    current_handle: str | None = None,
) -> bool:
    """Check whether a handle can be claimed.

    The caller's own current handle counts as available.
    """
    normalized = normalize_handle(handle)
    if current_handle and normalize_handle(current_handle) == normalized:
        return True
    return await get_reservation(session, normalized) is None


async def claim(
    session: AsyncSession,
    profile_id: UUID,
    handle: str,
) -> Profile:
    """Claim a handle for a profile, releasing its previous one.

    Release, reservation and the profile update are flushed together and
    committed by the caller as one transaction. Claiming the handle the
    profile already holds is a no-op.

    Raises:
        ValidationError: malformed or reserved handle
        ConflictError: the handle belongs to another profile
        NotFoundError: the profile does not exist
    """
    normalized = validate_format(handle)

    profile = await session.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")

    if profile.handle == normalized:
        record_handle_claim("unchanged")
        return profile

    existing = await get_reservation(session, normalized)
    if existing is not None and existing.profile_id != profile_id:
        record_handle_claim("conflict")
        raise ConflictError(f"Handle '{normalized}' is already taken")

    old_handle = profile.handle
    if old_handle:
        await session.execute(
            delete(HandleReservation).where(
                HandleReservation.handle == old_handle,
                HandleReservation.profile_id == profile_id,
            )
        )

    if existing is None:
        session.add(HandleReservation(handle=normalized, profile_id=profile_id))
    profile.handle = normalized

    try:
        await session.flush()
    except IntegrityError as e:
        # Another profile reserved the handle after our availability check
        record_handle_claim("conflict")
        raise ConflictError(f"Handle '{normalized}' is already taken") from e

    await session.refresh(profile)

    if old_handle:
        await invalidate_snapshot_cache(old_handle)

    logger.info(
        "Handle claimed",
        profile_id=str(profile_id),
        handle=normalized,
        previous_handle=old_handle,
    )
    record_handle_claim("claimed")
    return profile
