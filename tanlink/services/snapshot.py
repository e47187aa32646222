"""Profile snapshot resolver: handle -> profile + ordered links."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.errors import NotFoundError, TransientStoreError, translate_store_errors
from tanlink.core.redis import cache_snapshot, get_cached_snapshot
from tanlink.core.retry import retry_on_transient_error
from tanlink.models.handle import HandleReservation
from tanlink.models.link import Link
from tanlink.models.profile import Profile
from tanlink.schemas.profile import PhotoRef, ProfileSnapshot, PublicLink, PublicProfile
from tanlink.services.handles import normalize_handle
from tanlink.services.url_normalizer import display_title

logger = structlog.get_logger()


async def _execute_read(session: AsyncSession, operation: str, stmt: Any) -> list[Any]:
    """Run a read, translating transport failures.

    The session is rolled back on failure so the next attempt starts from
    a clean transaction.
    """
    try:
        with translate_store_errors(operation):
            result = await session.execute(stmt)
            return list(result.scalars().all())
    except TransientStoreError:
        await session.rollback()
        raise


@retry_on_transient_error()
async def load_reservation(session: AsyncSession, handle: str) -> HandleReservation | None:
    rows = await _execute_read(
        session,
        "load_reservation",
        select(HandleReservation).where(HandleReservation.handle == handle),
    )
    return rows[0] if rows else None


@retry_on_transient_error()
async def load_profile(session: AsyncSession, profile_id: UUID) -> Profile | None:
    rows = await _execute_read(
        session,
        "load_profile",
        select(Profile).where(Profile.id == profile_id),
    )
    return rows[0] if rows else None


@retry_on_transient_error()
async def load_links(session: AsyncSession, profile_id: UUID) -> list[Link]:
    return await _execute_read(
        session,
        "load_links",
        select(Link)
        .where(Link.profile_id == profile_id)
        .order_by(Link.order, Link.created_at, Link.id),
    )


def build_snapshot(profile: Profile, links: list[Link]) -> ProfileSnapshot:
    """Assemble the public view of a profile."""
    photo = None
    if profile.photo_url:
        photo = PhotoRef(url=profile.photo_url, public_id=profile.photo_public_id)
    return ProfileSnapshot(
        profile_id=profile.id,
        profile=PublicProfile(
            handle=profile.handle or "",
            display_name=profile.display_name,
            bio=profile.bio,
            photo_ref=photo,
            theme=profile.theme,
        ),
        links=[
            PublicLink(
                id=link.id,
                platform=link.platform,
                title=display_title(link.platform, link.title),
                url=link.url,
                order=link.order,
            )
            for link in links
        ],
    )


async def resolve(session: AsyncSession, handle: str) -> ProfileSnapshot:
    """Resolve a public handle to its profile snapshot.

    Each store read is retried on transient failures; a missing handle,
    profile or reservation is reported immediately and never retried.

    Raises:
        NotFoundError: no profile is reachable through the handle
        TransientStoreError: the store stayed unavailable through all retries
    """
    normalized = normalize_handle(handle)

    cached = await get_cached_snapshot(normalized)
    if cached:
        return ProfileSnapshot.model_validate(cached)

    reservation = await load_reservation(session, normalized)
    if reservation is None:
        logger.info("Handle not found", handle=normalized)
        raise NotFoundError("Profile not found")

    profile = await load_profile(session, reservation.profile_id)
    if profile is None:
        logger.warning("Reservation without profile", handle=normalized)
        raise NotFoundError("Profile not found")

    links = await load_links(session, profile.id)
    snapshot = build_snapshot(profile, links)

    await cache_snapshot(normalized, snapshot.model_dump(mode="json"))
    return snapshot
