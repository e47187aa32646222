"""Link store: ordered CRUD for a profile's links.

Every successful mutation leaves the profile's link orders at exactly
{0..N-1}. Functions flush but never commit; the request session commits
so that renumbering writes land in one transaction.
"""

from collections.abc import Sequence
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.errors import NotFoundError, OrderIntegrityError, ValidationError
from tanlink.core.observability import record_order_repair
from tanlink.core.redis import invalidate_snapshot_cache
from tanlink.models.link import Link
from tanlink.models.profile import Profile
from tanlink.schemas.link import LinkCreate, LinkUpdate, Platform
from tanlink.services.url_normalizer import normalize_url

logger = structlog.get_logger()


async def _invalidate_profile(session: AsyncSession, profile_id: UUID) -> None:
    """Drop the cached public snapshot of a profile."""
    result = await session.execute(select(Profile.handle).where(Profile.id == profile_id))
    await invalidate_snapshot_cache(result.scalar_one_or_none())


async def count_links(session: AsyncSession, profile_id: UUID) -> int:
    result = await session.execute(
        select(func.count(Link.id)).where(Link.profile_id == profile_id)
    )
    return result.scalar() or 0


async def list_links(session: AsyncSession, profile_id: UUID) -> list[Link]:
    """Get a profile's links in display order."""
    result = await session.execute(
        select(Link)
        .where(Link.profile_id == profile_id)
        .order_by(Link.order, Link.created_at, Link.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_link(session: AsyncSession, profile_id: UUID, link_id: UUID) -> Link:
    """Get one of a profile's links.

    Raises:
        NotFoundError: the link does not exist or belongs to another profile
    """
    result = await session.execute(
        select(Link).where(Link.id == link_id, Link.profile_id == profile_id)
    )
    link = result.scalar_one_or_none()
    if link is None:
        raise NotFoundError("Link not found")
    return link


def verify_order(links: Sequence[Link]) -> None:
    """Check that link orders are exactly {0..N-1}.

    Raises:
        OrderIntegrityError: orders have gaps or duplicates
    """
    orders = sorted(link.order for link in links)
    if orders != list(range(len(links))):
        raise OrderIntegrityError(f"Link orders are not contiguous: {orders}")


def _renumber(links: Sequence[Link]) -> None:
    for index, link in enumerate(links):
        if link.order != index:
            link.order = index


async def repair_order(session: AsyncSession, profile_id: UUID) -> list[Link]:
    """Rewrite orders as {0..N-1}, keeping the current sort sequence."""
    links = await list_links(session, profile_id)
    _renumber(links)
    await session.flush()
    record_order_repair()
    logger.warning("Link order repaired", profile_id=str(profile_id), count=len(links))
    await _invalidate_profile(session, profile_id)
    return links


async def ensure_order(session: AsyncSession, profile_id: UUID) -> list[Link]:
    """List links, repairing their orders first if they have drifted."""
    links = await list_links(session, profile_id)
    try:
        verify_order(links)
    except OrderIntegrityError as e:
        logger.error(
            "Link order integrity violated",
            profile_id=str(profile_id),
            error=e.message,
        )
        return await repair_order(session, profile_id)
    return links


async def add_link(
    session: AsyncSession,
    profile_id: UUID,
    link_data: LinkCreate,
) -> Link:
    """Append a link at the end of the profile's list.

    Raises:
        ValidationError: the URL is empty after trimming
    """
    url = normalize_url(link_data.platform, link_data.url)
    link = Link(
        profile_id=profile_id,
        platform=link_data.platform.value,
        title=(link_data.title or "").strip(),
        url=url,
        order=await count_links(session, profile_id),
    )
    session.add(link)
    await session.flush()
    await session.refresh(link)

    await _invalidate_profile(session, profile_id)
    return link


async def update_link(
    session: AsyncSession,
    profile_id: UUID,
    link_id: UUID,
    link_data: LinkUpdate,
) -> Link:
    """Edit a link's platform, title or URL. Order is never changed.

    Changing only the platform re-normalizes the stored URL for the new
    platform.
    """
    link = await get_link(session, profile_id, link_id)
    update_data = link_data.model_dump(exclude_unset=True)

    platform = update_data.get("platform") or Platform(link.platform)
    if "url" in update_data and update_data["url"] is not None:
        link.url = normalize_url(platform, update_data["url"])
    elif "platform" in update_data and update_data["platform"] is not None:
        link.url = normalize_url(platform, link.url)
    link.platform = platform.value

    if "title" in update_data:
        link.title = (update_data["title"] or "").strip()

    await session.flush()
    await session.refresh(link)

    await _invalidate_profile(session, profile_id)
    return link


async def delete_link(session: AsyncSession, profile_id: UUID, link_id: UUID) -> None:
    """Delete a link and close the gap it leaves in the order."""
    link = await get_link(session, profile_id, link_id)
    await session.delete(link)
    await session.flush()

    survivors = await list_links(session, profile_id)
    _renumber(survivors)
    await session.flush()

    await _invalidate_profile(session, profile_id)


async def reorder(
    session: AsyncSession,
    profile_id: UUID,
    link_ids: Sequence[UUID],
) -> list[Link]:
    """Set each link's order to its index in `link_ids`.

    Raises:
        ValidationError: `link_ids` is not a permutation of the profile's links
    """
    links = await list_links(session, profile_id)
    by_id = {link.id: link for link in links}

    if len(link_ids) != len(by_id) or set(link_ids) != set(by_id):
        raise ValidationError("Reorder must list every link of the profile exactly once")

    ordered = [by_id[link_id] for link_id in link_ids]
    _renumber(ordered)
    await session.flush()

    await _invalidate_profile(session, profile_id)
    return ordered


async def move_adjacent(
    session: AsyncSession,
    profile_id: UUID,
    link_id: UUID,
    direction: str,
) -> list[Link]:
    """Swap a link with its neighbour. Moving past either end is a no-op."""
    links = await list_links(session, profile_id)
    ids = [link.id for link in links]
    if link_id not in ids:
        raise NotFoundError("Link not found")

    index = ids.index(link_id)
    target = index - 1 if direction == "up" else index + 1
    if target < 0 or target >= len(ids):
        return links

    ids[index], ids[target] = ids[target], ids[index]
    return await reorder(session, profile_id, ids)
