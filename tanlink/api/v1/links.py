"""Link CRUD and ordering endpoints."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.database import get_async_session
from tanlink.core.deps import CurrentProfile
from tanlink.core.observability import record_link_operation
from tanlink.core.rate_limit import RATE_LIMIT_API, limiter
from tanlink.models.link import Link
from tanlink.schemas.link import (
    LinkCreate,
    LinkListResponse,
    LinkMove,
    LinkReorder,
    LinkResponse,
    LinkUpdate,
)
from tanlink.services import link_service

logger = structlog.get_logger()

router = APIRouter(prefix="/links", tags=["links"])


def _list_response(links: list[Link]) -> LinkListResponse:
    return LinkListResponse(
        items=[LinkResponse.model_validate(link) for link in links],
        total=len(links),
    )


@router.get("", response_model=LinkListResponse)
@limiter.limit(RATE_LIMIT_API)
async def list_links(
    request: Request,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkListResponse:
    """List the caller's links in display order."""
    links = await link_service.ensure_order(session, profile.id)
    await session.commit()
    return _list_response(links)


@router.post("", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_API)
async def create_link(
    request: Request,
    link_data: LinkCreate,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkResponse:
    """Add a link at the end of the list.

    The URL may be a full URL, a bare handle, an email or a phone number
    depending on the platform; it is normalized before saving.
    """
    link = await link_service.add_link(session, profile.id, link_data)
    await session.commit()
    logger.info(
        "Link created",
        link_id=str(link.id),
        platform=link.platform,
        profile_id=str(profile.id),
    )
    record_link_operation("create")
    return LinkResponse.model_validate(link)


@router.put("/order", response_model=LinkListResponse)
@limiter.limit(RATE_LIMIT_API)
async def reorder_links(
    request: Request,
    reorder_data: LinkReorder,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkListResponse:
    """Replace the order of all links with the given id sequence."""
    links = await link_service.reorder(session, profile.id, reorder_data.link_ids)
    await session.commit()
    record_link_operation("reorder")
    return _list_response(links)


@router.patch("/{link_id}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_link(
    request: Request,
    link_id: UUID,
    link_data: LinkUpdate,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkResponse:
    """Edit a link's platform, title or URL."""
    link = await link_service.update_link(session, profile.id, link_id, link_data)
    await session.commit()
    logger.info("Link updated", link_id=str(link_id), profile_id=str(profile.id))
    record_link_operation("update")
    return LinkResponse.model_validate(link)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_API)
async def delete_link(
    request: Request,
    link_id: UUID,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> None:
    """Delete a link; the remaining links close the gap."""
    await link_service.delete_link(session, profile.id, link_id)
    await session.commit()
    logger.info("Link deleted", link_id=str(link_id), profile_id=str(profile.id))
    record_link_operation("delete")


@router.post("/{link_id}/move", response_model=LinkListResponse)
@limiter.limit(RATE_LIMIT_API)
async def move_link(
    request: Request,
    link_id: UUID,
    move: LinkMove,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> LinkListResponse:
    """Swap a link with its neighbour above or below."""
    links = await link_service.move_adjacent(session, profile.id, link_id, move.direction)
    await session.commit()
    record_link_operation("move")
    return _list_response(links)
