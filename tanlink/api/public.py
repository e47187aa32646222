"""Public profile pages and click tracking."""

import asyncio
from collections.abc import Coroutine
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tanlink.core.database import get_async_session, get_session_factory
from tanlink.core.errors import NotFoundError
from tanlink.core.rate_limit import RATE_LIMIT_PUBLIC_CLICK, RATE_LIMIT_PUBLIC_VIEW, limiter
from tanlink.schemas.profile import ClickResponse, ProfileSnapshot
from tanlink.services import analytics_service, snapshot_service

logger = structlog.get_logger()

router = APIRouter(tags=["public"])

# Strong references to in-flight analytics tasks
_background_tasks: set[asyncio.Task] = set()


def fire_and_forget(coro: Coroutine[Any, Any, None]) -> None:
    """Run analytics recording without holding up the response."""
    task = asyncio.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


async def drain_background_tasks() -> None:
    """Wait for in-flight analytics tasks, e.g. on shutdown."""
    if _background_tasks:
        await asyncio.gather(*_background_tasks, return_exceptions=True)


@router.get("/{handle}", response_model=ProfileSnapshot)
@limiter.limit(RATE_LIMIT_PUBLIC_VIEW)
async def view_profile(
    request: Request,
    handle: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> ProfileSnapshot:
    """Resolve a handle to the profile and its ordered links.

    The view is counted in the background.
    """
    snapshot = await snapshot_service.resolve(session, handle)

    fire_and_forget(
        analytics_service.record_view_in_background(
            session_factory,
            snapshot.profile_id,
            visitor_handle=snapshot.profile.handle,
        )
    )

    logger.info("Profile viewed", handle=snapshot.profile.handle)
    return snapshot


@router.post("/{handle}/links/{link_id}/click", response_model=ClickResponse)
@limiter.limit(RATE_LIMIT_PUBLIC_CLICK)
async def click_link(
    request: Request,
    handle: str,
    link_id: UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> ClickResponse:
    """Return the link's target URL and count the click in the background."""
    snapshot = await snapshot_service.resolve(session, handle)

    link = next((item for item in snapshot.links if item.id == link_id), None)
    if link is None:
        logger.info("Click on unknown link", handle=snapshot.profile.handle, link_id=str(link_id))
        raise NotFoundError("Link not found")

    fire_and_forget(
        analytics_service.record_click_in_background(
            session_factory,
            snapshot.profile_id,
            link_id,
        )
    )

    return ClickResponse(url=link.url)
