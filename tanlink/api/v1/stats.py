"""Owner analytics endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.database import get_async_session
from tanlink.core.deps import CurrentProfile
from tanlink.core.rate_limit import RATE_LIMIT_API, limiter
from tanlink.schemas.analytics import DailySeries, ProfileStats
from tanlink.services import analytics_service

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=ProfileStats)
@limiter.limit(RATE_LIMIT_API)
async def get_stats(
    request: Request,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ProfileStats:
    """Views, clicks, CTR and per-link ranking for the caller's profile."""
    return await analytics_service.compute_stats(session, profile.id)


@router.get("/daily", response_model=DailySeries)
@limiter.limit(RATE_LIMIT_API)
async def get_daily_stats(
    request: Request,
    profile: CurrentProfile,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    days: Annotated[int, Query(ge=1, le=365)] = 30,
) -> DailySeries:
    """Per-day views and clicks, oldest first."""
    return await analytics_service.daily_series(session, profile.id, days=days)
