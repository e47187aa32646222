"""Analytics aggregator: view/click recording and derived statistics."""

from datetime import date, datetime, timedelta, timezone
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tanlink.core.errors import NotFoundError, translate_store_errors
from tanlink.core.observability import record_analytics_event, record_analytics_failure
from tanlink.core.retry import retry_on_transient_error
from tanlink.models.link import Link
from tanlink.models.stats import ClickStat, StatBucket, ViewStat
from tanlink.schemas.analytics import DailyPoint, DailySeries, LinkClickStats, ProfileStats
from tanlink.services.counters import AtomicCounterStore, day_key
from tanlink.services.links import list_links
from tanlink.services.url_normalizer import display_title

logger = structlog.get_logger()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the stats columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


async def record_view(
    session: AsyncSession,
    profile_id: UUID,
    visitor_handle: str | None = None,
    moment: datetime | None = None,
) -> None:
    """Count one profile view and remember it as the latest visit."""
    moment = moment or utcnow()
    await AtomicCounterStore(session).increment_views(profile_id, moment, visitor_handle)


async def record_click(
    session: AsyncSession,
    profile_id: UUID,
    link_id: UUID,
    platform: str | None = None,
    url: str | None = None,
    moment: datetime | None = None,
) -> None:
    """Count one click on a link.

    Platform and URL default to the link's current values.

    Raises:
        NotFoundError: the link does not belong to the profile
    """
    result = await session.execute(
        select(Link.platform, Link.url).where(
            Link.id == link_id,
            Link.profile_id == profile_id,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Link not found")

    moment = moment or utcnow()
    await AtomicCounterStore(session).increment_clicks(
        link_id,
        profile_id,
        moment,
        platform=platform or row.platform,
        url=url or row.url,
    )


@retry_on_transient_error()
async def _record_view_once(
    session_factory: async_sessionmaker[AsyncSession],
    profile_id: UUID,
    visitor_handle: str | None,
) -> None:
    async with session_factory() as session:
        with translate_store_errors("record_view"):
            await record_view(session, profile_id, visitor_handle)
            await session.commit()


@retry_on_transient_error()
async def _record_click_once(
    session_factory: async_sessionmaker[AsyncSession],
    profile_id: UUID,
    link_id: UUID,
) -> None:
    async with session_factory() as session:
        with translate_store_errors("record_click"):
            await record_click(session, profile_id, link_id)
            await session.commit()


async def record_view_in_background(
    session_factory: async_sessionmaker[AsyncSession],
    profile_id: UUID,
    visitor_handle: str | None = None,
) -> None:
    """Record a view from a detached task. Never raises."""
    try:
        await _record_view_once(session_factory, profile_id, visitor_handle)
        record_analytics_event("view")
    except Exception as e:
        # Analytics must never break the visitor's request
        logger.error(
            "Failed to record view",
            profile_id=str(profile_id),
            error=str(e),
        )
        record_analytics_failure("view")


async def record_click_in_background(
    session_factory: async_sessionmaker[AsyncSession],
    profile_id: UUID,
    link_id: UUID,
) -> None:
    """Record a click from a detached task. Never raises."""
    try:
        await _record_click_once(session_factory, profile_id, link_id)
        record_analytics_event("click")
    except Exception as e:
        logger.error(
            "Failed to record click",
            profile_id=str(profile_id),
            link_id=str(link_id),
            error=str(e),
        )
        record_analytics_failure("click")


async def compute_stats(session: AsyncSession, profile_id: UUID) -> ProfileStats:
    """Totals, CTR and per-link ranking for a profile.

    Only the profile's current links count towards the click total; stats
    of deleted links go with them.
    """
    view_stat = await session.get(ViewStat, profile_id)
    total_views = view_stat.total_views if view_stat else 0

    links = await list_links(session, profile_id)
    click_stats: dict[UUID, ClickStat] = {}
    if links:
        result = await session.execute(
            select(ClickStat).where(ClickStat.link_id.in_([link.id for link in links]))
        )
        click_stats = {stat.link_id: stat for stat in result.scalars().all()}

    clicks_by_link = {
        link.id: click_stats[link.id].total_clicks if link.id in click_stats else 0
        for link in links
    }
    total_clicks = sum(clicks_by_link.values())
    max_clicks = max(clicks_by_link.values(), default=0)

    ranked = sorted(links, key=lambda link: (-clicks_by_link[link.id], link.order))
    link_stats = []
    for link in ranked:
        clicks = clicks_by_link[link.id]
        stat = click_stats.get(link.id)
        link_stats.append(
            LinkClickStats(
                link_id=link.id,
                title=display_title(link.platform, link.title),
                platform=link.platform,
                url=link.url,
                order=link.order,
                clicks=clicks,
                progress=clicks / max_clicks * 100 if max_clicks > 0 else 0.0,
                last_clicked_at=stat.last_clicked_at if stat else None,
            )
        )

    return ProfileStats(
        total_views=total_views,
        total_clicks=total_clicks,
        active_links=len(links),
        ctr=total_clicks / total_views if total_views > 0 else 0.0,
        last_viewed_at=view_stat.last_viewed_at if view_stat else None,
        links=link_stats,
    )


async def daily_series(
    session: AsyncSession,
    profile_id: UUID,
    days: int = 30,
    today: date | None = None,
) -> DailySeries:
    """Views and clicks per day for the last `days` days, zero-filled."""
    end = today or utcnow().date()
    start = end - timedelta(days=days - 1)
    start_key, end_key = day_key(start), day_key(end)

    views: dict[str, int] = {}
    result = await session.execute(
        select(StatBucket.bucket, StatBucket.count).where(
            StatBucket.subject_type == "view",
            StatBucket.subject_id == profile_id,
            StatBucket.period == "day",
            StatBucket.bucket >= start_key,
            StatBucket.bucket <= end_key,
        )
    )
    for bucket, count in result.all():
        views[bucket] = count

    clicks: dict[str, int] = {}
    link_ids = [link.id for link in await list_links(session, profile_id)]
    if link_ids:
        result = await session.execute(
            select(StatBucket.bucket, StatBucket.count).where(
                StatBucket.subject_type == "click",
                StatBucket.subject_id.in_(link_ids),
                StatBucket.period == "day",
                StatBucket.bucket >= start_key,
                StatBucket.bucket <= end_key,
            )
        )
        for bucket, count in result.all():
            clicks[bucket] = clicks.get(bucket, 0) + count

    data = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        key = day_key(day)
        data.append(DailyPoint(day=day, views=views.get(key, 0), clicks=clicks.get(key, 0)))

    return DailySeries(start_date=start, end_date=end, data=data)
