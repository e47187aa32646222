import asyncio
import uuid
from datetime import date, datetime

import pytest
from sqlalchemy import select

from tanlink.core.errors import NotFoundError
from tanlink.models import ClickStat, StatBucket, ViewStat
from tanlink.services import analytics_service, link_service


class TestRecordView:
    @pytest.mark.asyncio
    async def test_totals_and_buckets(self, session, make_profile):
        profile = await make_profile(handle="viewed")
        moment = datetime(2024, 1, 15, 10, 30)

        for _ in range(3):
            await analytics_service.record_view(session, profile.id, "viewed", moment=moment)
        await session.commit()

        stat = await session.get(ViewStat, profile.id)
        assert stat.total_views == 3
        assert stat.last_viewed_at == moment
        assert stat.last_visitor_handle == "viewed"

        result = await session.execute(
            select(StatBucket.period, StatBucket.bucket, StatBucket.count).where(
                StatBucket.subject_id == profile.id
            )
        )
        assert sorted(result.all()) == [("day", "2024-01-15", 3), ("month", "2024-01", 3)]


class TestRecordClick:
    @pytest.mark.asyncio
    async def test_defaults_platform_and_url_from_link(self, session, make_profile, add_links):
        profile = await make_profile()
        (link,) = await add_links(profile, "site")

        await analytics_service.record_click(session, profile.id, link.id)
        await session.commit()

        stat = await session.get(ClickStat, link.id)
        assert stat.total_clicks == 1
        assert stat.platform == "website"
        assert stat.url == "https://site.example.com"

    @pytest.mark.asyncio
    async def test_foreign_link_not_found(self, session, make_profile, add_links):
        owner = await make_profile()
        other = await make_profile()
        (link,) = await add_links(owner, "site")

        with pytest.raises(NotFoundError):
            await analytics_service.record_click(session, other.id, link.id)

    @pytest.mark.asyncio
    async def test_concurrent_clicks_are_not_lost(self, session, session_factory, make_profile, add_links):
        profile = await make_profile()
        (link,) = await add_links(profile, "popular")

        await asyncio.gather(
            *[
                analytics_service.record_click_in_background(session_factory, profile.id, link.id)
                for _ in range(10)
            ]
        )

        async with session_factory() as fresh:
            stat = await fresh.get(ClickStat, link.id)
            assert stat.total_clicks == 10


class TestBackgroundRecording:
    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, session_factory):
        # Unknown link: the recorder logs and drops the click instead of raising
        await analytics_service.record_click_in_background(
            session_factory, uuid.uuid4(), uuid.uuid4()
        )

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(self, session_factory, make_profile, monkeypatch):
        profile = await make_profile()
        calls = {"count": 0}
        original = analytics_service.record_view

        async def flaky_record_view(*args, **kwargs):
            calls["count"] += 1
            if calls["count"] == 1:
                from sqlalchemy.exc import OperationalError

                raise OperationalError("INSERT", {}, Exception("database is locked"))
            await original(*args, **kwargs)

        monkeypatch.setattr(analytics_service, "record_view", flaky_record_view)
        await analytics_service.record_view_in_background(session_factory, profile.id)

        assert calls["count"] == 2
        async with session_factory() as fresh:
            stat = await fresh.get(ViewStat, profile.id)
            assert stat.total_views == 1


class TestComputeStats:
    @pytest.mark.asyncio
    async def test_no_views_means_zero_ctr(self, session, make_profile, add_links):
        profile = await make_profile()
        await add_links(profile, "a")

        stats = await analytics_service.compute_stats(session, profile.id)
        assert stats.total_views == 0
        assert stats.total_clicks == 0
        assert stats.ctr == 0.0
        assert stats.active_links == 1
        assert stats.links[0].progress == 0.0

    @pytest.mark.asyncio
    async def test_ranking_progress_and_ctr(self, session, make_profile, add_links):
        profile = await make_profile()
        a, b, c = await add_links(profile, "a", "b", "c")

        for _ in range(4):
            await analytics_service.record_view(session, profile.id)
        for link, clicks in ((a, 1), (b, 2), (c, 2)):
            for _ in range(clicks):
                await analytics_service.record_click(session, profile.id, link.id)
        await session.commit()

        stats = await analytics_service.compute_stats(session, profile.id)

        assert stats.total_views == 4
        assert stats.total_clicks == 5
        assert stats.ctr == pytest.approx(1.25)
        # Ties on clicks keep the display order
        assert [item.link_id for item in stats.links] == [b.id, c.id, a.id]
        assert [item.progress for item in stats.links] == [100.0, 100.0, 50.0]

    @pytest.mark.asyncio
    async def test_deleted_links_drop_out_of_totals(self, session, make_profile, add_links):
        profile = await make_profile()
        a, b = await add_links(profile, "a", "b")
        await analytics_service.record_click(session, profile.id, a.id)
        await analytics_service.record_click(session, profile.id, b.id)
        await session.commit()

        await link_service.delete_link(session, profile.id, a.id)
        await session.commit()

        stats = await analytics_service.compute_stats(session, profile.id)
        assert stats.total_clicks == 1
        assert [item.link_id for item in stats.links] == [b.id]


class TestDailySeries:
    @pytest.mark.asyncio
    async def test_zero_filled_days(self, session, make_profile, add_links):
        profile = await make_profile()
        (link,) = await add_links(profile, "a")

        await analytics_service.record_view(session, profile.id, moment=datetime(2024, 3, 2, 9))
        await analytics_service.record_click(
            session, profile.id, link.id, moment=datetime(2024, 3, 2, 9, 5)
        )
        await analytics_service.record_view(session, profile.id, moment=datetime(2024, 3, 4, 18))
        await session.commit()

        series = await analytics_service.daily_series(
            session, profile.id, days=4, today=date(2024, 3, 4)
        )

        assert series.start_date == date(2024, 3, 1)
        assert [(p.day.day, p.views, p.clicks) for p in series.data] == [
            (1, 0, 0),
            (2, 1, 1),
            (3, 0, 0),
            (4, 1, 0),
        ]
