import uuid

import pytest

from tanlink.core.errors import NotFoundError, OrderIntegrityError, ValidationError
from tanlink.schemas.link import LinkCreate, LinkUpdate, Platform
from tanlink.services import link_service


def orders(links):
    return sorted(link.order for link in links)


class TestAddLink:
    @pytest.mark.asyncio
    async def test_appends_with_contiguous_orders(self, session, make_profile, add_links):
        profile = await make_profile()
        links = await add_links(profile, "a", "b", "c")

        assert [link.order for link in links] == [0, 1, 2]
        assert orders(await link_service.list_links(session, profile.id)) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_url_is_normalized(self, session, make_profile):
        profile = await make_profile()
        link = await link_service.add_link(
            session,
            profile.id,
            LinkCreate(platform=Platform.INSTAGRAM, url="@john"),
        )
        assert link.url == "https://instagram.com/john"
        assert link.title == ""

    @pytest.mark.asyncio
    async def test_blank_url_rejected(self, session, make_profile):
        profile = await make_profile()
        with pytest.raises(ValidationError):
            await link_service.add_link(
                session,
                profile.id,
                LinkCreate(platform=Platform.WEBSITE, url="   "),
            )
        assert await link_service.count_links(session, profile.id) == 0

    @pytest.mark.asyncio
    async def test_orders_are_per_profile(self, session, make_profile, add_links):
        first = await make_profile()
        second = await make_profile()
        await add_links(first, "a", "b")
        links = await add_links(second, "c")
        assert links[0].order == 0


class TestUpdateLink:
    @pytest.mark.asyncio
    async def test_update_keeps_order(self, session, make_profile, add_links):
        profile = await make_profile()
        links = await add_links(profile, "a", "b")

        updated = await link_service.update_link(
            session,
            profile.id,
            links[1].id,
            LinkUpdate(title="Renamed", url="http://renamed.example.com"),
        )
        assert updated.order == 1
        assert updated.title == "Renamed"
        assert updated.url == "http://renamed.example.com"

    @pytest.mark.asyncio
    async def test_platform_change_renormalizes_url(self, session, make_profile):
        profile = await make_profile()
        link = await link_service.add_link(
            session,
            profile.id,
            LinkCreate(platform=Platform.WEBSITE, url="http://github.com/octocat"),
        )
        updated = await link_service.update_link(
            session,
            profile.id,
            link.id,
            LinkUpdate(platform=Platform.GITHUB),
        )
        assert updated.platform == "github"
        assert updated.url == "https://github.com/octocat"

    @pytest.mark.asyncio
    async def test_foreign_link_not_found(self, session, make_profile, add_links):
        owner = await make_profile()
        other = await make_profile()
        links = await add_links(owner, "a")

        with pytest.raises(NotFoundError):
            await link_service.update_link(session, other.id, links[0].id, LinkUpdate(title="x"))


class TestDeleteLink:
    @pytest.mark.asyncio
    async def test_survivors_renumbered(self, session, make_profile, add_links):
        profile = await make_profile()
        a, b, c, d = await add_links(profile, "a", "b", "c", "d")

        await link_service.delete_link(session, profile.id, b.id)
        await session.commit()

        remaining = await link_service.list_links(session, profile.id)
        assert [link.id for link in remaining] == [a.id, c.id, d.id]
        assert [link.order for link in remaining] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_delete_missing_link(self, session, make_profile):
        profile = await make_profile()
        with pytest.raises(NotFoundError):
            await link_service.delete_link(session, profile.id, uuid.uuid4())


class TestReorder:
    @pytest.mark.asyncio
    async def test_order_follows_sequence(self, session, make_profile, add_links):
        profile = await make_profile()
        a, b, c = await add_links(profile, "a", "b", "c")

        await link_service.reorder(session, profile.id, [c.id, a.id, b.id])
        await session.commit()

        listed = await link_service.list_links(session, profile.id)
        assert [link.id for link in listed] == [c.id, a.id, b.id]
        assert [link.order for link in listed] == [0, 1, 2]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mutation", ["missing", "extra", "duplicate"])
    async def test_mismatched_set_rejected(self, session, make_profile, add_links, mutation):
        profile = await make_profile()
        a, b, c = await add_links(profile, "a", "b", "c")

        ids = {
            "missing": [a.id, b.id],
            "extra": [a.id, b.id, c.id, uuid.uuid4()],
            "duplicate": [a.id, b.id, b.id],
        }[mutation]

        with pytest.raises(ValidationError):
            await link_service.reorder(session, profile.id, ids)

        listed = await link_service.list_links(session, profile.id)
        assert [link.id for link in listed] == [a.id, b.id, c.id]


class TestMoveAdjacent:
    @pytest.mark.asyncio
    async def test_move_down_swaps_neighbours(self, session, make_profile, add_links):
        profile = await make_profile()
        a, b, c = await add_links(profile, "a", "b", "c")

        result = await link_service.move_adjacent(session, profile.id, a.id, "down")
        assert [link.id for link in result] == [b.id, a.id, c.id]

    @pytest.mark.asyncio
    async def test_moves_past_the_ends_are_noops(self, session, make_profile, add_links):
        profile = await make_profile()
        a, b, c = await add_links(profile, "a", "b", "c")

        up = await link_service.move_adjacent(session, profile.id, a.id, "up")
        down = await link_service.move_adjacent(session, profile.id, c.id, "down")

        assert [link.id for link in up] == [a.id, b.id, c.id]
        assert [link.id for link in down] == [a.id, b.id, c.id]


class TestOrderIntegrity:
    @pytest.mark.asyncio
    async def test_verify_detects_gaps_and_duplicates(self, session, make_profile, add_links):
        profile = await make_profile()
        links = await add_links(profile, "a", "b", "c")
        link_service.verify_order(links)

        links[2].order = 5
        with pytest.raises(OrderIntegrityError):
            link_service.verify_order(links)

        links[2].order = 1
        with pytest.raises(OrderIntegrityError):
            link_service.verify_order(links)

    @pytest.mark.asyncio
    async def test_ensure_order_repairs(self, session, make_profile, add_links):
        profile = await make_profile()
        a, b, c = await add_links(profile, "a", "b", "c")
        a.order, b.order, c.order = 3, 7, 12
        await session.commit()

        repaired = await link_service.ensure_order(session, profile.id)
        await session.commit()

        assert [link.id for link in repaired] == [a.id, b.id, c.id]
        assert [link.order for link in repaired] == [0, 1, 2]
