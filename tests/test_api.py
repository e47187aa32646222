import uuid

import pytest

from tanlink.api.public import drain_background_tasks


class TestAuth:
    @pytest.mark.asyncio
    async def test_owner_routes_require_auth(self, client):
        resp = await client.get("/api/v1/profile")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_status_signed_out(self, client):
        resp = await client.get("/api/v1/auth/status")
        assert resp.json() == {"authenticated": False, "profile": None}

    @pytest.mark.asyncio
    async def test_unconfigured_provider(self, client):
        resp = await client.get("/api/v1/auth/github", follow_redirects=False)
        assert resp.status_code == 503


class TestProfileRoutes:
    @pytest.mark.asyncio
    async def test_update_trims_and_limits_bio(self, client, make_profile, login):
        login(await make_profile())

        resp = await client.patch("/api/v1/profile", json={"display_name": "  Jane  ", "bio": " hi "})
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Jane"
        assert resp.json()["bio"] == "hi"

        resp = await client.patch("/api/v1/profile", json={"bio": "x" * 151})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_handle_availability_and_claim(self, client, make_profile, login):
        await make_profile(handle="taken")
        login(await make_profile())

        resp = await client.get("/api/v1/profile/handle", params={"handle": "Taken"})
        assert resp.json()["available"] is False

        resp = await client.get("/api/v1/profile/handle", params={"handle": "x!"})
        assert resp.json()["valid"] is False

        resp = await client.put("/api/v1/profile/handle", json={"handle": "taken"})
        assert resp.status_code == 409

        resp = await client.put("/api/v1/profile/handle", json={"handle": "Fresh_One"})
        assert resp.status_code == 200
        assert resp.json()["handle"] == "fresh_one"
        assert resp.json()["share_url"].endswith("/fresh_one")

    @pytest.mark.asyncio
    async def test_theme_set_and_clear(self, client, make_profile, login, sample_theme):
        login(await make_profile())

        resp = await client.put("/api/v1/profile/theme", json={**sample_theme, "custom": 1})
        assert resp.status_code == 200
        assert resp.json()["theme"]["id"] == "midnight"
        assert resp.json()["theme"]["custom"] == 1

        resp = await client.delete("/api/v1/profile/theme")
        assert resp.json()["theme"] is None


class TestLinkRoutes:
    @pytest.mark.asyncio
    async def test_crud_keeps_orders_contiguous(self, client, make_profile, login):
        login(await make_profile())

        ids = []
        for name in ("a", "b", "c"):
            resp = await client.post(
                "/api/v1/links",
                json={"platform": "website", "title": name, "url": f"{name}.example.com"},
            )
            assert resp.status_code == 201
            ids.append(resp.json()["id"])

        resp = await client.delete(f"/api/v1/links/{ids[0]}")
        assert resp.status_code == 204

        resp = await client.get("/api/v1/links")
        items = resp.json()["items"]
        assert [item["id"] for item in items] == ids[1:]
        assert [item["order"] for item in items] == [0, 1]

    @pytest.mark.asyncio
    async def test_reorder_mismatch_is_400(self, client, make_profile, login):
        login(await make_profile())
        resp = await client.post(
            "/api/v1/links", json={"platform": "github", "url": "octocat"}
        )
        link_id = resp.json()["id"]

        resp = await client.put("/api/v1/links/order", json={"link_ids": [link_id, link_id]})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_link_is_404(self, client, make_profile, login):
        login(await make_profile())
        resp = await client.patch(f"/api/v1/links/{uuid.uuid4()}", json={"title": "x"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_move(self, client, make_profile, login):
        login(await make_profile())
        ids = []
        for name in ("a", "b"):
            resp = await client.post(
                "/api/v1/links", json={"platform": "website", "url": f"{name}.example.com"}
            )
            ids.append(resp.json()["id"])

        resp = await client.post(f"/api/v1/links/{ids[1]}/move", json={"direction": "up"})
        assert [item["id"] for item in resp.json()["items"]] == [ids[1], ids[0]]

        resp = await client.post(f"/api/v1/links/{ids[1]}/move", json={"direction": "up"})
        assert [item["id"] for item in resp.json()["items"]] == [ids[1], ids[0]]


class TestOnboardingRoutes:
    @pytest.mark.asyncio
    async def test_signed_out_starts_at_register(self, client):
        resp = await client.get("/api/v1/onboarding")
        assert resp.json()["current_step"] == "register"
        assert resp.json()["redirect_to"] is None

    @pytest.mark.asyncio
    async def test_cannot_skip_ahead(self, client, make_profile, login):
        login(await make_profile())

        resp = await client.get("/api/v1/onboarding")
        assert resp.json()["current_step"] == "username"

        resp = await client.post("/api/v1/onboarding/jump/theme")
        assert resp.json()["moved"] is False
        assert resp.json()["current_step"] == "username"

        resp = await client.post("/api/v1/onboarding/previous")
        assert resp.json()["current_step"] == "register"

        resp = await client.post("/api/v1/onboarding/jump/username")
        assert resp.json()["moved"] is True

    @pytest.mark.asyncio
    async def test_finished_profile_redirected(self, client, make_profile, add_links, login, sample_theme):
        profile = await make_profile(handle="done")
        await add_links(profile, "a")
        login(profile)
        await client.put("/api/v1/profile/theme", json=sample_theme)

        resp = await client.get("/api/v1/onboarding")
        body = resp.json()
        assert body["current_step"] == "preview"
        assert body["finished"] is True
        assert body["redirect_to"] == "/dashboard/stats"

    @pytest.mark.asyncio
    async def test_advancing_into_preview_redirects_once_setup_is_stored(
        self, client, make_profile, add_links, login, sample_theme
    ):
        profile = await make_profile(handle="almost")
        await add_links(profile, "a")
        login(profile)

        resp = await client.get("/api/v1/onboarding")
        assert resp.json()["current_step"] == "theme"

        await client.put("/api/v1/profile/theme", json=sample_theme)

        resp = await client.post("/api/v1/onboarding/next")
        body = resp.json()
        assert body["moved"] is True
        assert body["current_step"] == "preview"
        assert body["redirect_to"] == "/dashboard/stats"

    @pytest.mark.asyncio
    async def test_preview_without_stored_theme_stays_in_flow(
        self, client, make_profile, add_links, login
    ):
        profile = await make_profile(handle="skipper")
        await add_links(profile, "a")
        login(profile)

        await client.get("/api/v1/onboarding")
        await client.post("/api/v1/onboarding/complete/theme")

        resp = await client.post("/api/v1/onboarding/jump/preview")
        body = resp.json()
        assert body["moved"] is True
        assert body["current_step"] == "preview"
        assert body["redirect_to"] is None


class TestPublicRoutes:
    @pytest.mark.asyncio
    async def test_unknown_handle_is_404(self, client):
        resp = await client.get("/nobody")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_click_on_foreign_link_is_404(self, client, make_profile, add_links):
        await make_profile(handle="owner")
        other = await make_profile(handle="other")
        (link,) = await add_links(other, "a")

        resp = await client.post(f"/owner/links/{link.id}/click")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_health_and_metrics_not_shadowed(self, client):
        assert (await client.get("/api/v1/health")).json() == {"status": "healthy"}
        assert (await client.get("/metrics")).status_code == 200


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_setup_share_visit_and_stats(self, client, make_profile, login, sample_theme):
        owner = await make_profile()
        login(owner)

        resp = await client.put("/api/v1/profile/handle", json={"handle": "JohnDoe"})
        assert resp.json()["handle"] == "johndoe"

        resp = await client.post("/api/v1/links", json={"platform": "instagram", "url": "@john"})
        instagram = resp.json()
        assert instagram["url"] == "https://instagram.com/john"
        assert instagram["order"] == 0

        resp = await client.post(
            "/api/v1/links", json={"platform": "whatsapp", "url": "+1 555 123 4567"}
        )
        whatsapp = resp.json()
        assert whatsapp["url"] == "https://wa.me/15551234567"
        assert whatsapp["order"] == 1

        await client.put("/api/v1/profile/theme", json=sample_theme)

        # A signed-out visitor opens the page and clicks WhatsApp
        client.cookies.clear()
        resp = await client.get("/johndoe")
        assert resp.status_code == 200
        page = resp.json()
        assert page["profile"]["handle"] == "johndoe"
        assert [link["order"] for link in page["links"]] == [0, 1]

        resp = await client.post(f"/johndoe/links/{whatsapp['id']}/click")
        assert resp.json() == {"url": "https://wa.me/15551234567"}
        await drain_background_tasks()

        login(owner)
        stats = (await client.get("/api/v1/stats")).json()
        assert stats["total_views"] == 1
        assert stats["total_clicks"] == 1
        assert stats["ctr"] == pytest.approx(1.0)
        assert stats["links"][0]["link_id"] == whatsapp["id"]
        assert stats["links"][0]["progress"] == 100.0
        assert stats["links"][1]["progress"] == 0.0

        daily = (await client.get("/api/v1/stats/daily", params={"days": 7})).json()
        assert len(daily["data"]) == 7
        assert daily["data"][-1]["views"] == 1
        assert daily["data"][-1]["clicks"] == 1

        resp = await client.get("/api/v1/onboarding")
        assert resp.json()["redirect_to"] == "/dashboard/stats"
