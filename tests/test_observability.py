import pytest

from tanlink.core.errors import ConflictError, TransientStoreError
from tanlink.core.observability import drop_domain_errors, normalize_endpoint


class TestNormalizeEndpoint:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/johndoe", "/{handle}"),
            ("/johndoe/links/3f2a/click", "/{handle}/links/{id}/click"),
            ("/api/v1/links/3f2a", "/api/v1/links/{id}"),
            ("/api/v1/onboarding/next", "/api/v1/onboarding/{action}"),
            ("/api/v1/profile", "/api/v1/profile"),
            ("/metrics", "/metrics"),
        ],
    )
    def test_path_parameters_collapsed(self, path, expected):
        assert normalize_endpoint(path) == expected


class TestSentryFilter:
    def test_client_errors_dropped(self):
        error = ConflictError("taken")
        assert drop_domain_errors({"id": 1}, {"exc_info": (type(error), error, None)}) is None

    def test_server_errors_kept(self):
        error = TransientStoreError("down")
        event = {"id": 1}
        assert drop_domain_errors(event, {"exc_info": (type(error), error, None)}) is event

    def test_events_without_exception_kept(self):
        event = {"message": "hello"}
        assert drop_domain_errors(event, {}) is event


class TestRequestContext:
    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        resp = await client.get("/api/v1/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        resp = await client.get("/api/v1/health")
        assert len(resp.headers["X-Request-ID"]) == 32

    @pytest.mark.asyncio
    async def test_public_pages_share_one_metric_label(self, client):
        await client.get("/someone")
        body = (await client.get("/metrics")).text
        assert 'endpoint="/{handle}"' in body
        assert 'endpoint="/someone"' not in body
