import os
import uuid

# Settings are read at import time, so configure the environment before
# anything from tanlink is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["STORE_RETRY_DELAY"] = "0"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tanlink.core.database import (
    create_engine_for,
    create_session_factory,
    get_async_session,
    get_session_factory,
    init_db,
)
from tanlink.core.deps import AUTH_COOKIE_NAME
from tanlink.core.security import create_cookie_token
from tanlink.main import app
from tanlink.models import Profile
from tanlink.schemas.link import LinkCreate, Platform
from tanlink.services import handle_service, link_service

SAMPLE_THEME = {
    "id": "midnight",
    "name": "Midnight",
    "backgroundColor": "#0f172a",
    "cardBackground": "rgba(255, 255, 255, 0.08)",
    "textColor": "#f8fafc",
    "buttonStyle": {
        "type": "glass",
        "style": {"borderRadius": "12px", "backdropFilter": "blur(8px)"},
    },
    "backgroundStyle": {"type": "gradient", "value": "linear-gradient(#0f172a, #1e293b)"},
}


@pytest.fixture
def sample_theme():
    return dict(SAMPLE_THEME)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite database file per test."""
    test_engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'tanlink.db'}")
    await init_db(bind=test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db_session:
        yield db_session


@pytest_asyncio.fixture
async def make_profile(session):
    """Create a committed profile, optionally with a handle."""

    async def _make(handle: str | None = None, display_name: str = "Test User") -> Profile:
        profile = Profile(
            provider="github",
            provider_id=str(uuid.uuid4()),
            email=f"{uuid.uuid4().hex[:8]}@example.com",
            display_name=display_name,
        )
        session.add(profile)
        await session.flush()
        if handle:
            await handle_service.claim(session, profile.id, handle)
        await session.commit()
        return profile

    return _make


@pytest_asyncio.fixture
async def add_links(session):
    """Append website links with the given titles to a profile."""

    async def _add(profile: Profile, *titles: str) -> list:
        links = []
        for title in titles:
            link = await link_service.add_link(
                session,
                profile.id,
                LinkCreate(platform=Platform.WEBSITE, title=title, url=f"{title}.example.com"),
            )
            links.append(link)
        await session.commit()
        return links

    return _add


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client wired to the per-test database."""

    async def override_session():
        async with session_factory() as db_session:
            try:
                yield db_session
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    # https so the secure session cookie round-trips
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Attach an auth cookie for a profile to the client."""

    def _login(profile: Profile) -> None:
        token, _ = create_cookie_token(profile.id, profile.email)
        client.cookies.set(AUTH_COOKIE_NAME, token)

    return _login
