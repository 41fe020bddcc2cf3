"""
Shared fixtures.

The app runs against an in-memory SQLite database (one shared
connection via StaticPool) and a recording media service; both are
swapped in through app.dependency_overrides.
"""

import os

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_ENV"] = "test"
os.environ["CLOUDINARY_CLOUD_NAME"] = ""
os.environ["CLOUDINARY_API_KEY"] = ""
os.environ["CLOUDINARY_API_SECRET"] = ""

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from create_admin import create_admin  # noqa: E402
from devsnippet.db.session import get_db  # noqa: E402
from devsnippet.models import Base  # noqa: E402
from devsnippet.services.media_service import (  # noqa: E402
    MediaService,
    MediaServiceError,
    get_media_service,
)
from main import app as fastapi_app  # noqa: E402
from utils import API  # noqa: E402


class RecordingMediaService(MediaService):
    """Mock-mode media service that records destroy calls and can be told to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.destroyed: list[tuple[str, str]] = []
        self.fail = False

    async def destroy(self, public_id: str, resource_type: str = "image") -> None:
        self.destroyed.append((public_id, resource_type))
        if self.fail:
            raise MediaServiceError("media host unavailable")


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def media():
    return RecordingMediaService()


@pytest.fixture
def app(session_factory, media):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_media_service] = lambda: media
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def register(client):
    """Register through the API; returns (token, user). Cookies are dropped so
    each request authenticates only with the header it is given."""

    async def _register(username: str, email: str | None = None, password: str = "secret1"):
        response = await client.post(
            f"{API}/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@x.com",
                "password": password,
            },
        )
        client.cookies.clear()
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["user"]

    return _register


@pytest.fixture
async def admin(client, session_factory):
    """An admin account created the way create_admin.py does; returns (token, user)."""
    async with session_factory() as session:
        await create_admin(session, "root@x.com", "rootpass1", "root")
        await session.commit()

    response = await client.post(
        f"{API}/auth/login", json={"email": "root@x.com", "password": "rootpass1"}
    )
    client.cookies.clear()
    assert response.status_code == 200, response.text
    body = response.json()
    return body["token"], body["user"]
