"""Shared fixtures: in-memory SQLite database, temp upload dir, ASGI client."""
import os
import tempfile
from uuid import uuid4

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="socialsphere-uploads-")
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["AVATAR_MAX_MB"] = "1"
os.environ["DB_CREATE_ALL"] = "false"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from socialsphere.db.base import Base  # noqa: E402
from socialsphere.db.session import async_session_maker, engine  # noqa: E402
from socialsphere.main import app  # noqa: E402


def make_user_payload(prefix: str) -> dict[str, str]:
    suffix = uuid4().hex[:8]
    return {
        "name": f"{prefix.title()} Tester",
        "username": f"{prefix}_{suffix}",
        "email": f"{prefix}_{suffix}@example.com",
        "password": "Sup3rSecret!",
    }


async def register(client: AsyncClient, prefix: str) -> dict:
    """Register a fresh user. Returns the payload plus ``token``, ``user`` and ``headers``."""
    payload = make_user_payload(prefix)
    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    body = response.json()
    return {
        **payload,
        "token": body["token"],
        "user": body["user"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest_asyncio.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Drop the pooled connection so the next test starts on its own event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def async_client(database):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def db_session(database):
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def upload_dir() -> str:
    return os.environ["UPLOAD_DIR"]
