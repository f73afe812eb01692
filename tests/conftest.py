"""Shared test fixtures."""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

# Settings are cached on first use, so the test environment goes in before any import
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="skillforge_test_"))
os.environ["SKILLFORGE_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT / 'default.db'}"
os.environ["SKILLFORGE_UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["SKILLFORGE_JWT_SECRET"] = "test-secret-not-for-production-use-0123456789"
os.environ["SKILLFORGE_ACTIVITY_RETRY_BACKOFF_SECONDS"] = "0"
os.environ["SKILLFORGE_STORAGE_RETRY_BACKOFF_SECONDS"] = "0"
os.environ["SKILLFORGE_LOG_FORMAT"] = "console"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

import skillforge.db.models  # noqa: E402, F401
from skillforge.auth.jwt import create_access_token  # noqa: E402
from skillforge.config import get_settings  # noqa: E402
from skillforge.database import close_db, get_engine, get_session_factory, init_db  # noqa: E402
from skillforge.db.base import Base  # noqa: E402
from skillforge.db.models import User  # noqa: E402
from skillforge.dependencies import get_redis_dep  # noqa: E402
from skillforge.photos.storage import PhotoStorage, get_photo_storage  # noqa: E402

get_settings.cache_clear()
get_photo_storage.cache_clear()

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000001e221bc330000000049454e44ae426082"
)
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def jpeg_bytes() -> bytes:
    return JPEG_BYTES


@pytest_asyncio.fixture
async def db_session(tmp_path: Path) -> AsyncGenerator[AsyncSession, None]:
    """A session on a fresh SQLite database with the full schema."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'skillforge.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session_factory()() as session:
        yield session

    await close_db()


async def make_user(db: AsyncSession, username: str) -> User:
    user = User(username=username, email=f"{username}@example.com")
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "alice")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "bob")


@pytest.fixture
def storage(tmp_path: Path) -> PhotoStorage:
    """Photo storage rooted in the test's temp directory."""
    return PhotoStorage(tmp_path / "photos", write_timeout_seconds=5.0)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, sharing the test database. Redis is absent."""
    from skillforge.main import create_app

    app = create_app()
    app.dependency_overrides[get_redis_dep] = lambda: None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.username)}"}


@pytest.fixture
def other_auth_headers(other_user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_user.id, other_user.username)}"}
