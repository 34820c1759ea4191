"""
Global test fixtures and configuration.

This module provides base fixtures for all tests:
- In-memory SQLite database, fresh per test
- Document store over the test session
- Redis client (in-memory fake)
- Recording mail dispatcher
- HTTP client with dependency overrides
- Base data fixtures (users, admin, auth headers)
"""

import os
from typing import AsyncGenerator, List, Optional, Tuple

import pytest
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables BEFORE importing the app
os.environ["MODE"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-studyhub"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_EMAILS"] = "admin@test.com"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["REDIS_URL"] = "redis://localhost:6379/0"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ.pop("SENTRY_DSN", None)

from studyhub.main import app  # noqa: E402
from studyhub.api.dependencies import get_db, get_mailer, get_redis  # noqa: E402
from studyhub.core.config import settings  # noqa: E402
from studyhub.core.permissions import AccessControl  # noqa: E402
from studyhub.core.security import build_session_issuer  # noqa: E402
from studyhub.db.base import Base, load_models  # noqa: E402
from studyhub.db.store import DocumentStore  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ==================== Database ====================

@pytest.fixture
async def test_engine():
    """
    Create an in-memory database with every table.

    StaticPool keeps a single connection so all sessions see the same data.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False  # Set to True for SQL debugging
    )
    load_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session: AsyncSession) -> DocumentStore:
    return DocumentStore(db_session)


# ==================== Redis ====================

@pytest.fixture
async def redis_client() -> AsyncGenerator[FakeAsyncRedis, None]:
    """
    Create fake Redis client (in-memory) for each test.
    """
    redis = FakeAsyncRedis()
    yield redis
    await redis.flushall()
    await redis.aclose()


# ==================== Mail ====================

class RecordingMailer:
    """Stands in for MailDispatcher and keeps what would have been sent."""

    def __init__(self):
        self.reset_codes: List[Tuple[str, str]] = []
        self.welcomes: List[Tuple[str, str]] = []

    def send_password_reset_code(self, email: str, code: str) -> None:
        self.reset_codes.append((email, code))

    def send_welcome(self, email: str, username: str) -> None:
        self.welcomes.append((email, username))

    async def wait_idle(self) -> None:
        return None

    def last_code_for(self, email: str) -> Optional[str]:
        for recipient, code in reversed(self.reset_codes):
            if recipient == email:
                return code
        return None


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


# ==================== FastAPI Client ====================

@pytest.fixture
async def client(
    db_session: AsyncSession,
    redis_client: FakeAsyncRedis,
    mailer: RecordingMailer
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create HTTP client for testing FastAPI endpoints.

    Overrides get_db, get_redis and get_mailer to use test fixtures.
    """

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        yield redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_mailer] = lambda: mailer

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ==================== Security ====================

@pytest.fixture
def issuer():
    return build_session_issuer()


@pytest.fixture
def access(issuer) -> AccessControl:
    return AccessControl(issuer, settings.admin_emails)


def bearer(issuer, user) -> dict:
    return {"Authorization": f"Bearer {issuer.issue(user.id, user.email)}"}


# ==================== Base Data Fixtures ====================

@pytest.fixture
async def user(db_session: AsyncSession):
    from tests.factories import UserFactory
    user = await UserFactory.create_async(db_session, email="alice@example.com", username="alice")
    await db_session.commit()
    return user


@pytest.fixture
async def other_user(db_session: AsyncSession):
    from tests.factories import UserFactory
    user = await UserFactory.create_async(db_session, email="bob@example.com", username="bob")
    await db_session.commit()
    return user


@pytest.fixture
async def admin_user(db_session: AsyncSession):
    """
    Create admin user; admin@test.com is on the ADMIN_EMAILS allow-list.
    """
    from tests.factories import UserFactory
    user = await UserFactory.create_async(db_session, email="admin@test.com", username="Admin User")
    await db_session.commit()
    return user


@pytest.fixture
def auth_headers(issuer, user):
    return bearer(issuer, user)


@pytest.fixture
def other_auth_headers(issuer, other_user):
    return bearer(issuer, other_user)


@pytest.fixture
def admin_auth_headers(issuer, admin_user):
    return bearer(issuer, admin_user)


@pytest.fixture
def identity_of():
    """Build the Identity a verified token for ``user`` would carry."""
    from studyhub.core.security import Identity

    def build(user):
        return Identity(user_id=user.id, email=user.email)

    return build
