import os

# Configure the app for tests before it is imported
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from social_api.main import app
from social_api.db.session import get_db
from social_api.models import Base
from social_api.schemas.user_schema import UserCreate, UserRole
from social_api.services.auth_service import AuthService
from social_api.services.rate_gate import RateGate, ActionKind
from social_api.services.redis_service import get_redis_service
from social_api.utils.rate_limit import get_rate_gate

# Test database URL - in-memory SQLite
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

class _FakeHandle:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

class FakeTimer:
    """Clock and scheduler in one; time only moves on ``advance``"""

    def __init__(self):
        self.now = 0.0
        self._pending = []

    def __call__(self):
        return self.now

    def call_later(self, delay, callback):
        handle = _FakeHandle(self.now + delay, callback)
        self._pending.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self._pending if not h.cancelled]

    def advance(self, seconds):
        self.now += seconds
        due = sorted(
            (h for h in self.pending if h.due <= self.now),
            key=lambda h: h.due
        )
        self._pending = [h for h in self.pending if h not in due]
        for handle in due:
            handle.callback()

@pytest.fixture
def fake_timer():
    return FakeTimer()

@pytest.fixture
def rate_gate(fake_timer):
    gate = RateGate(
        {ActionKind.POST: 90, ActionKind.COMMENT: 25},
        clock=fake_timer,
        scheduler=fake_timer,
    )
    yield gate
    gate.reset()

@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()

@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for driving services directly"""
    async with session_factory() as session:
        yield session

@pytest.fixture
async def test_client(session_factory, rate_gate) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database and gate"""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_gate] = lambda: rate_gate
    app.dependency_overrides[get_redis_service] = lambda: None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

@pytest.fixture
def make_user(test_db):
    """Factory creating users straight through the auth service"""
    counter = {"n": 0}

    async def _make_user(username=None, role=UserRole.USER, password="Password123!"):
        counter["n"] += 1
        username = username or f"member{counter['n']:03d}"
        return await AuthService(test_db).create_user(UserCreate(
            username=username,
            email=f"{username}@example.com",
            password=password,
            role=role,
        ))

    return _make_user

@pytest.fixture
def auth_headers(test_db):
    def _auth_headers(user):
        token = AuthService(test_db).create_access_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
