import json
import os
from datetime import date, timedelta

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["EMAILS_ENABLED"] = "false"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core.cache import RedisCache
from app.core.database import Base, get_db
from app.core.redis_lifecyle import get_cache
from app.main import app as fastapi_app
from app.models.user.user import User
from app.schemas.trip.trip_schema import TripCreate
from app.services import email_service
from app.services.trips.trip_service import TripService


class FakeCache:
    """Dict-backed stand-in for RedisCache with the same JSON round trip."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, expire=3600):
        self.store[key] = json.loads(json.dumps(value, default=str))

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    build_key = staticmethod(RedisCache.build_key)


class Outbox:
    """Records every message handed to the SMTP layer."""

    def __init__(self):
        self.messages = []
        self.fail = False

    def __call__(self, to_emails, subject, html, text=None):
        if self.fail:
            raise ConnectionError("SMTP server unreachable")
        self.messages.append({
            "to": list(to_emails),
            "subject": subject,
            "html": html,
            "text": text,
        })

    def recipients(self):
        return [message["to"] for message in self.messages]


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    sent = Outbox()
    monkeypatch.setattr(email_service, "send_email", sent)
    return sent


@pytest.fixture
def trip_service(cache):
    return TripService(cache)


@pytest.fixture
def make_user(db):
    async def _make_user(username, email=None, name=None):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            name=name,
            hashed_password="not-a-real-hash",
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_trip(db, trip_service):
    async def _make_trip(creator, name="Rome Trip", start=None, end=None, budget=None):
        start = start or date.today() + timedelta(days=10)
        end = end or start + timedelta(days=4)
        data = TripCreate(name=name, start_date=start, end_date=end, budget=budget)
        return await trip_service.create_trip(db, data, creator)
    return _make_trip


@pytest_asyncio.fixture
async def client(session_factory, cache):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_cache():
        yield cache

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_cache] = override_get_cache
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
