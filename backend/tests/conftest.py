"""
Pytest fixtures for test database, cache, client and authentication.

Each test gets a fresh SQLite database file (the production store is SQLite
too) and an in-process fakeredis server. Every HTTP request opens its own
session, as it does in production.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_ENABLED", "true")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import fakeredis.aioredis
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.main import app
from app.db.base import Base
from app.db.session import enable_sqlite_foreign_keys, get_db
from app.core.security import create_access_token
from app.infrastructure.redis_client import RedisClient
from app.models.user import User
from app.models.event import Event
from app.models.inscription import Inscription


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create the schema in a throwaway database (foreign keys enforced, as on D1)."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(autouse=True)
async def fake_redis() -> AsyncGenerator[fakeredis.aioredis.FakeRedis, None]:
    """Install an isolated fake Redis for every test."""
    client = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    RedisClient.use(client)
    yield client
    RedisClient.use(None)
    await client.aclose()


@pytest_asyncio.fixture
async def redis_down(fake_redis) -> fakeredis.aioredis.FakeRedis:
    """Replace the cache with a server that refuses every command."""
    server = fakeredis.FakeServer()
    server.connected = False
    client = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
    RedisClient.use(client)
    return client


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get a session on the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _add_user(db: AsyncSession, email: str, username: str, role: str = "user") -> User:
    user = User(email=email, username=username, role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def member(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "socio@acachile.cl", "socio")


@pytest_asyncio.fixture
async def other_member(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "otro@acachile.cl", "otro")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "admin@acachile.cl", "admin", role="admin")


@pytest_asyncio.fixture
async def auth_headers(member: User) -> dict:
    return _headers_for(member)


@pytest_asyncio.fixture
async def other_headers(other_member: User) -> dict:
    return _headers_for(other_member)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


async def make_event(db: AsyncSession, organizer: User, **overrides) -> Event:
    values = dict(
        title="Encuentro de Asadores",
        description="Parrilla y cordero al palo",
        date=datetime.now(timezone.utc) + timedelta(days=30),
        location="Santiago",
        type="encuentro",
        status="published",
        registration_open=True,
        max_participants=20,
        current_participants=0,
        organizer_id=organizer.id,
    )
    values.update(overrides)
    event = Event(**values)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def make_inscription(db: AsyncSession, user: User, event: Event, status: str = "confirmed") -> Inscription:
    inscription = Inscription(user_id=user.id, event_id=event.id, status=status)
    db.add(inscription)
    await db.commit()
    await db.refresh(inscription)
    return inscription


async def load_event(session_factory, event_id: int) -> Event:
    """Read an event through a fresh session (no identity-map reuse)."""
    async with session_factory() as session:
        return (await session.execute(select(Event).where(Event.id == event_id))).scalar_one()


async def load_inscription(session_factory, inscription_id: str):
    async with session_factory() as session:
        result = await session.execute(select(Inscription).where(Inscription.id == inscription_id))
        return result.scalar_one_or_none()


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, admin_user: User) -> Event:
    """Published event E7 with five participants already registered."""
    return await make_event(db_session, admin_user, current_participants=5)


@pytest_asyncio.fixture
async def test_inscription(db_session: AsyncSession, member: User, test_event: Event) -> Inscription:
    """Inscription I42: member's confirmed registration for test_event."""
    return await make_inscription(db_session, member, test_event)
