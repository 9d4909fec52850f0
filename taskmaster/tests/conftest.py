"""
Test fixtures - temporary SQLite database + authenticated HTTP/GraphQL clients
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from taskmaster.database import Base, get_db
from taskmaster.main import app
from taskmaster.api.auth import get_password_hash, create_access_token
from taskmaster.client import TaskClient
from taskmaster.models.user import User


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Fresh SQLite file per test; requests open their own sessions on it"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline test data: the test user + a second user for scoping checks"""
    user = User(
        email="test@example.com",
        full_name="Test User",
        hashed_password=get_password_hash("testpass123"),
    )
    other = User(
        email="other@example.com",
        full_name="Other User",
        hashed_password=get_password_hash("otherpass123"),
    )

    db_session.add_all([user, other])
    await db_session.commit()
    await db_session.refresh(user)
    await db_session.refresh(other)

    # Plain ids stay usable after a rollback expires the ORM objects
    return {"user": user, "other": other, "user_id": user.id, "other_id": other.id}


def _override_get_db(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override_get_db


@pytest_asyncio.fixture()
async def client(session_factory, seed_data):
    """Authenticated httpx AsyncClient bound to the FastAPI app"""
    app.dependency_overrides[get_db] = _override_get_db(session_factory)

    token = create_access_token(data={"sub": "test@example.com"})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def other_client(session_factory, seed_data):
    """Client authenticated as the second user"""
    app.dependency_overrides[get_db] = _override_get_db(session_factory)

    token = create_access_token(data={"sub": "other@example.com"})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauth_client(session_factory, seed_data):
    """Unauthenticated httpx AsyncClient"""
    app.dependency_overrides[get_db] = _override_get_db(session_factory)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def task_client(client):
    """TaskClient talking to the app through the authenticated transport"""
    async with TaskClient(url="http://test/graphql", http_client=client) as tc:
        yield tc
