"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL.  Each test gets a fresh engine; ``StaticPool`` keeps
every session on the same in-memory connection.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ridehail.domain.entities import Caller
from ridehail.domain.enums import Role
from ridehail.infrastructure.database import Base
from ridehail.infrastructure.models import UserModel

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "password123"


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def parties(db_session: AsyncSession) -> dict[str, Caller]:
    """Three passengers (p1..p3) and two drivers (d1, d2) as resolved callers."""
    people = {
        "p1": ("Ayesha Khan", Role.PASSENGER),
        "p2": ("Bilal Ahmed", Role.PASSENGER),
        "p3": ("Sara Malik", Role.PASSENGER),
        "d1": ("Dawood Ali", Role.DRIVER),
        "d2": ("Hamza Raza", Role.DRIVER),
    }
    models = {}
    for i, (key, (name, role)) in enumerate(people.items()):
        models[key] = UserModel(
            name=name,
            email=f"{key}@example.com",
            phone=f"+92300000000{i}",
            password_hash="not-used",
            role=role,
        )
        db_session.add(models[key])
    await db_session.flush()
    return {
        key: Caller(id=m.id, role=m.role, name=m.name, phone=m.phone)
        for key, m in models.items()
    }


# ── HTTP ──────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(session_factory):
    """AsyncClient backed by the per-test SQLite database."""
    from ridehail.api.app import create_app
    from ridehail.api.dependencies import get_db
    from ridehail.api.middleware import limiter

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client: AsyncClient):
    """Factory: sign up + log in, return bearer headers for the new account."""
    counter = {"n": 0}

    async def _register(role: str, name: str = "Test User") -> dict[str, str]:
        counter["n"] += 1
        n = counter["n"]
        email = f"{role}{n}@example.com"
        resp = await client.post(
            "/auth/signup",
            json={
                "name": name,
                "email": email,
                "password": TEST_PASSWORD,
                "confirmPassword": TEST_PASSWORD,
                "phoneNumber": f"+9230012345{n:02d}",
                "role": role,
            },
        )
        assert resp.status_code == 201, resp.text

        resp = await client.post(
            "/auth/login", json={"email": email, "password": TEST_PASSWORD}
        )
        assert resp.status_code == 200, resp.text
        # Keep callers explicit: no ambient cookie between accounts
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['accessToken']}"}

    return _register
