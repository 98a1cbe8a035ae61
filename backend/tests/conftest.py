"""Shared test fixtures for all test groups."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from artmarket.db.base import Base, build_engine
from artmarket.domain.models import Budget, Caller, UserRole

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """Fixed clock for pure domain tests."""
    return NOW


@pytest.fixture
def client_caller() -> Caller:
    return Caller(
        user_id=str(uuid.uuid4()),
        role=UserRole.USER,
        email="client@example.com",
        display_name="Casey Client",
    )


@pytest.fixture
def artist_caller() -> Caller:
    return Caller(
        user_id=str(uuid.uuid4()),
        role=UserRole.ARTIST,
        email="artist@example.com",
        display_name="Ari Artist",
    )


@pytest.fixture
def outsider_caller() -> Caller:
    return Caller(
        user_id=str(uuid.uuid4()),
        role=UserRole.USER,
        email="outsider@example.com",
        display_name="Otto Outsider",
    )


@pytest.fixture
def budget() -> Budget:
    return Budget(min=Decimal("100"), max=Decimal("300"))


@pytest.fixture
async def engine(tmp_path) -> AsyncEngine:
    """SQLite test engine with all tables created.

    The JSON document columns fall back to plain JSON on SQLite, and writes
    are serialized by the database lock rather than row locks.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'commissions.db'}")

    # Import all models so metadata is populated
    import artmarket.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def seeded_users(session_factory, client_caller, artist_caller, outsider_caller) -> dict[str, Caller]:
    """Directory rows for the client, the artist and an unrelated user."""
    from artmarket.db.models import User

    callers = {"client": client_caller, "artist": artist_caller, "outsider": outsider_caller}
    async with session_factory() as session:
        for caller in callers.values():
            session.add(
                User(
                    id=uuid.UUID(caller.user_id),
                    email=caller.email,
                    display_name=caller.display_name,
                    role=caller.role.value,
                    is_active=True,
                )
            )
        await session.commit()
    return callers
