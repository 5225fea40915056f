"""Shared test fixtures."""
import asyncio
import os

import pytest

# Settings are read at import time; the engine is never connected in tests.
os.environ.setdefault("DATABASE_URL", "postgresql+asyncpg://roblox@localhost:5432/roblox_intel_test")
os.environ.setdefault("DATABASE_KEY", "test-key")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from roblox_intel.database import Base, get_session, get_session_maker  # noqa: E402
from roblox_intel.main import app  # noqa: E402
from roblox_intel.api.rate_limit import rate_limit  # noqa: E402
import roblox_intel.models  # noqa: E402,F401


@pytest.fixture
def session_maker(tmp_path):
    """Session factory bound to a throwaway SQLite file with the schema created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_schema())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def seed(session_maker):
    """Persist model instances (and anything cascaded from them)."""
    def _seed(*objects):
        async def _add():
            async with session_maker() as session:
                session.add_all(objects)
                await session.commit()

        asyncio.run(_add())
        return objects

    return _seed


@pytest.fixture
def fetch(session_maker):
    """Run a read-only statement and return the scalar results."""
    def _fetch(statement):
        async def _run():
            async with session_maker() as session:
                result = await session.execute(statement)
                return result.scalars().all()

        return asyncio.run(_run())

    return _fetch


@pytest.fixture(autouse=True)
def reset_rate_limit():
    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
def client(session_maker):
    """API client with the database dependencies pointed at SQLite."""
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    yield TestClient(app)
    app.dependency_overrides.clear()
