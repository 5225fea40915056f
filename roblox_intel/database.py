"""Database connection and session management."""
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from roblox_intel.config import get_settings

settings = get_settings()


def build_database_url(database_url: str, database_key: str):
    """Apply the access key as the connection password."""
    url = make_url(database_url)
    if database_key and not url.password:
        url = url.set(password=database_key)
    return url


# Async engine for FastAPI
engine = create_async_engine(
    build_database_url(settings.database_url, settings.database_key),
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=10,
    pool_timeout=30,     # Wait up to 30 seconds for a connection
    pool_recycle=3600,   # Recycle connections after 1 hour
)

# Session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base for models
Base = declarative_base()


async def get_session() -> AsyncSession:
    """Dependency for getting database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_session_maker() -> async_sessionmaker:
    """Dependency for routes that open several sessions at once."""
    return async_session_maker


async def init_db():
    """Create any missing tables."""
    import roblox_intel.models  # noqa: F401  (registers the mappers)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
