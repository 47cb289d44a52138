import asyncio
import logging
import re
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import get_settings
from app.models.base import Base

logger = logging.getLogger(__name__)
settings = get_settings()


def get_async_database_url(url: str) -> str:
    """Convert database URL to async-compatible format using psycopg driver."""
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    elif url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)

    if "channel_binding=" in url:
        url = re.sub(r'[&?]channel_binding=[^&]*', '', url)
        url = url.replace('?&', '?').rstrip('?')

    return url


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine. Pool and isolation options only apply to Postgres."""
    database_url = get_async_database_url(url)
    if not database_url.startswith("postgresql"):
        return create_async_engine(database_url, future=True, echo=echo)

    return create_async_engine(
        database_url,
        future=True,
        echo=echo,
        isolation_level=settings.db_isolation_level,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,   # Recycle connections after 1 hour
        pool_timeout=10,     # Wait up to 10 seconds for a connection from pool
        max_overflow=10,     # Allow extra connections beyond pool_size
        connect_args={"connect_timeout": 10},
    )


engine: AsyncEngine = build_engine(settings.database_url, echo=settings.debug)
logger.info("[DB] Database engine created for %s", settings.database_url.split("@")[-1])

AsyncSessionFactory = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionFactory() as session:
        yield session


async def init_database() -> None:
    """Create all tables. In production use Alembic migrations instead."""
    logger.info("[DB] Initializing database tables...")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("[DB] Database tables initialized successfully")
    except Exception as e:
        # Don't fail startup - migrations are the source of truth
        logger.warning("[DB] create_all failed (expected if using Alembic): %s", e)


async def test_database_connection() -> bool:
    """Test database connection with timeout."""

    async def _test_connection():
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.fetchone()

    try:
        await asyncio.wait_for(_test_connection(), timeout=10.0)
        logger.info("[DB] Database connection test successful")
        return True
    except asyncio.TimeoutError:
        logger.error("[DB] Database connection test timed out after 10 seconds")
        return False
    except Exception as e:
        logger.error("[DB] Database connection test failed: %s (%s)", e, type(e).__name__)
        return False
