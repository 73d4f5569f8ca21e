import logging
import os
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from .config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

_db_url = os.environ.get("DATABASE_URL") or settings.database_url

try:
    async_engine = create_async_engine(
        _db_url,
        echo=settings.debug,
        pool_size=10,
        max_overflow=20,
    )

    AsyncSessionLocal = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
except Exception as e:
    logger.warning(f"Database engine unavailable: {e}")
    async_engine = None
    AsyncSessionLocal = None

Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency for getting async database sessions."""
    if AsyncSessionLocal is None:
        raise RuntimeError("Database not available")
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """Dependency for handlers that open their own sessions (one per attempt)."""
    if AsyncSessionLocal is None:
        raise RuntimeError("Database not available")
    return AsyncSessionLocal


async def init_db():
    """Initialize database tables."""
    if async_engine is None:
        return
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
