"""
Database Configuration

Async SQLAlchemy 2.0 setup with asyncpg driver for direct access to the
hosted PostgreSQL database (DATA_SOURCE=sql).
"""

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.
    
    Models map existing tables; they are never used to create them.
    """
    pass


# Module-level engine instance (lazily initialized)
_engine: Optional[AsyncEngine] = None
_async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """
    Get or create the async engine.
    
    Lazy initialization to avoid import-time database connection issues.
    The hosted database requires TLS; asyncpg takes the SSL context through
    connect_args rather than URL query parameters.
    """
    global _engine
    if _engine is None:
        import ssl
        from app.core.config import settings

        # asyncpg doesn't accept sslmode/channel_binding params in URL
        db_url = settings.DATABASE_URL
        if "?" in db_url:
            db_url = db_url.split("?")[0]

        connect_args = {}
        if db_url.startswith("postgresql+asyncpg"):
            connect_args["ssl"] = ssl.create_default_context()

        _engine = create_async_engine(
            db_url,
            echo=settings.is_development,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            connect_args=connect_args,
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the session maker."""
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
    return _async_session_maker


async def close_db() -> None:
    """Close database connections."""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
