"""Async SQLAlchemy engine, session factory and declarative base.

Request handlers get a session per request through ``get_db``; the import
workers open their own short sessions from ``async_session_factory``.
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from winx.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.ENVIRONMENT == "development" and settings.LOG_LEVEL == "debug",
    pool_pre_ping=True,
)

# Objects stay readable after commit; workers hand them across sessions
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base shared by every model module."""


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, committed if the handler succeeds."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()
