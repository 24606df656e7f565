"""Declarative base and async engine construction.

No engine is created at import time: whether a database is used at all is
decided at application bootstrap (see ``oncosafe.storage.factory``).
"""

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from oncosafe.config import Settings


class Base(DeclarativeBase):
    pass


def build_database_url(settings: Settings) -> URL:
    """Combine the connection URL with the configured credential.

    A plain ``postgresql://`` URL is switched to the asyncpg driver. The
    credential is used as the password unless the URL already carries one.

    Raises:
        sqlalchemy.exc.ArgumentError: If the URL cannot be parsed.
    """
    url = make_url(settings.database_url)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername="postgresql+asyncpg")
    if not url.password and settings.storage_credential:
        url = url.set(password=settings.storage_credential)
    return url


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine. Does not open a connection."""
    return create_async_engine(
        build_database_url(settings),
        echo=settings.debug,
        pool_pre_ping=True,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
