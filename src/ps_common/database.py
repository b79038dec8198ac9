"""Async SQLAlchemy engine/session factories for the SQL store backend.

Only built when STORE_BACKEND=sql; the in-memory backend never touches a DB.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=20,
        max_overflow=10,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def violates(exc: IntegrityError, constraint: str) -> bool:
    """True when the database rejected the statement because of `constraint`.

    PostgreSQL names the violated constraint in the driver error message.
    """
    return constraint in str(exc.orig)
