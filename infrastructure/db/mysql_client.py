"""MySQL async engine and session management."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from core.config import settings
from core.exceptions import DBConfigError, ServiceError
from core.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base declarative class for all SQLAlchemy ORM models."""


engine: Optional[AsyncEngine] = None
session_factory: Optional[async_sessionmaker[AsyncSession]] = None


async def connect_to_mysql(url: Optional[str] = None, **engine_kwargs) -> None:
    """Initialise the global async engine and session factory."""

    global engine, session_factory

    url = url or settings.MYSQL_ASYNC_URL
    if not url:
        raise DBConfigError(detail="MYSQL connection string is not configured.")

    engine_kwargs.setdefault("pool_pre_ping", True)
    try:
        engine = create_async_engine(url, echo=False, **engine_kwargs)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)

        # Import models to register metadata before creating tables
        from infrastructure.models import account, channel, sms_log  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("--- MySQL Connected ---")
    except Exception as exc:  # pragma: no cover - connection errors propagated
        raise ServiceError(
            status_code=500,
            code="MYSQL_CONNECTION_ERROR",
            message="Failed to initialise MySQL engine.",
            detail=str(exc),
        ) from exc


async def close_mysql_connection() -> None:
    """Dispose of the async engine during application shutdown."""

    global engine, session_factory
    if engine is not None:
        await engine.dispose()
        engine = None
        session_factory = None
        logger.info("--- MySQL Disconnected ---")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory for repositories that open their own sessions."""

    if session_factory is None:
        raise ServiceError(
            status_code=500,
            code="MYSQL_SESSION_UNINITIALISED",
            message="MySQL session factory has not been initialised.",
        )
    return session_factory
