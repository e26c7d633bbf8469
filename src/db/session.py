"""Async SQLAlchemy engine and session factory."""
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import Settings


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def register_sqlite_functions(engine: AsyncEngine) -> None:
    """
    Register Python string functions on every new SQLite connection.

    SQLite's own lower() and LIKE only fold ASCII letters. Searches call
    casefold() instead, so "CAFÉ" finds "Café" as it does in Python.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:  # noqa: ANN401
        dbapi_connection.create_function("casefold", 1, _casefold, deterministic=True)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    SQLite does not use a connection pool with size limits, so the pool
    options are only passed for server databases.
    """
    if settings.is_sqlite:
        engine = create_async_engine(settings.database_url, echo=False)
        register_sqlite_functions(engine)
        return engine
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
