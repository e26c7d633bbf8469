"""Select and build the store adapters once, at application startup."""
import logging
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from core.config import Settings
from db.session import create_engine_from_settings, create_session_factory
from models.base import Base
from services.note_store import InMemoryNoteStore, NoteStore, SqlNoteStore
from services.user_store import InMemoryUserStore, SqlUserStore, UserStore

logger = logging.getLogger(__name__)


@dataclass
class Stores:
    """The store adapters the application runs with."""

    notes: NoteStore
    users: UserStore
    backend: str
    engine: AsyncEngine | None = None

    async def close(self) -> None:
        """Release database connections, if any."""
        if self.engine is not None:
            await self.engine.dispose()


def build_memory_stores() -> Stores:
    """In-process stores; data lives as long as the process."""
    return Stores(notes=InMemoryNoteStore(), users=InMemoryUserStore(), backend="memory")


async def build_stores(settings: Settings) -> Stores:
    """
    Build stores for the configured backend.

    SQLite databases get their tables created on startup; server databases
    are expected to be migrated with Alembic.
    """
    if settings.storage_backend == "memory":
        logger.info("Using in-memory note and user stores")
        return build_memory_stores()

    engine = create_engine_from_settings(settings)
    if settings.is_sqlite:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    session_factory = create_session_factory(engine)
    logger.info("Using database stores (%s)", engine.url.get_backend_name())
    return Stores(
        notes=SqlNoteStore(session_factory),
        users=SqlUserStore(session_factory),
        backend="database",
        engine=engine,
    )


def get_stores(request: Request) -> Stores:
    """FastAPI dependency returning the stores built at startup."""
    return request.app.state.stores
