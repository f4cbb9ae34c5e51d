# --- START OF FILE src/sentiment_dashboard/db/session.py ---

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from sentiment_dashboard.core.config import Settings


class DatabaseSessionManager:
    """
    Owns the async engine (connection pool) and the session factory.

    One instance is built at application start-up and handed to whoever needs
    database access (request dependency, scripts, tests). There is no
    module-level instance.
    """
    def __init__(self, url: str, engine_kwargs: Optional[Dict[str, Any]] = None):
        """
        Args:
            url (str): SQLAlchemy URL (e.g. "postgresql+asyncpg://...").
            engine_kwargs: extra keyword arguments for `create_async_engine`
                (pool sizing, poolclass for tests, echo).
        """
        self._engine: AsyncEngine = create_async_engine(url, **(engine_kwargs or {}))
        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseSessionManager":
        """Builds the manager with the pool limits from the settings."""
        url = settings.ASYNC_DATABASE_URL
        engine_kwargs: Dict[str, Any] = {"echo": settings.DB_ECHO}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
                pool_pre_ping=True,
            )
        return cls(url, engine_kwargs)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yields a session and always closes it, returning the connection to the pool.

        Committing is the caller's job; any exception rolls the session back
        and is re-raised.
        """
        session = self._sessionmaker()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def close(self) -> None:
        """Disposes the engine and every pooled connection."""
        await self._engine.dispose()


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency.
    Gives the route one session for the whole request, taken from the
    manager stored on `app.state` by the lifespan handler.
    """
    sessionmanager: DatabaseSessionManager = request.app.state.sessionmanager
    async with sessionmanager.session() as session:
        yield session

# --- END OF FILE src/sentiment_dashboard/db/session.py ---
