"""
Async database engine and session scope.

Works with any async SQLAlchemy URL; SQLite via aiosqlite is the default.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from restobot.config import settings
from restobot.core.errors import TransientIO
from restobot.db.models import Base

# Errors meaning "the backend did not answer"; the transaction was rolled back
TRANSIENT_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


class Database:
    """Owns the engine; hands out one session per unit of work."""

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or settings.db_url
        self.echo = settings.debug if echo is None else echo
        self._engine = None
        self._session_factory = None

    @property
    def _sqlite_path(self) -> Optional[str]:
        """File path of a SQLite database, None for other backends and :memory:."""
        url = make_url(self.url)
        if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
            return None
        return url.database

    def _engine_options(self) -> dict[str, Any]:
        if make_url(self.url).get_backend_name() == "sqlite" and self._sqlite_path is None:
            # One shared connection, otherwise every session sees an empty database
            return {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {}

    async def init(self) -> None:
        """Create the engine and any missing tables."""
        if self._sqlite_path:
            Path(self._sqlite_path).parent.mkdir(parents=True, exist_ok=True)

        self._engine = create_async_engine(self.url, echo=self.echo, **self._engine_options())
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session committed on normal exit and rolled back on any error.

        Connection-level failures are re-raised as TransientIO.
        """
        if self._session_factory is None:
            await self.init()

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except TRANSIENT_ERRORS as e:
            await session.rollback()
            raise TransientIO(str(e)) from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


db = Database()
