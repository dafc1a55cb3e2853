"""
Process-scoped database handle.

One :class:`Database` is constructed at startup and passed to every component
that needs storage. It owns the SQLAlchemy async engine (and therefore the
connection pool); components borrow connections through the
:meth:`Database.connection` and :meth:`Database.transaction` context managers,
which always return the connection to the pool, on success and on error.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from docingest.config.settings import DatabaseSettings
from docingest.storage.schema import metadata
from docingest.utils.exceptions import StorageConnectionError
from docingest.utils.logging import LoggerMixin


class Database(LoggerMixin):
    """
    Async connection pool wrapper.

    Args:
        url: SQLAlchemy URL, e.g. ``postgresql+psycopg://user:pw@host/db`` or
            ``sqlite+aiosqlite:///./documents.db``.
        pool_size: Maximum pooled connections (ignored for SQLite).
        pool_timeout: Seconds to wait for a free connection (ignored for SQLite).
        echo: Log every SQL statement.

    Example:
        >>> db = Database("sqlite+aiosqlite:///./documents.db")
        >>> await db.connect()
        >>> async with db.transaction() as conn:
        ...     await conn.execute(...)
        >>> await db.disconnect()
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 20,
        pool_timeout: float = 2.0,
        echo: bool = False,
    ) -> None:
        super().__init__()
        self.url = url
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout
        self.echo = echo
        self._engine: AsyncEngine | None = None

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        """Build a handle from database settings."""
        return cls(
            url=settings.url,
            pool_size=settings.pool_size,
            pool_timeout=settings.pool_timeout,
            echo=settings.echo,
        )

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def backend(self) -> str:
        """Backend name, e.g. ``postgresql`` or ``sqlite``."""
        return make_url(self.url).get_backend_name()

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StorageConnectionError("Database not connected")
        return self._engine

    async def connect(self) -> None:
        """
        Create the engine and verify the database answers.

        Raises:
            StorageConnectionError: If the database cannot be reached.
        """
        if self._engine is not None:
            return

        options = {"echo": self.echo}
        if self.backend != "sqlite":
            options.update(
                pool_size=self.pool_size,
                pool_timeout=self.pool_timeout,
                pool_pre_ping=True,
            )

        engine = create_async_engine(self.url, **options)

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            self.logger.error("Failed to connect to database", backend=self.backend, error=str(e))
            raise StorageConnectionError(
                f"Failed to connect to database: {e}", cause=e
            ) from e

        self._engine = engine
        self.logger.info("Database connection established", backend=self.backend)

    async def disconnect(self) -> None:
        """Dispose of the pool. Safe to call when not connected."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self.logger.info("Database connection closed")

    async def create_schema(self) -> None:
        """Create the tables if they do not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        self.logger.info("Database schema ready", tables=sorted(metadata.tables))

    async def check_connectivity(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            async with self.connection() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, StorageConnectionError) as e:
            self.logger.error("Database connectivity check failed", error=str(e))
            return False

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """
        Borrow one pooled connection for a single logical operation.

        Statements run in autocommit-style: the connection's implicit
        transaction is committed when the block exits normally.
        """
        async with self.engine.connect() as conn:
            yield conn
            await conn.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncConnection]:
        """
        Borrow a dedicated connection wrapped in one transaction.

        Commits when the block exits normally and rolls back when it raises;
        the connection is released either way.
        """
        async with self.engine.begin() as conn:
            yield conn
