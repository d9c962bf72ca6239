"""Database connection management."""

import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from parkease.infrastructure.database.models import Base


class DatabaseManager:
    """Database connection manager.

    SQLite has no row locks, so units of work against it are serialized on
    ``unit_lock``. PostgreSQL units run concurrently and rely on row locks and
    conditional updates instead.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_pre_ping: bool = True
    ):
        # Convert postgresql:// to postgresql+asyncpg:// for async support
        if database_url.startswith("postgresql://"):
            database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

        self._database_url = database_url
        self._echo = echo
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_pre_ping = pool_pre_ping
        self._engine: AsyncEngine | None = None
        self._session_factory: sessionmaker | None = None
        self._unit_lock: Optional[asyncio.Lock] = asyncio.Lock() if self.is_sqlite else None

    @property
    def is_sqlite(self) -> bool:
        return self._database_url.startswith("sqlite")

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and ":memory:" in self._database_url

    @property
    def unit_lock(self) -> Optional[asyncio.Lock]:
        """Lock a unit of work must hold from begin to close, if any."""
        return self._unit_lock

    async def connect(self) -> None:
        """Create the engine and session factory."""
        engine_kwargs = {"echo": self._echo}
        if self.is_memory:
            # An in-memory database lives only as long as its single connection
            engine_kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
        elif not self.is_sqlite:
            engine_kwargs.update(
                pool_size=self._pool_size,
                max_overflow=self._max_overflow,
                pool_pre_ping=self._pool_pre_ping,
            )

        self._engine = create_async_engine(self._database_url, **engine_kwargs)
        self._session_factory = sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def disconnect(self) -> None:
        """Dispose of the engine."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    def new_session(self) -> AsyncSession:
        """Open a session; the caller owns its transaction."""
        if not self._session_factory:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._session_factory()

    @property
    def engine(self) -> AsyncEngine:
        """Get database engine."""
        if not self._engine:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine
