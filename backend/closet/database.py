import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from pathlib import Path

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from closet.errors import StorageUnavailable
from closet.utils.clock import MonotonicClock

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (OperationalError, InterfaceError, OSError, TimeoutError)


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the engine for one catalog database.

    Construct with a URL, ``open()`` it before serving requests (this runs any
    pending schema upgrades) and ``close()`` it at shutdown.
    """

    def __init__(self, url: str, echo: bool = False, connect_timeout: float = 10.0):
        self.url = make_url(url)
        self.echo = echo
        self.connect_timeout = connect_timeout
        self.clock = MonotonicClock()
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None
        self._record_locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def _connect_args(self) -> dict:
        if self.is_sqlite:
            # Busy timeout, in seconds
            return {"timeout": self.connect_timeout}
        if self.url.get_driver_name() == "asyncpg":
            return {"timeout": self.connect_timeout}
        return {}

    def _ensure_sqlite_directory(self) -> None:
        database = self.url.database
        if not database or database == ":memory:":
            return
        Path(database).parent.mkdir(parents=True, exist_ok=True)

    async def open(self) -> None:
        if self.is_open:
            return

        from closet.migrations import upgrade_schema

        try:
            if self.is_sqlite:
                self._ensure_sqlite_directory()
            engine = create_async_engine(
                self.url,
                echo=self.echo,
                connect_args=self._connect_args(),
            )
        except OSError as e:
            raise StorageUnavailable(f"Could not prepare database location: {e}") from e

        if self.is_sqlite:

            @event.listens_for(engine.sync_engine, "connect")
            def _set_sqlite_pragmas(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

        try:
            async with asyncio.timeout(self.connect_timeout * 3):
                async with engine.begin() as conn:
                    version = await conn.run_sync(upgrade_schema)
        except StorageUnavailable:
            await engine.dispose()
            raise
        except STORAGE_ERRORS as e:
            await engine.dispose()
            raise StorageUnavailable(f"Could not open database: {e}") from e

        logger.info(
            "Opened %s database at schema version %s",
            self.url.get_backend_name(),
            version,
        )
        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def close(self) -> None:
        if not self.is_open:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    def record_lock(self, table: str, record_id: str) -> asyncio.Lock:
        key = (table, record_id)
        lock = self._record_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._record_locks[key] = lock
        return lock

    @asynccontextmanager
    async def transaction(self, *locks: tuple[str, str]) -> AsyncIterator[AsyncSession]:
        """Run a unit of work in one transaction.

        ``locks`` are ``(table, id)`` pairs; they are held until the
        transaction has committed or rolled back so writers to the same
        record are serialized.
        """
        if self._sessionmaker is None:
            raise StorageUnavailable("Database is not open")

        async with AsyncExitStack() as stack:
            for table, record_id in sorted(locks):
                await stack.enter_async_context(self.record_lock(table, record_id))
            try:
                async with self._sessionmaker() as session:
                    async with session.begin():
                        yield session
            except STORAGE_ERRORS as e:
                logger.error("Storage error: %s", e)
                raise StorageUnavailable(f"Storage is unavailable: {e}") from e

    async def ping(self) -> None:
        async with self.transaction() as session:
            await session.execute(text("SELECT 1"))


def get_database(request: Request) -> Database:
    return request.app.state.database
