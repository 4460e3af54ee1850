"""Database engine, session management and the transaction runner."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import event
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from educrm.config import Settings
from educrm.exceptions import (
    BadRequestException,
    ConflictException,
    DatabaseConnectionException,
    DatabaseQueryException,
    DuplicateEntryException,
)

if TYPE_CHECKING:
    from educrm.utils.request_context import RequestContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DBErrorKind(str, Enum):
    SERIALIZATION = "serialization"
    UNIQUE_VIOLATION = "unique_violation"
    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    CONNECTION = "connection"
    OTHER = "other"


RETRYABLE_KINDS = {DBErrorKind.SERIALIZATION, DBErrorKind.UNIQUE_VIOLATION}


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def classify_db_error(exc: DBAPIError) -> DBErrorKind:
    """Classify a driver error by SQLSTATE, falling back to the exception type."""
    state = _sqlstate(exc)
    message = str(exc.orig).lower()

    if state in ("40001", "40P01"):
        return DBErrorKind.SERIALIZATION
    if state == "23505":
        return DBErrorKind.UNIQUE_VIOLATION
    if state == "23503":
        return DBErrorKind.FOREIGN_KEY_VIOLATION
    if state and state.startswith("08"):
        return DBErrorKind.CONNECTION

    if isinstance(exc, IntegrityError):
        if "unique" in message:
            return DBErrorKind.UNIQUE_VIOLATION
        if "foreign key" in message:
            return DBErrorKind.FOREIGN_KEY_VIOLATION
        return DBErrorKind.OTHER
    # SQLite reports writer contention as a locked database
    if isinstance(exc, OperationalError) and "database is locked" in message:
        return DBErrorKind.SERIALIZATION
    if exc.connection_invalidated or isinstance(exc, InterfaceError):
        return DBErrorKind.CONNECTION
    return DBErrorKind.OTHER


def translate_db_error(kind: DBErrorKind, exc: DBAPIError) -> Exception:
    """Map a classified driver error onto the public error taxonomy."""
    if kind is DBErrorKind.SERIALIZATION:
        return ConflictException()
    if kind is DBErrorKind.UNIQUE_VIOLATION:
        return DuplicateEntryException()
    if kind is DBErrorKind.FOREIGN_KEY_VIOLATION:
        return BadRequestException("Referenced resource does not exist")
    if kind is DBErrorKind.CONNECTION:
        return DatabaseConnectionException()
    return DatabaseQueryException()


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async database engine."""
    url = settings.async_database_url
    engine_kwargs: dict[str, Any] = {
        "echo": settings.app_debug,
    }

    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"timeout": 30}
    elif settings.is_development:
        # Use NullPool in development for easier debugging
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs["pool_size"] = settings.database_pool_size
        engine_kwargs["max_overflow"] = settings.database_max_overflow
        engine_kwargs["pool_timeout"] = settings.database_pool_timeout
        engine_kwargs["pool_pre_ping"] = True

    engine = create_async_engine(url, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        _install_sqlite_locking(engine)
    return engine


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """Make every SQLite transaction take the write lock up front.

    SQLite has no row locks; BEGIN IMMEDIATE serialises writers on the whole
    database, which is the strongest equivalent of SELECT ... FOR UPDATE.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the engine and session factory and runs transactional units of work."""

    def __init__(self, settings: Settings, engine: AsyncEngine | None = None):
        self.settings = settings
        self.engine = engine or create_engine(settings)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session for reads and non-coordinated writes; commits on success."""
        try:
            async with self.session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except PoolTimeoutError as exc:
            logger.error(f"Timed out waiting for a database connection: {exc}")
            raise DatabaseConnectionException() from exc

    async def run_in_transaction(
        self,
        ctx: "RequestContext | None",
        operation: Callable[[AsyncSession], Awaitable[T]],
        *,
        serializable: bool = True,
    ) -> T:
        """Run ``operation`` in its own transaction and commit it.

        Serialisation failures and unique-constraint races are retried with
        exponential backoff. Cancellation is checked after the operation and
        before commit, so a cancelled request never commits.
        """
        max_retries = self.settings.transaction_max_retries
        base_delay = self.settings.transaction_retry_base_delay
        attempt = 0

        while True:
            try:
                async with self.session_factory() as session:
                    if serializable and self.dialect_name == "postgresql":
                        await session.connection(execution_options={"isolation_level": "SERIALIZABLE"})
                    result = await operation(session)
                    if ctx is not None:
                        await ctx.raise_if_cancelled()
                    await session.commit()
                    return result
            except PoolTimeoutError as exc:
                logger.error(f"Timed out waiting for a database connection: {exc}")
                raise DatabaseConnectionException() from exc
            except DBAPIError as exc:
                kind = classify_db_error(exc)
                if kind in RETRYABLE_KINDS and attempt < max_retries:
                    delay = base_delay * (2**attempt)
                    attempt += 1
                    logger.info(f"Transient {kind.value} error, retry {attempt}/{max_retries} in {delay * 1000:.0f}ms")
                    await asyncio.sleep(delay)
                    continue
                if kind is DBErrorKind.OTHER:
                    logger.error(f"Database error: {type(exc.orig).__name__}: {exc.orig}")
                else:
                    logger.warning(f"Database {kind.value} error after {attempt} retries")
                raise translate_db_error(kind, exc) from exc

    async def init_models(self) -> None:
        """Create tables if needed (development and tests; production uses Alembic)."""
        from educrm.models.base import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()
