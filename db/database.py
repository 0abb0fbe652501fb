"""
Groundwork - Database Service

Owns the SQLAlchemy async engine (connection pool) for the lifetime of a
container.

Features:
- Pool limits mapped from idle/open connection settings
- Connection lifetime via ``pool_recycle`` and idle time via pool events
- Liveness check bounded by a deadline
- Idempotent close that disposes the pool
"""
from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import TYPE_CHECKING, Any, AsyncGenerator, Dict, Mapping, Optional

from sqlalchemy import event, exc, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.errors import ConfigurationError, LivenessError, ResourceAcquisitionError

if TYPE_CHECKING:
    from config import ConfigService, DatabaseConfig


logger = logging.getLogger("groundwork.db.database")

PING_TIMEOUT_SECONDS = 10.0

# async drivers used when a DSN names only the dialect
_DEFAULT_ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgres": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}

_CHECKED_IN_AT = "groundwork_checked_in_at"


def normalize_dsn(dsn: str) -> URL:
    """Parse a DSN and select the async driver when none is given."""
    url = make_url(dsn)
    driver = _DEFAULT_ASYNC_DRIVERS.get(url.drivername)
    if driver:
        url = url.set(drivername=driver)
    return url


def pool_options(db_config: "DatabaseConfig", url: URL) -> Dict[str, Any]:
    """
    Translate idle/open connection limits into SQLAlchemy pool arguments.

    A limit of 0 open connections means unlimited; 0 idle connections means
    nothing is kept in the pool between uses.
    """
    options: Dict[str, Any] = {}
    if db_config.connection_max_lifetime > 0:
        options["pool_recycle"] = db_config.connection_max_lifetime

    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # in-memory sqlite always uses a single static connection
        return options

    if db_config.max_idle_connections <= 0:
        options["poolclass"] = NullPool
        return options

    pool_size = db_config.max_idle_connections
    if db_config.max_open_connections > 0:
        pool_size = min(pool_size, db_config.max_open_connections)
        options["max_overflow"] = db_config.max_open_connections - pool_size
    else:
        options["max_overflow"] = -1
    options["pool_size"] = pool_size
    return options


def _install_idle_timeout(engine: AsyncEngine, max_idle_time: float) -> None:
    """Discard pooled connections that sat idle longer than ``max_idle_time`` seconds."""

    def on_checkin(dbapi_connection: Any, connection_record: Any) -> None:
        if connection_record is not None:
            connection_record.info[_CHECKED_IN_AT] = time.monotonic()

    def on_checkout(dbapi_connection: Any, connection_record: Any, connection_proxy: Any) -> None:
        checked_in_at = connection_record.info.pop(_CHECKED_IN_AT, None)
        if checked_in_at is not None and time.monotonic() - checked_in_at > max_idle_time:
            # the pool replaces the connection and retries the checkout
            raise exc.DisconnectionError("connection exceeded max idle time")

    event.listen(engine.sync_engine, "checkin", on_checkin)
    event.listen(engine.sync_engine, "checkout", on_checkout)


def create_database_engine(db_config: "DatabaseConfig") -> AsyncEngine:
    """
    Open the connection pool described by ``db_config``.

    No connection is made until first use.

    Raises:
        ConfigurationError: The DSN is empty or cannot be parsed
    """
    if not db_config.dsn:
        raise ConfigurationError("database DSN cannot be empty", config_key="DB_DSN")
    try:
        url = normalize_dsn(db_config.dsn)
    except exc.ArgumentError as error:
        raise ConfigurationError(f"invalid database DSN: {error}", config_key="DB_DSN") from error

    engine = create_async_engine(url, **pool_options(db_config, url))
    try:
        if db_config.connection_max_idle_time > 0:
            _install_idle_timeout(engine, db_config.connection_max_idle_time)
    except Exception:
        engine.sync_engine.dispose()
        raise
    return engine


class DatabaseService:
    """
    Owns one async engine and its connection pool.

    ``create`` opens the pool and proves it answers before handing it out;
    a pool that fails the ping is disposed before the error propagates.
    """

    def __init__(self, engine: Optional[AsyncEngine]):
        self._engine = engine

    @classmethod
    async def create(
        cls,
        config_service: Optional["ConfigService"],
        overrides: Optional[Mapping[str, Any]] = None,
        ping_timeout: float = PING_TIMEOUT_SECONDS,
    ) -> "DatabaseService":
        """
        Open the pool and verify liveness.

        Args:
            config_service: Source of the database configuration
            overrides: ``DatabaseConfig`` fields to replace, e.g. pool limits
            ping_timeout: Deadline in seconds for the liveness check

        Raises:
            ConfigurationError: Missing config service
            ResourceAcquisitionError: The pool could not be created
            LivenessError: The database did not answer within the deadline
        """
        if config_service is None:
            raise ConfigurationError("config service cannot be None")

        db_config = config_service.config.db
        if overrides:
            db_config = replace(db_config, **overrides)

        try:
            engine = create_database_engine(db_config)
        except Exception as error:
            raise ResourceAcquisitionError(
                f"failed to create database connection: {error}", cause=error
            ) from error

        service = cls(engine)
        try:
            await service.ping(ping_timeout)
        except BaseException as error:
            await service._discard()
            if isinstance(error, LivenessError):
                raise LivenessError(f"failed to ping database: {error}", cause=error) from error
            raise

        logger.debug("Database pool opened (%s)", engine.url.render_as_string(hide_password=True))
        return service

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "DatabaseService":
        """Wrap an engine opened elsewhere. No liveness check is made."""
        return cls(engine)

    @property
    def engine(self) -> AsyncEngine:
        """The pool; raises LivenessError once closed or when never opened."""
        if self._engine is None:
            raise LivenessError("database connection is not initialized")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that commits on success and rolls back on error."""
        factory = async_sessionmaker(self.engine, expire_on_commit=False)
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self, timeout: Optional[float] = PING_TIMEOUT_SECONDS) -> None:
        """
        Run ``SELECT 1`` within ``timeout`` seconds.

        Raises:
            LivenessError: No engine, the ping failed, or the deadline passed
        """
        engine = self.engine

        async def check() -> None:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        try:
            await asyncio.wait_for(check(), timeout)
        except asyncio.TimeoutError as error:
            raise LivenessError(f"database did not answer within {timeout}s", cause=error) from error
        except Exception as error:
            raise LivenessError(str(error), cause=error) from error

    async def close(self) -> None:
        """Dispose the pool. Calling it again, or on an unopened service, does nothing."""
        engine, self._engine = self._engine, None
        if engine is not None:
            await engine.dispose()
            logger.debug("Database pool closed")

    async def _discard(self) -> None:
        try:
            await self.close()
        except Exception as error:
            logger.warning("Ignoring error while disposing unreachable pool: %s", error)
