import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

from patient_registry.core.exceptions import InitializationError

logger = logging.getLogger(__name__)

# Base model
Base = declarative_base()


class Database:
    """Owner of the single engine for the embedded patient store.

    The engine is created on the first ``acquire()`` and the schema is applied
    right after. Concurrent callers share one initialization. A failed
    initialization is not remembered: the next ``acquire()`` starts over.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def acquire(self) -> AsyncEngine:
        """Return the shared engine, opening it and creating the schema if needed"""
        engine, _ = await self._ensure_open()
        return engine

    async def _ensure_open(self) -> Tuple[AsyncEngine, sessionmaker]:
        engine, session_factory = self._engine, self._session_factory
        if engine is not None and session_factory is not None:
            return engine, session_factory

        async with self._lock:
            if self._engine is None:
                engine = await self._open()
                self._session_factory = sessionmaker(
                    bind=engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False
                )
                self._engine = engine
            return self._engine, self._session_factory

    async def _open(self) -> AsyncEngine:
        try:
            engine = self._create_engine()
        except (SQLAlchemyError, ImportError, OSError) as e:
            logger.error(f"Failed to create database engine for {self._safe_url()}: {e}")
            raise InitializationError(details={"reason": str(e)}) from e

        try:
            await self._create_schema(engine)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to apply database schema: {e}")
            await engine.dispose()
            raise InitializationError(details={"reason": str(e)}) from e

        logger.info(f"Database ready at {self._safe_url()}")
        return engine

    def _create_engine(self) -> AsyncEngine:
        url = make_url(self.url)
        if url.get_backend_name() != "sqlite":
            return create_async_engine(url, echo=self.echo)

        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(url, echo=self.echo)

        # Let SQLAlchemy issue BEGIN itself so DDL is transactional too;
        # the sqlite3 driver only opens implicit transactions for DML.
        @event.listens_for(engine.sync_engine, "connect")
        def _disable_driver_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    async def _create_schema(self, engine: AsyncEngine) -> None:
        """Create the patients table and its name index when absent"""
        # Register the mapped tables on Base.metadata
        from patient_registry.domain.patients import models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open an ORM session bound to the shared engine"""
        _, session_factory = await self._ensure_open()
        async with session_factory() as session:
            yield session

    async def dispose(self) -> None:
        """Close database connections"""
        async with self._lock:
            if self._engine is not None:
                await self._engine.dispose()
                logger.info("Database connections closed")
            self._engine = None
            self._session_factory = None

    def _safe_url(self) -> str:
        try:
            return make_url(self.url).render_as_string(hide_password=True)
        except SQLAlchemyError:
            return "<invalid database url>"
