"""
Database Service - session and transaction management.

Purpose
-------
Wrap a live `AsyncEngine` and hand out sessions and atomic transactions to
the repositories.

Responsibilities
----------------
- Provide async context managers for read sessions and atomic transactions
- Enforce transaction discipline: commit on success, rollback on exception
- Configure PostgreSQL statement timeouts per transaction
- Expose health checks and pool metrics
- Create the schema for development and tests (`create_schema`)

Non-Responsibilities
--------------------
- Connecting with retry (handled by `connect_database` in bootstrap)
- Schema migrations
- Cache invalidation (handled by the module services)

Architecture Notes
------------------
The service is constructed with an engine and passed to repositories
explicitly. There is no module-level singleton; tests build their own
instance around an in-memory SQLite engine.

Usage Example
-------------
>>> db = DatabaseService(engine)
>>> async with db.get_transaction() as session:
...     session.add(OrderRecord(...))
...     # Automatic commit on exit
>>> async with db.get_session() as session:
...     rows = (await session.execute(select(OrderRecord))).scalars().all()
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from adtime.core.database.base import Base
from adtime.core.logging import get_logger

logger = get_logger(__name__)


class DatabaseService:
    """
    Async session and transaction management over one engine.

    Public API
    ----------
    - get_session() -> Read-only session, closed on exit
    - get_transaction() -> Atomic write transaction (preferred for writes)
    - health_check() -> Fast database reachability check
    - get_pool_metrics() -> Current connection pool statistics
    - create_schema() -> Create all tables (development / tests)
    - shutdown() -> Dispose the engine
    """

    def __init__(self, engine: AsyncEngine, *, statement_timeout_ms: int = 30_000) -> None:
        self._engine = engine
        self._statement_timeout_ms = statement_timeout_ms
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    @property
    def is_postgres(self) -> bool:
        return self.dialect_name == "postgresql"

    async def _apply_statement_timeout(self, session: AsyncSession) -> None:
        if self.is_postgres and self._statement_timeout_ms > 0:
            await session.execute(
                text(f"SET LOCAL statement_timeout = {int(self._statement_timeout_ms)}")
            )

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a database session without automatic commit.

        Use for read-only operations. The session is closed on exit.
        """
        start = time.perf_counter()
        async with self._session_factory() as session:
            try:
                await self._apply_statement_timeout(session)
                logger.debug("Database session opened (read-only)")
                yield session
            finally:
                duration_ms = (time.perf_counter() - start) * 1000.0
                logger.debug(
                    "Database session closed",
                    extra={"duration_ms": round(duration_ms, 2)},
                )

    @asynccontextmanager
    async def get_transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a database session wrapped in an atomic transaction.

        Commits when the block exits normally; rolls back and re-raises on
        any exception. A cancelled block is rolled back when the session closes.
        """
        start = time.perf_counter()
        async with self._session_factory() as session:
            try:
                await self._apply_statement_timeout(session)
                logger.debug("Database transaction started")
                yield session

                await session.commit()
                duration_ms = (time.perf_counter() - start) * 1000.0
                logger.debug(
                    "Database transaction committed",
                    extra={"duration_ms": round(duration_ms, 2)},
                )

            except (OperationalError, DBAPIError) as exc:
                await session.rollback()
                duration_ms = (time.perf_counter() - start) * 1000.0
                logger.error(
                    "Database error in transaction; rolled back",
                    extra={
                        "duration_ms": round(duration_ms, 2),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                raise

            except Exception as exc:
                await session.rollback()
                logger.debug(
                    "Transaction rolled back",
                    extra={"error_type": type(exc).__name__},
                )
                raise

    # ========================================================================
    # Health & Metrics
    # ========================================================================

    async def health_check(self) -> bool:
        """
        Execute `SELECT 1`. Returns False instead of raising on database errors.
        """
        start = time.perf_counter()
        success = False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            success = True
            return True

        except (OperationalError, DBAPIError, OSError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            logger.debug(
                "Database health check completed",
                extra={"success": success, "duration_ms": round(duration_ms, 2)},
            )

    def get_pool_metrics(self) -> dict[str, int]:
        """
        Current connection pool statistics.

        Pools without sizing (e.g. SQLite's StaticPool) report zeros.
        """
        pool = self._engine.pool
        size_fn = getattr(pool, "size", None)
        if not callable(size_fn):
            return {"pool_size": 0, "checked_out": 0, "checked_in": 0, "overflow": 0}

        return {
            "pool_size": size_fn(),
            "checked_out": pool.checkedout(),
            "checked_in": pool.checkedin(),
            "overflow": max(pool.overflow(), 0),
        }

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def create_schema(self) -> None:
        """Create every table registered on `Base`. Development and tests only."""
        import adtime.database.models  # noqa: F401  registers tables on Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database schema created",
            extra={"tables": sorted(Base.metadata.tables)},
        )

    async def shutdown(self) -> None:
        logger.info("Shutting down DatabaseService")
        await self._engine.dispose()
        logger.info("DatabaseService shutdown complete")
