"""
Database Subsystem Bootstrap

Purpose
-------
Single entry point for establishing the database connection at start-up:
build the engine from `DatabaseSettings`, prove it with a liveness probe,
and retry with exponential backoff until the elapsed budget is spent.

Responsibilities
----------------
- Build an `AsyncEngine` with the configured pool policy
- Install the idle-time pool hook (connections idle longer than
  `conn_max_idle_time_seconds` are discarded at checkout)
- Probe liveness with `SELECT 1`, bounded by what is left of the retry
  budget; dispose the engine on failure
- Retry through `ConnectRetryPolicy`; raise `DatabaseConnectionError` when
  the budget is exhausted
- Provide `initialize_database_subsystem` / `shutdown_database_subsystem`
  returning and disposing a `DatabaseService`

Pool Policy
-----------
- pool_size     = max_idle_conns
- max_overflow  = max_open_conns - max_idle_conns
- pool_recycle  = conn_max_lifetime_seconds
- pool_pre_ping = True

Usage Example
-------------
>>> db = await initialize_database_subsystem()
>>> ...
>>> await shutdown_database_subsystem(db)
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import DisconnectionError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from adtime.core.database.retry_policy import (
    ClockFn,
    ConnectRetryConfig,
    ConnectRetryPolicy,
    SleepFn,
)
from adtime.core.database.service import DatabaseService
from adtime.core.database.settings import DatabaseSettings
from adtime.core.logging import get_logger

logger = get_logger(__name__)

EngineFactory = Callable[..., AsyncEngine]
ProbeFn = Callable[[AsyncEngine], Awaitable[None]]

_CHECKED_IN_AT = "checked_in_at"

# Floor for a single probe once the retry budget is nearly spent
MIN_PROBE_TIMEOUT_SECONDS = 1.0


# ============================================================================
# Pool Hooks
# ============================================================================


def install_idle_timeout(
    engine: AsyncEngine,
    max_idle_seconds: float,
    *,
    clock: ClockFn = time.monotonic,
) -> None:
    """
    Discard pooled connections that sat idle longer than `max_idle_seconds`.

    A zero or negative limit disables the hook.
    """
    if max_idle_seconds <= 0:
        return

    def on_checkin(dbapi_connection: Any, connection_record: Any) -> None:
        if connection_record is not None:
            connection_record.info[_CHECKED_IN_AT] = clock()

    def on_checkout(dbapi_connection: Any, connection_record: Any, connection_proxy: Any) -> None:
        checked_in_at = connection_record.info.pop(_CHECKED_IN_AT, None)
        if checked_in_at is None:
            return
        idle = clock() - checked_in_at
        if idle > max_idle_seconds:
            logger.debug(
                "Discarding idle pooled connection",
                extra={"idle_seconds": round(idle, 3), "max_idle_seconds": max_idle_seconds},
            )
            # The pool invalidates this connection and checks out a fresh one
            raise DisconnectionError(f"connection idle for {idle:.1f}s")

    event.listen(engine.sync_engine, "checkin", on_checkin)
    event.listen(engine.sync_engine, "checkout", on_checkout)


async def _ping(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


# ============================================================================
# Connection Establishment
# ============================================================================


async def connect_database(
    settings: DatabaseSettings,
    retry_config: Optional[ConnectRetryConfig] = None,
    *,
    engine_factory: EngineFactory = create_async_engine,
    probe: ProbeFn = _ping,
    sleep: Optional[SleepFn] = None,
    clock: Optional[ClockFn] = None,
) -> AsyncEngine:
    """
    Build and verify an engine, retrying transient failures with backoff.

    Parameters
    ----------
    settings : DatabaseSettings
        Connection and pool parameters.
    retry_config : ConnectRetryConfig, optional
        Backoff parameters; defaults to `ConnectRetryConfig.from_config()`.
    engine_factory, probe, sleep, clock
        Injection points for tests.

    Returns
    -------
    AsyncEngine
        An engine whose first connection answered `SELECT 1`.

    Raises
    ------
    DatabaseConnectionError
        When the retry budget is exhausted.
    """
    config = retry_config or ConnectRetryConfig.from_config()
    policy_kwargs: dict[str, Any] = {}
    if sleep is not None:
        policy_kwargs["sleep"] = sleep
    if clock is not None:
        policy_kwargs["clock"] = clock
    policy = ConnectRetryPolicy(config, **policy_kwargs)
    now = clock or time.monotonic
    deadline = now() + config.max_elapsed_seconds

    async def attempt() -> AsyncEngine:
        engine = engine_factory(settings.url, **settings.engine_kwargs())
        install_idle_timeout(engine, settings.conn_max_idle_time_seconds)
        timeout = max(deadline - now(), MIN_PROBE_TIMEOUT_SECONDS)
        try:
            await asyncio.wait_for(probe(engine), timeout)
        except Exception:
            await engine.dispose()
            raise
        return engine

    logger.info("Connecting to database", extra=settings.log_summary())

    engine = await policy.execute(
        attempt,
        operation_name="database.connect",
        context={"host": settings.host, "database": settings.name},
    )

    logger.info("Database connection established", extra=settings.log_summary())
    return engine


# ============================================================================
# Subsystem Lifecycle
# ============================================================================


async def initialize_database_subsystem(
    settings: Optional[DatabaseSettings] = None,
    retry_config: Optional[ConnectRetryConfig] = None,
    **connect_kwargs: Any,
) -> DatabaseService:
    """
    Connect with retry and wrap the engine in a `DatabaseService`.

    Raises
    ------
    DatabaseConnectionError
        When the database stays unreachable for the whole retry budget.
    """
    settings = settings or DatabaseSettings.from_config()

    logger.info("Initializing database subsystem")
    engine = await connect_database(settings, retry_config, **connect_kwargs)
    service = DatabaseService(engine, statement_timeout_ms=settings.statement_timeout_ms)
    logger.info("Database subsystem initialized")
    return service


async def shutdown_database_subsystem(service: DatabaseService) -> None:
    """
    Dispose the engine. Errors are logged, not raised, so the rest of the
    shutdown sequence still runs.
    """
    logger.info("Shutting down database subsystem")

    try:
        await service.shutdown()
        logger.info("Database subsystem shutdown complete")
    except Exception as exc:
        logger.error(
            "Error during database subsystem shutdown",
            extra={"error": str(exc), "error_type": type(exc).__name__},
            exc_info=True,
        )
