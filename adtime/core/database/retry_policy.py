"""
Connection Retry Policy

Purpose
-------
Retry an async connection attempt with exponential backoff until it
succeeds or a maximum elapsed-time budget is spent.

Backoff Strategy
----------------
- Exponential: initial_interval * multiplier ^ (attempt - 1)
- Capped: never exceeds max_interval
- Jittered: random(0, jitter) added when jitter_ms > 0
- Budget: retrying stops when the elapsed time plus the next delay would
  exceed max_elapsed; the last failure is then wrapped in
  `DatabaseConnectionError`.

Classification
--------------
- Retriable: OperationalError, DBAPIError, OSError, TimeoutError (including
  `asyncio.TimeoutError` from a probe that outlives the budget)
- Non-retriable: everything else propagates unchanged on the first failure.
- `asyncio.CancelledError` is never caught.

Configuration
-------------
- DATABASE_CONNECT_INITIAL_INTERVAL_MS (default: 500)
- DATABASE_CONNECT_MULTIPLIER (default: 1.5)
- DATABASE_CONNECT_MAX_INTERVAL_MS (default: 15000)
- DATABASE_CONNECT_MAX_ELAPSED_SECONDS (default: 120)
- DATABASE_CONNECT_JITTER_MS (default: 0)

Usage
-----
>>> policy = ConnectRetryPolicy.from_config()
>>> engine = await policy.execute(attempt_connect, operation_name="database.connect")
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

from adtime.core.config import Config
from adtime.core.exceptions import DatabaseConnectionError
from adtime.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[Any]]
ClockFn = Callable[[], float]


# ============================================================================
# Configuration
# ============================================================================


@dataclass(frozen=True)
class ConnectRetryConfig:
    """
    Backoff parameters for connection establishment.

    Attributes
    ----------
    initial_interval_ms : int
        Delay after the first failure.
    multiplier : float
        Growth factor applied per attempt.
    max_interval_ms : int
        Upper bound on a single delay.
    max_elapsed_seconds : float
        Total retry budget.
    jitter_ms : int
        Maximum random jitter added to each delay.
    """

    initial_interval_ms: int = 500
    multiplier: float = 1.5
    max_interval_ms: int = 15_000
    max_elapsed_seconds: float = 120.0
    jitter_ms: int = 0
    retriable_exceptions: Tuple[Type[BaseException], ...] = (
        OperationalError,
        DBAPIError,
        OSError,
        TimeoutError,
        asyncio.TimeoutError,
    )

    @classmethod
    def from_config(cls) -> ConnectRetryConfig:
        return cls(
            initial_interval_ms=int(
                getattr(Config, "DATABASE_CONNECT_INITIAL_INTERVAL_MS", 500)
            ),
            multiplier=float(getattr(Config, "DATABASE_CONNECT_MULTIPLIER", 1.5)),
            max_interval_ms=int(getattr(Config, "DATABASE_CONNECT_MAX_INTERVAL_MS", 15_000)),
            max_elapsed_seconds=float(
                getattr(Config, "DATABASE_CONNECT_MAX_ELAPSED_SECONDS", 120)
            ),
            jitter_ms=int(getattr(Config, "DATABASE_CONNECT_JITTER_MS", 0)),
        )


# ============================================================================
# Retry Policy
# ============================================================================


class ConnectRetryPolicy:
    """
    Execute an async connection attempt with elapsed-budget retry semantics.

    Sleep and clock are injectable so tests can drive the policy without
    real waiting.
    """

    def __init__(
        self,
        config: ConnectRetryConfig,
        *,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = time.monotonic,
    ) -> None:
        self._config = config
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, **kwargs: Any) -> ConnectRetryPolicy:
        return cls(ConnectRetryConfig.from_config(), **kwargs)

    @property
    def config(self) -> ConnectRetryConfig:
        return self._config

    def _is_retriable(self, exc: BaseException) -> bool:
        return isinstance(exc, self._config.retriable_exceptions)

    def compute_delay(self, attempt: int) -> float:
        """
        Delay in seconds to wait after the given (1-indexed) failed attempt.
        """
        exponent = max(attempt - 1, 0)
        base = self._config.initial_interval_ms * (self._config.multiplier**exponent)
        capped = min(base, self._config.max_interval_ms)

        jitter = (
            random.randint(0, self._config.jitter_ms)
            if self._config.jitter_ms > 0
            else 0
        )

        return (capped + jitter) / 1000.0

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str,
        context: Optional[dict[str, Any]] = None,
    ) -> T:
        """
        Run `operation` until it succeeds or the elapsed budget is spent.

        Raises
        ------
        DatabaseConnectionError
            When the budget would be exceeded by the next delay. Chained to
            the last failure.
        Exception
            Non-retriable failures propagate unchanged.
        """
        ctx_extra = context.copy() if context else {}
        ctx_extra["operation"] = operation_name

        started = self._clock()
        attempt = 0

        while True:
            attempt += 1

            try:
                logger.debug(
                    "Attempting connection",
                    extra={**ctx_extra, "attempt": attempt},
                )
                result = await operation()

                if attempt > 1:
                    logger.info(
                        "Connection established after retries",
                        extra={
                            **ctx_extra,
                            "attempts": attempt,
                            "elapsed_seconds": round(self._clock() - started, 3),
                        },
                    )
                return result

            except Exception as exc:
                if not self._is_retriable(exc):
                    logger.error(
                        "Connection attempt failed with non-retriable error",
                        extra={
                            **ctx_extra,
                            "attempt": attempt,
                            "error": str(exc),
                            "error_type": type(exc).__name__,
                        },
                        exc_info=True,
                    )
                    raise

                delay = self.compute_delay(attempt)
                elapsed = self._clock() - started

                if elapsed + delay > self._config.max_elapsed_seconds:
                    logger.error(
                        "Connection retry budget exhausted",
                        extra={
                            **ctx_extra,
                            "attempts": attempt,
                            "elapsed_seconds": round(elapsed, 3),
                            "max_elapsed_seconds": self._config.max_elapsed_seconds,
                            "error": str(exc),
                            "error_type": type(exc).__name__,
                        },
                    )
                    raise DatabaseConnectionError(attempt, elapsed, exc) from exc

                logger.warning(
                    "Connection attempt failed, retrying",
                    extra={
                        **ctx_extra,
                        "attempt": attempt,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "next_attempt_in": round(delay, 3),
                    },
                )

                await self._sleep(delay)
