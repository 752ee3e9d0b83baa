"""
Redis Service - cache client for Adtime.

Purpose
-------
Thin, observable wrapper around one `redis.asyncio.Redis` client that
implements the `CacheBackend` capability (get, set with TTL, delete, incr,
expire, ttl).

Responsibilities
----------------
- Build the client from `RedisSettings` and verify it with PING
- Time every command and log it with latency
- Translate `redis.exceptions.RedisError` into `CacheError` carrying the
  command and key

Non-Responsibilities
--------------------
- Deciding what a cache failure means (read-through helpers treat it as a
  miss, the rate limiter surfaces it)
- Serialization (callers store JSON strings)

Usage Example
-------------
>>> redis_service = await RedisService.connect(RedisSettings.from_config())
>>> await redis_service.set("texture:oak", payload, ttl_seconds=86400)
>>> await redis_service.get("texture:oak")
>>> await redis_service.shutdown()
"""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from adtime.core.exceptions import CacheError, RedisConnectionError
from adtime.core.logging import get_logger
from adtime.core.redis.settings import RedisSettings

logger = get_logger(__name__)

T = TypeVar("T")


class RedisService:
    """
    Redis-backed `CacheBackend`.

    The client is constructed explicitly (usually via `connect`) and the
    service instance is passed to whoever needs the cache.
    """

    def __init__(self, client: AsyncRedis) -> None:
        self._client = client

    # ═══════════════════════════════════════════════════════════════════════
    # LIFECYCLE MANAGEMENT
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    async def connect(cls, settings: RedisSettings) -> RedisService:
        """
        Create a client from settings and verify it answers PING.

        Raises
        ------
        RedisConnectionError
            If the client cannot be created or PING fails.
        """
        start_time = time.monotonic()
        client: AsyncRedis = AsyncRedis(
            host=settings.host,
            port=settings.port,
            password=settings.password,
            db=settings.db,
            socket_timeout=settings.socket_timeout,
            max_connections=settings.max_connections,
            decode_responses=True,
        )

        try:
            await client.ping()  # type: ignore[misc]
        except (RedisError, OSError) as exc:
            await client.aclose()
            logger.critical(
                "Failed to connect to Redis",
                extra={
                    "addr": settings.addr,
                    "db": settings.db,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise RedisConnectionError("PING", exc) from exc

        logger.info(
            "RedisService initialized successfully",
            extra={
                "addr": settings.addr,
                "db": settings.db,
                "max_connections": settings.max_connections,
                "initialization_time_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return cls(client)

    async def shutdown(self) -> None:
        """Close the client and its connection pool."""
        await self._client.aclose()
        logger.info("RedisService shutdown complete")

    @property
    def client(self) -> AsyncRedis:
        return self._client

    # ═══════════════════════════════════════════════════════════════════════
    # HEALTH
    # ═══════════════════════════════════════════════════════════════════════

    async def health_check(self) -> bool:
        """PING Redis; returns False instead of raising."""
        start_time = time.monotonic()
        try:
            pong = await self._client.ping()  # type: ignore[misc]
        except (RedisError, OSError) as exc:
            logger.error(
                "Redis health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

        logger.debug(
            "Redis health check passed",
            extra={"latency_ms": round((time.monotonic() - start_time) * 1000, 2)},
        )
        return bool(pong)

    # ═══════════════════════════════════════════════════════════════════════
    # COMMANDS
    # ═══════════════════════════════════════════════════════════════════════

    async def _run(
        self,
        command: str,
        key: str,
        operation: Callable[[], Awaitable[T]],
        **log_extra: Any,
    ) -> T:
        start_time = time.monotonic()
        try:
            result = await operation()
        except RedisError as exc:
            logger.error(
                f"Redis {command} operation failed",
                extra={
                    "key": key,
                    **log_extra,
                    "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise CacheError(command, key, exc) from exc

        logger.debug(
            f"Redis {command} operation",
            extra={
                "key": key,
                **log_extra,
                "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return result

    async def get(self, key: str) -> Optional[str]:
        return await self._run("GET", key, lambda: self._client.get(key))

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        result = await self._run(
            "SET",
            key,
            lambda: self._client.set(key, value, ex=ttl_seconds),
            ttl_seconds=ttl_seconds,
        )
        return bool(result)

    async def delete(self, key: str) -> int:
        return int(await self._run("DEL", key, lambda: self._client.delete(key)))

    async def incr(self, key: str, amount: int = 1) -> int:
        return int(
            await self._run("INCR", key, lambda: self._client.incrby(key, amount), amount=amount)
        )

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        result = await self._run(
            "EXPIRE",
            key,
            lambda: self._client.expire(key, ttl_seconds),
            ttl_seconds=ttl_seconds,
        )
        return bool(result)

    async def ttl(self, key: str) -> int:
        return int(await self._run("TTL", key, lambda: self._client.ttl(key)))
