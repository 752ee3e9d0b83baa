"""
Storage Service
===============

Purpose
-------
Single entry point the bot handlers use for persistence: orders, textures,
user agreements, statistics and rate limiting.

Responsibilities
----------------
- Build every repository and service from one `DatabaseService` and one
  `CacheBackend` (constructor injection, no module-level singletons)
- Delegate each operation to the service that owns it
- Start and stop the underlying engine and Redis client
  (`initialize_storage` / `shutdown_storage`)

Non-Responsibilities
--------------------
- Cache policy (owned by the individual services)
- Command handling, message formatting, report export

Usage
-----
    storage = await initialize_storage()
    try:
        order_id = await storage.save_order(draft)
    finally:
        await shutdown_storage(storage)
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from adtime.core.cache.protocol import CacheBackend
from adtime.core.config import Config
from adtime.core.database.base import utc_now
from adtime.core.database.bootstrap import (
    initialize_database_subsystem,
    shutdown_database_subsystem,
)
from adtime.core.database.retry_policy import ConnectRetryConfig
from adtime.core.database.service import DatabaseService
from adtime.core.database.settings import DatabaseSettings
from adtime.core.logging import get_logger
from adtime.core.redis.rate_limiter import RateLimiter
from adtime.core.redis.service import RedisService
from adtime.core.redis.settings import RedisSettings
from adtime.domain.enums import OrderStatus, RateLimitAction
from adtime.domain.models.agreement import UserAgreement
from adtime.domain.models.order import Order, OrderDraft
from adtime.domain.models.statistics import OrderStatistics
from adtime.domain.models.texture import Texture
from adtime.modules.agreements import AgreementRepository, AgreementService
from adtime.modules.orders import OrderRepository, OrderService
from adtime.modules.statistics import OrderStatisticsService, StatisticsRepository
from adtime.modules.textures import TextureRepository, TextureService
from adtime.modules.textures.service import DEFAULT_TEXTURE_TTL_SECONDS
from adtime.modules.statistics.service import DEFAULT_STATS_TTL_SECONDS

logger = get_logger(__name__)


class StorageService:
    """
    Facade over the order, texture, agreement and statistics services and
    the rate limiter.

    Every method is a thin delegate; see the owning service for the error
    contract.
    """

    def __init__(
        self,
        database: DatabaseService,
        cache: CacheBackend,
        *,
        texture_ttl_seconds: int = DEFAULT_TEXTURE_TTL_SECONDS,
        stats_ttl_seconds: int = DEFAULT_STATS_TTL_SECONDS,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._database = database
        self._cache = cache

        self.orders = OrderService(OrderRepository(database, now=now), cache)
        self.textures = TextureService(
            TextureRepository(database), cache, ttl_seconds=texture_ttl_seconds
        )
        self.agreements = AgreementService(AgreementRepository(database))
        self.statistics = OrderStatisticsService(
            StatisticsRepository(database), cache, ttl_seconds=stats_ttl_seconds, now=now
        )
        self.rate_limiter = RateLimiter(cache)

    @property
    def database(self) -> DatabaseService:
        return self._database

    @property
    def cache(self) -> CacheBackend:
        return self._cache

    # ═══════════════════════════════════════════════════════════════════════
    # ORDERS
    # ═══════════════════════════════════════════════════════════════════════

    async def save_order(self, draft: OrderDraft) -> int:
        return await self.orders.save_order(draft)

    async def get_order_by_id(self, order_id: int, *, include_deleted: bool = False) -> Order:
        return await self.orders.get_order_by_id(order_id, include_deleted=include_deleted)

    async def get_user_orders(self, user_id: int) -> List[Order]:
        return await self.orders.get_user_orders(user_id)

    async def get_all_orders(self, *, include_deleted: bool = False) -> List[Order]:
        return await self.orders.get_all_orders(include_deleted=include_deleted)

    async def delete_user_data(self, chat_id: int) -> int:
        return await self.orders.delete_user_data(chat_id)

    async def update_order_status(self, order_id: int, status: OrderStatus) -> None:
        await self.orders.update_order_status(order_id, status)

    # ═══════════════════════════════════════════════════════════════════════
    # TEXTURES
    # ═══════════════════════════════════════════════════════════════════════

    async def get_texture_by_id(self, texture_id: str) -> Texture:
        return await self.textures.get_texture_by_id(texture_id)

    async def get_texture_by_name(self, name: str) -> Texture:
        return await self.textures.get_texture_by_name(name)

    async def get_available_textures(self) -> List[Texture]:
        return await self.textures.get_available_textures()

    # ═══════════════════════════════════════════════════════════════════════
    # AGREEMENTS
    # ═══════════════════════════════════════════════════════════════════════

    async def save_user_agreement(self, user_id: int, phone_number: str) -> None:
        await self.agreements.save_user_agreement(user_id, phone_number)

    async def get_user_agreement(self, user_id: int) -> UserAgreement:
        return await self.agreements.get_user_agreement(user_id)

    # ═══════════════════════════════════════════════════════════════════════
    # STATISTICS & RATE LIMITING
    # ═══════════════════════════════════════════════════════════════════════

    async def get_order_statistics(self) -> OrderStatistics:
        return await self.statistics.get_order_statistics()

    async def check_rate_limit(
        self, user_id: int, action: RateLimitAction, limit: int, window_seconds: int
    ) -> bool:
        return await self.rate_limiter.check_rate_limit(user_id, action, limit, window_seconds)

    async def check_or_raise(
        self, user_id: int, action: RateLimitAction, limit: int, window_seconds: int
    ) -> None:
        await self.rate_limiter.check_or_raise(user_id, action, limit, window_seconds)

    async def reset_rate_limit(self, user_id: int, action: RateLimitAction) -> None:
        await self.rate_limiter.reset(user_id, action)

    # ═══════════════════════════════════════════════════════════════════════
    # HEALTH
    # ═══════════════════════════════════════════════════════════════════════

    async def health_check(self) -> Dict[str, Any]:
        """Database and cache liveness plus pool usage."""
        database_ok = await self._database.health_check()
        cache_ok = True
        if isinstance(self._cache, RedisService):
            cache_ok = await self._cache.health_check()

        return {
            "healthy": database_ok and cache_ok,
            "database": database_ok,
            "cache": cache_ok,
            "pool": self._database.get_pool_metrics(),
        }


# ============================================================================
# Lifecycle
# ============================================================================


async def initialize_storage(
    database_settings: Optional[DatabaseSettings] = None,
    redis_settings: Optional[RedisSettings] = None,
    retry_config: Optional[ConnectRetryConfig] = None,
    **connect_kwargs: Any,
) -> StorageService:
    """
    Connect to PostgreSQL (with retry) and Redis and wire the storage layer.

    Settings default to snapshots of `Config`.

    Raises
    ------
    DatabaseConnectionError
        If the database stays unreachable for the whole retry budget.
    RedisConnectionError
        If Redis does not answer PING. The database engine is disposed first.
    """
    start_time = time.monotonic()

    database = await initialize_database_subsystem(
        database_settings or DatabaseSettings.from_config(),
        retry_config or ConnectRetryConfig.from_config(),
        **connect_kwargs,
    )

    try:
        redis = await RedisService.connect(redis_settings or RedisSettings.from_config())
    except Exception:
        await shutdown_database_subsystem(database)
        raise

    storage = StorageService(
        database,
        redis,
        texture_ttl_seconds=Config.TEXTURE_CACHE_TTL_SECONDS,
        stats_ttl_seconds=Config.STATS_CACHE_TTL_SECONDS,
    )

    logger.info(
        "Storage initialized",
        extra={"startup_ms": round((time.monotonic() - start_time) * 1000, 2)},
    )
    return storage


async def shutdown_storage(storage: StorageService) -> None:
    """Close the Redis client and dispose the engine. Never raises."""
    if isinstance(storage.cache, RedisService):
        try:
            await storage.cache.shutdown()
        except Exception as exc:
            logger.error(
                "Error closing Redis client",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )

    await shutdown_database_subsystem(storage.database)
    logger.info("Storage shutdown complete")
