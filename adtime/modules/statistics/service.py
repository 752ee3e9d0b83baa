"""
Order Statistics Service

Serves `OrderStatistics` through a trusting read-through cache under
`order_stats` (one hour by default). Any decodable cached value is returned
as is; order mutations delete the key so the next read recomputes.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable

from adtime.core.cache.keys import ORDER_STATS_KEY
from adtime.core.cache.read_through import TrustingReadThrough
from adtime.core.database.base import utc_now
from adtime.domain.models.statistics import OrderStatistics

if TYPE_CHECKING:
    from adtime.core.cache.protocol import CacheBackend
    from adtime.modules.statistics.repository import StatisticsRepository

DEFAULT_STATS_TTL_SECONDS = 60 * 60


class OrderStatisticsService:
    def __init__(
        self,
        statistics_repository: StatisticsRepository,
        cache: CacheBackend,
        *,
        ttl_seconds: int = DEFAULT_STATS_TTL_SECONDS,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = statistics_repository
        self._now = now
        self._read_through: TrustingReadThrough[OrderStatistics] = TrustingReadThrough(
            cache,
            name="order_stats",
            ttl_seconds=ttl_seconds,
            encode=OrderStatistics.to_json,
            decode=OrderStatistics.from_json,
        )

    async def get_order_statistics(self) -> OrderStatistics:
        """
        Raises
        ------
        StatisticsError
            If the cache misses and any aggregate query fails.
        """
        return await self._read_through.get(
            ORDER_STATS_KEY,
            lambda: self._repository.compute(self._now()),
        )
