"""
Per-user fixed-window rate limiter.

Purpose
-------
Count actions per (user, action) in a Redis counter that expires after the
window. The first increment of a window sets the expiry; later increments
leave it untouched, so the window is anchored at the first hit. A counter
found without an expiry (its first EXPIRE failed) gets the window applied
again, so a lost EXPIRE cannot lock a user out for good.

Semantics
---------
- Key: `ratelimit:{user_id}:{action}`
- `check_rate_limit` returns True when the request is over the limit,
  i.e. when the post-increment count is strictly greater than `limit`.
  A limit of N permits exactly N actions per window.
- Bursts across a window boundary can reach 2 * limit. That is the accepted
  cost of a single counter per key.
- Backend failures surface as `RedisConnectionError`; the limiter does not
  decide to fail open or closed on the caller's behalf.

Usage
-----
>>> limiter = RateLimiter(redis_service)
>>> if await limiter.check_rate_limit(user_id, RateLimitAction.CREATE_ORDER, 3, 60):
...     return "Too many orders, try again in a minute"
"""

from __future__ import annotations

import time

from adtime.core.cache.protocol import CacheBackend
from adtime.core.exceptions import CacheError, RateLimitExceededError, RedisConnectionError
from adtime.core.logging import get_logger
from adtime.domain.enums import RateLimitAction

logger = get_logger(__name__)


class RateLimiter:
    def __init__(self, cache: CacheBackend) -> None:
        self._cache = cache

    @staticmethod
    def key_for(user_id: int, action: RateLimitAction) -> str:
        return f"ratelimit:{user_id}:{RateLimitAction(action).value}"

    async def check_rate_limit(
        self,
        user_id: int,
        action: RateLimitAction,
        limit: int,
        window_seconds: int,
    ) -> bool:
        """
        Count one action and report whether the user is now over `limit`.

        Returns
        -------
        bool
            True if the action exceeds the limit (deny), False otherwise.

        Raises
        ------
        RedisConnectionError
            If the counter cannot be incremented or its expiry set.
        """
        key = self.key_for(user_id, action)
        start_time = time.monotonic()

        try:
            count = await self._cache.incr(key)
            if count == 1:
                await self._cache.expire(key, window_seconds)
            elif await self._cache.ttl(key) == -1:
                # EXPIRE after the first INCR was lost; re-arm the window
                await self._cache.expire(key, window_seconds)
                logger.warning(
                    "Rate limit counter had no expiry; window re-armed",
                    extra={"user_id": user_id, "redis_key": key, "current_count": count},
                )
        except CacheError as exc:
            logger.error(
                "Rate limit check failed",
                extra={
                    "user_id": user_id,
                    "action": RateLimitAction(action).value,
                    "redis_key": key,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise RedisConnectionError("ratelimit.check", exc) from exc

        exceeded = count > limit
        log_extra = {
            "user_id": user_id,
            "redis_key": key,
            "limit": limit,
            "window_seconds": window_seconds,
            "current_count": count,
            "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
        }
        if exceeded:
            logger.info("Rate limit exceeded", extra=log_extra)
        else:
            logger.debug("Rate limit allowed", extra=log_extra)

        return exceeded

    async def check_or_raise(
        self,
        user_id: int,
        action: RateLimitAction,
        limit: int,
        window_seconds: int,
    ) -> None:
        """
        Exception-flavoured `check_rate_limit`.

        Raises
        ------
        RateLimitExceededError
            If the action exceeds the limit.
        """
        if await self.check_rate_limit(user_id, action, limit, window_seconds):
            raise RateLimitExceededError(
                user_id=user_id,
                action=RateLimitAction(action).value,
                limit=limit,
                window_seconds=window_seconds,
            )

    async def reset(self, user_id: int, action: RateLimitAction) -> None:
        """Drop the counter for (user, action). Administrative and testing use."""
        key = self.key_for(user_id, action)
        try:
            await self._cache.delete(key)
        except CacheError as exc:
            raise RedisConnectionError("ratelimit.reset", exc) from exc

        logger.info("Rate limit reset", extra={"user_id": user_id, "redis_key": key})
