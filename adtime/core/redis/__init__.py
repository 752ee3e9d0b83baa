"""
Redis infrastructure for Adtime.

Exports
-------
RedisService  - cache client implementing `CacheBackend`
RedisSettings - connection settings snapshot
RateLimiter   - per-user fixed-window rate limiting
"""

from adtime.core.redis.rate_limiter import RateLimiter
from adtime.core.redis.service import RedisService
from adtime.core.redis.settings import RedisSettings

__all__ = [
    "RedisService",
    "RedisSettings",
    "RateLimiter",
]
