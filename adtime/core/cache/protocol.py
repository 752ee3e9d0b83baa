"""
Cache capability consumed by the read-through helpers, the rate limiter
and the write-path invalidation.

`RedisService` implements it over `redis.asyncio`; tests use an in-memory
fake with a controllable clock. Implementations raise `CacheError` when the
backend fails.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        ...

    async def delete(self, key: str) -> int:
        ...

    async def incr(self, key: str, amount: int = 1) -> int:
        ...

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        ...

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds; -1 without expiry, -2 when the key is missing."""
        ...
