"""
Cache-coherent read path.

Two read-through shapes over a `CacheBackend`:

ValidatedReadThrough
    For read-mostly catalog data. A cached value is decoded and validated;
    a decode failure or a failed validation is logged and treated as a miss.
    A value loaded from the source that fails validation raises the error
    built by `on_invalid_source` and is never cached.

TrustingReadThrough
    For derived aggregates that are invalidated on every write. A cached
    value that decodes is returned as is.

Common rules
    - A cache read error is a miss.
    - A cache write error is logged, never raised.
    - Source errors propagate unchanged.

`invalidate_keys` is the write-side counterpart: it deletes stale keys after
a commit and logs, rather than raises, a failed delete.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from adtime.core.cache.protocol import CacheBackend
from adtime.core.exceptions import CacheError
from adtime.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Loader = Callable[[], Awaitable[T]]


class _CacheAccess(Generic[T]):
    def __init__(
        self,
        cache: CacheBackend,
        *,
        name: str,
        ttl_seconds: int,
        encode: Callable[[T], str],
        decode: Callable[[str], T],
    ) -> None:
        self._cache = cache
        self._name = name
        self._ttl_seconds = ttl_seconds
        self._encode = encode
        self._decode = decode

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    async def _read_raw(self, key: str) -> Optional[str]:
        try:
            return await self._cache.get(key)
        except CacheError as exc:
            logger.warning(
                "Cache read failed; treating as miss",
                extra={"cache": self._name, "key": key, "error": str(exc)},
            )
            return None

    def _decode_or_none(self, key: str, raw: str) -> Optional[T]:
        try:
            return self._decode(raw)
        except (ValueError, TypeError, KeyError) as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning(
                "Cached value could not be decoded; treating as miss",
                extra={
                    "cache": self._name,
                    "key": key,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return None

    async def _write(self, key: str, value: T) -> None:
        try:
            await self._cache.set(key, self._encode(value), ttl_seconds=self._ttl_seconds)
        except CacheError as exc:
            logger.warning(
                "Cache write failed",
                extra={"cache": self._name, "key": key, "error": str(exc)},
            )


class ValidatedReadThrough(_CacheAccess[T]):
    """
    Read-through that re-validates cached values.

    >>> textures = ValidatedReadThrough(
    ...     cache, name="texture", ttl_seconds=86400,
    ...     encode=Texture.to_json, decode=Texture.from_json,
    ...     validate=lambda t: t.price_per_dm2 > 0,
    ...     on_invalid_source=lambda t: InvalidTexturePriceError(t.id, t.price_per_dm2),
    ... )
    >>> texture = await textures.get("texture:oak", load_from_db)
    """

    def __init__(
        self,
        cache: CacheBackend,
        *,
        name: str,
        ttl_seconds: int,
        encode: Callable[[T], str],
        decode: Callable[[str], T],
        validate: Callable[[T], bool],
        on_invalid_source: Callable[[T], Exception],
    ) -> None:
        super().__init__(cache, name=name, ttl_seconds=ttl_seconds, encode=encode, decode=decode)
        self._validate = validate
        self._on_invalid_source = on_invalid_source

    async def get(self, key: str, load: Loader[T]) -> T:
        start_time = time.monotonic()

        raw = await self._read_raw(key)
        if raw is not None:
            cached = self._decode_or_none(key, raw)
            if cached is not None:
                if self._validate(cached):
                    logger.debug(
                        "Cache HIT",
                        extra={
                            "cache": self._name,
                            "key": key,
                            "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
                        },
                    )
                    return cached
                logger.warning(
                    "Cached value failed validation; treating as miss",
                    extra={"cache": self._name, "key": key},
                )

        logger.debug("Cache MISS", extra={"cache": self._name, "key": key})

        value = await load()
        if not self._validate(value):
            raise self._on_invalid_source(value)

        await self._write(key, value)
        return value


class TrustingReadThrough(_CacheAccess[T]):
    """Read-through that returns any decodable cached value without checks."""

    async def get(self, key: str, load: Loader[T]) -> T:
        raw = await self._read_raw(key)
        if raw is not None:
            cached = self._decode_or_none(key, raw)
            if cached is not None:
                logger.debug("Cache HIT", extra={"cache": self._name, "key": key})
                return cached

        logger.debug("Cache MISS", extra={"cache": self._name, "key": key})

        value = await load()
        await self._write(key, value)
        return value


async def invalidate_keys(cache: CacheBackend, *keys: str) -> int:
    """
    Delete cache keys made stale by a committed write.

    Returns the number of keys removed. Failures are logged; the write they
    follow has already committed and stays committed.
    """
    removed = 0
    for key in keys:
        try:
            removed += await cache.delete(key)
        except CacheError as exc:
            logger.error(
                "Cache invalidation failed",
                extra={"key": key, "error": str(exc), "error_type": type(exc).__name__},
            )
            continue
        logger.debug("Cache key invalidated", extra={"key": key})
    return removed
