"""
Caching primitives: the `CacheBackend` capability, the key layout and the
read-through helpers built on it.
"""

from adtime.core.cache.keys import ORDER_STATS_KEY, texture_key
from adtime.core.cache.protocol import CacheBackend
from adtime.core.cache.read_through import (
    TrustingReadThrough,
    ValidatedReadThrough,
    invalidate_keys,
)

__all__ = [
    "CacheBackend",
    "ORDER_STATS_KEY",
    "texture_key",
    "ValidatedReadThrough",
    "TrustingReadThrough",
    "invalidate_keys",
]
