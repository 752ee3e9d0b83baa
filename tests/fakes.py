"""
In-memory test doubles.

`InMemoryCache` implements the `CacheBackend` capability with Redis-like
semantics (string values, INCR on missing keys, TTL -1/-2 codes) over a
controllable clock, and can be told to fail specific commands.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

from adtime.core.exceptions import CacheError


class FakeClock:
    """Monotonic clock plus an async sleep that advances it instead of waiting."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class InMemoryCache:
    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.clock = clock or FakeClock()
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self.failing: Set[str] = set()
        self.calls: List[Tuple[str, str]] = []

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def fail(self, *commands: str) -> None:
        """Make the named commands (GET, SET, DEL, INCR, EXPIRE, TTL) raise."""
        self.failing.update(commands)

    def recover(self) -> None:
        self.failing.clear()

    def count(self, command: str) -> int:
        return sum(1 for name, _ in self.calls if name == command)

    def _check(self, command: str, key: str) -> None:
        self.calls.append((command, key))
        if command in self.failing:
            raise CacheError(command, key, ConnectionError("cache unavailable"))

    def _live(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self._data[key]
            return None
        return entry

    # ------------------------------------------------------------------
    # CacheBackend
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Optional[str]:
        self._check("GET", key)
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        self._check("SET", key)
        expires_at = self.clock() + ttl_seconds if ttl_seconds else None
        self._data[key] = (value, expires_at)
        return True

    async def delete(self, key: str) -> int:
        self._check("DEL", key)
        if self._live(key) is None:
            return 0
        del self._data[key]
        return 1

    async def incr(self, key: str, amount: int = 1) -> int:
        self._check("INCR", key)
        entry = self._live(key)
        value, expires_at = entry if entry else ("0", None)
        new_value = int(value) + amount
        self._data[key] = (str(new_value), expires_at)
        return new_value

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        self._check("EXPIRE", key)
        entry = self._live(key)
        if entry is None:
            return False
        self._data[key] = (entry[0], self.clock() + ttl_seconds)
        return True

    async def ttl(self, key: str) -> int:
        self._check("TTL", key)
        entry = self._live(key)
        if entry is None:
            return -2
        _, expires_at = entry
        if expires_at is None:
            return -1
        return int(expires_at - self.clock())
