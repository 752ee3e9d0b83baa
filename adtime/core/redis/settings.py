"""
Immutable Redis settings snapshot built from Config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from adtime.core.config import Config
from adtime.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class RedisSettings:
    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    db: int = 0
    socket_timeout: int = 5
    max_connections: int = 50

    @staticmethod
    def parse_addr(addr: str) -> tuple[str, int]:
        """
        Split a "host:port" address. A missing port means 6379.

        >>> RedisSettings.parse_addr("cache:6380")
        ('cache', 6380)
        """
        host, sep, port = addr.strip().rpartition(":")
        if not sep:
            return addr.strip(), 6379
        if not host:
            raise ConfigurationError("REDIS_ADDR", f"missing host in {addr!r}")
        try:
            return host, int(port)
        except ValueError:
            raise ConfigurationError("REDIS_ADDR", f"invalid port in {addr!r}") from None

    @classmethod
    def from_config(cls) -> RedisSettings:
        host, port = cls.parse_addr(Config.REDIS_ADDR)
        return cls(
            host=host,
            port=port,
            password=Config.REDIS_PASSWORD,
            db=Config.REDIS_DB,
            socket_timeout=Config.REDIS_SOCKET_TIMEOUT,
            max_connections=Config.REDIS_MAX_CONNECTIONS,
        )

    @property
    def addr(self) -> str:
        return f"{self.host}:{self.port}"
