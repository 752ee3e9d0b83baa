"""
Immutable database settings snapshot.

`DatabaseSettings.from_config()` reads Config once; the connection
establisher and services work from the snapshot for the lifetime of the
engine.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import URL

from adtime.core.config import Config
from adtime.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class DatabaseSettings:
    host: str
    port: int
    user: str
    password: str
    name: str
    max_open_conns: int = 25
    max_idle_conns: int = 10
    conn_max_lifetime_seconds: int = 300
    conn_max_idle_time_seconds: int = 60
    statement_timeout_ms: int = 30_000
    echo: bool = False
    drivername: str = "postgresql+asyncpg"

    def __post_init__(self) -> None:
        if self.max_idle_conns > self.max_open_conns:
            raise ConfigurationError(
                "DATABASE_MAX_IDLE_CONNS",
                f"max_idle_conns ({self.max_idle_conns}) exceeds "
                f"max_open_conns ({self.max_open_conns})",
            )

    @classmethod
    def from_config(cls) -> DatabaseSettings:
        return cls(
            host=Config.DATABASE_HOST,
            port=Config.DATABASE_PORT,
            user=Config.DATABASE_USER,
            password=Config.DATABASE_PASSWORD,
            name=Config.DATABASE_NAME,
            max_open_conns=Config.DATABASE_MAX_OPEN_CONNS,
            max_idle_conns=Config.DATABASE_MAX_IDLE_CONNS,
            conn_max_lifetime_seconds=Config.DATABASE_CONN_MAX_LIFETIME_SECONDS,
            conn_max_idle_time_seconds=Config.DATABASE_CONN_MAX_IDLE_TIME_SECONDS,
            statement_timeout_ms=Config.DATABASE_STATEMENT_TIMEOUT_MS,
            echo=Config.DATABASE_ECHO,
        )

    @property
    def url(self) -> URL:
        return URL.create(
            self.drivername,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.name,
        )

    @property
    def pool_size(self) -> int:
        return self.max_idle_conns

    @property
    def max_overflow(self) -> int:
        return self.max_open_conns - self.max_idle_conns

    def engine_kwargs(self) -> dict:
        """Pool arguments for `create_async_engine`."""
        return {
            "echo": self.echo,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            # 0 means connections are never recycled
            "pool_recycle": self.conn_max_lifetime_seconds or -1,
            "pool_pre_ping": True,
        }

    def log_summary(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "database": self.name,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_recycle": self.conn_max_lifetime_seconds,
            "conn_max_idle_time": self.conn_max_idle_time_seconds,
        }
