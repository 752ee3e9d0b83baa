"""
Core infrastructure layer for Adtime.

Purpose
-------
One import surface for the infrastructure subsystems:

- Configuration (Config, Environment)
- Database subsystem (DatabaseService, connection establishment)
- Redis subsystem (RedisService, RateLimiter)
- Logging (get_logger, LogContext)
- Infrastructure exceptions

Design Decisions
----------------
- Re-exports only: no logic, no configuration, no I/O.
- Feature modules import from their own subpackages, not from here.
"""

from adtime.core.config import Config, Environment
from adtime.core.database import (
    DatabaseService,
    DatabaseSettings,
    connect_database,
    initialize_database_subsystem,
    shutdown_database_subsystem,
)
from adtime.core.exceptions import (
    AdtimeInfrastructureException,
    CacheError,
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    DataIntegrityError,
    ErrorSeverity,
    InvalidTexturePriceError,
    NotFoundError,
    OrderNotFoundError,
    OrderSaveError,
    RateLimitExceededError,
    RedisConnectionError,
    StatisticsError,
    TextureNotFoundError,
)
from adtime.core.logging import LogContext, get_logger
from adtime.core.redis import RateLimiter, RedisService, RedisSettings

__all__ = [
    # Config
    "Config",
    "Environment",
    # Database
    "DatabaseService",
    "DatabaseSettings",
    "connect_database",
    "initialize_database_subsystem",
    "shutdown_database_subsystem",
    # Redis
    "RedisService",
    "RedisSettings",
    "RateLimiter",
    # Logging
    "get_logger",
    "LogContext",
    # Exceptions
    "AdtimeInfrastructureException",
    "ErrorSeverity",
    "ConfigurationError",
    "DatabaseConnectionError",
    "DatabaseError",
    "OrderSaveError",
    "StatisticsError",
    "DataIntegrityError",
    "InvalidTexturePriceError",
    "NotFoundError",
    "OrderNotFoundError",
    "TextureNotFoundError",
    "RedisConnectionError",
    "CacheError",
    "RateLimitExceededError",
]
