"""
Database subsystem for Adtime.

Provides connection establishment with retry, async session management,
and the ORM base classes and mixins for model definitions.
"""

from adtime.core.database.base import (
    Base,
    IdMixin,
    SoftDeleteMixin,
    TimestampMixin,
    utc_now,
)
from adtime.core.database.bootstrap import (
    connect_database,
    initialize_database_subsystem,
    install_idle_timeout,
    shutdown_database_subsystem,
)
from adtime.core.database.retry_policy import ConnectRetryConfig, ConnectRetryPolicy
from adtime.core.database.service import DatabaseService
from adtime.core.database.settings import DatabaseSettings

__all__ = [
    # ORM Base & Mixins
    "Base",
    "IdMixin",
    "TimestampMixin",
    "SoftDeleteMixin",
    "utc_now",
    # Main service
    "DatabaseService",
    "DatabaseSettings",
    # Bootstrap
    "connect_database",
    "initialize_database_subsystem",
    "shutdown_database_subsystem",
    "install_idle_timeout",
    # Retry
    "ConnectRetryConfig",
    "ConnectRetryPolicy",
]
