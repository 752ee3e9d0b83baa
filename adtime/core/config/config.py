"""
Static configuration management for the Adtime order bot.

Purpose
-------
Provides centralized static configuration loaded from environment variables
with sensible defaults, type validation, and bounds checking. Values are read
once at start-up; subsystems take immutable snapshots of what they need
(`DatabaseSettings.from_config()`, `RedisSettings.from_config()`,
`ConnectRetryConfig.from_config()`).

Responsibilities
----------------
- Load configuration from environment variables with .env support
- Provide type-safe access to all static configuration values
- Validate critical settings on startup
- Track which values came from the environment versus defaults

Non-Responsibilities
--------------------
- Secrets management (use environment variables)
- Runtime configuration changes

Environment Variables
---------------------
Database:
- DATABASE_HOST, DATABASE_PORT, DATABASE_USER, DATABASE_PASSWORD, DATABASE_NAME
- DATABASE_MAX_OPEN_CONNS (default: 25)
- DATABASE_MAX_IDLE_CONNS (default: 10)
- DATABASE_CONN_MAX_LIFETIME_SECONDS (default: 300)
- DATABASE_CONN_MAX_IDLE_TIME_SECONDS (default: 60)
- DATABASE_STATEMENT_TIMEOUT_MS (default: 30000)
- DATABASE_ECHO (default: False)

Connection retry:
- DATABASE_CONNECT_INITIAL_INTERVAL_MS (default: 500)
- DATABASE_CONNECT_MULTIPLIER (default: 1.5)
- DATABASE_CONNECT_MAX_INTERVAL_MS (default: 15000)
- DATABASE_CONNECT_MAX_ELAPSED_SECONDS (default: 120)
- DATABASE_CONNECT_JITTER_MS (default: 0)

Redis:
- REDIS_ADDR (default: localhost:6379), REDIS_PASSWORD, REDIS_DB (default: 0)
- REDIS_SOCKET_TIMEOUT (default: 5), REDIS_MAX_CONNECTIONS (default: 50)

Cache:
- TEXTURE_CACHE_TTL_SECONDS (default: 86400)
- STATS_CACHE_TTL_SECONDS (default: 3600)

Environment:
- ENVIRONMENT (default: development), LOG_LEVEL (default: INFO), LOG_JSON
"""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        Example
        -------
        >>> Environment.from_string("production") == Environment.PRODUCTION
        True
        >>> Environment.from_string("invalid") == Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            logging.warning(f"Unknown environment '{value}', defaulting to development")
            return cls.DEVELOPMENT


class _ConfigLoadMetrics:
    """Tracks which configuration values came from the environment."""

    def __init__(self) -> None:
        self.env_vars_loaded: Dict[str, bool] = {}
        self.validation_errors: Dict[str, str] = {}
        self.defaults_used: Dict[str, Any] = {}

    def record_env_load(self, key: str, from_env: bool, default: Any) -> None:
        self.env_vars_loaded[key] = from_env
        if not from_env:
            self.defaults_used[key] = default

    def record_validation_error(self, key: str, error: str) -> None:
        self.validation_errors[key] = error

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "from_defaults": sum(1 for v in self.env_vars_loaded.values() if not v),
            "validation_errors": len(self.validation_errors),
            "defaults_used": list(self.defaults_used.keys()),
        }


class Config:
    """
    Centralized static configuration for the Adtime storage layer.

    Usage
    -----
    >>> Config.DATABASE_HOST
    'localhost'
    >>> if Config.is_production():
    ...     logger.info("Running in production mode")
    """

    _metrics: Optional[_ConfigLoadMetrics] = None

    # =========================================================================
    # Database Configuration
    # =========================================================================

    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = ""
    DATABASE_NAME: str = "adtime"
    DATABASE_MAX_OPEN_CONNS: int = 25
    DATABASE_MAX_IDLE_CONNS: int = 10
    DATABASE_CONN_MAX_LIFETIME_SECONDS: int = 300
    DATABASE_CONN_MAX_IDLE_TIME_SECONDS: int = 60
    DATABASE_STATEMENT_TIMEOUT_MS: int = 30_000
    DATABASE_ECHO: bool = False

    # =========================================================================
    # Connection Retry
    # =========================================================================

    DATABASE_CONNECT_INITIAL_INTERVAL_MS: int = 500
    DATABASE_CONNECT_MULTIPLIER: float = 1.5
    DATABASE_CONNECT_MAX_INTERVAL_MS: int = 15_000
    DATABASE_CONNECT_MAX_ELAPSED_SECONDS: int = 120
    DATABASE_CONNECT_JITTER_MS: int = 0

    # =========================================================================
    # Redis Configuration
    # =========================================================================

    REDIS_ADDR: str = "localhost:6379"
    REDIS_PASSWORD: Optional[str] = None
    REDIS_DB: int = 0
    REDIS_SOCKET_TIMEOUT: int = 5
    REDIS_MAX_CONNECTIONS: int = 50

    # =========================================================================
    # Cache TTLs
    # =========================================================================

    TEXTURE_CACHE_TTL_SECONDS: int = 24 * 60 * 60
    STATS_CACHE_TTL_SECONDS: int = 60 * 60

    # =========================================================================
    # Environment Configuration
    # =========================================================================

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @classmethod
    def _init_metrics(cls) -> None:
        if cls._metrics is None:
            cls._metrics = _ConfigLoadMetrics()

    @classmethod
    def _reject(cls, key: str, error: str) -> None:
        logging.warning(error)
        if cls._metrics:
            cls._metrics.record_validation_error(key, error)

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Safely parse integer from environment with validation.

        Out-of-range or unparsable values fall back to `default`.

        Example
        -------
        >>> Config._safe_int("DATABASE_MAX_OPEN_CONNS", 25, min_val=1, max_val=500)
        25
        """
        cls._init_metrics()

        raw_value = os.getenv(key)
        if raw_value is None:
            if cls._metrics:
                cls._metrics.record_env_load(key, False, default)
            return default

        try:
            value = int(raw_value)
        except ValueError:
            cls._reject(key, f"{key}='{raw_value}' is not a valid integer, using default {default}")
            return default

        if min_val is not None and value < min_val:
            cls._reject(key, f"{key}={value} is below minimum {min_val}, using default {default}")
            return default

        if max_val is not None and value > max_val:
            cls._reject(key, f"{key}={value} exceeds maximum {max_val}, using default {default}")
            return default

        if cls._metrics:
            cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_float(cls, key: str, default: float, min_val: Optional[float] = None) -> float:
        """Safely parse a float from environment; invalid values fall back to default."""
        cls._init_metrics()

        raw_value = os.getenv(key)
        if raw_value is None:
            if cls._metrics:
                cls._metrics.record_env_load(key, False, default)
            return default

        try:
            value = float(raw_value)
        except ValueError:
            cls._reject(key, f"{key}='{raw_value}' is not a valid number, using default {default}")
            return default

        if min_val is not None and value < min_val:
            cls._reject(key, f"{key}={value} is below minimum {min_val}, using default {default}")
            return default

        if cls._metrics:
            cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _parse_bool(cls, key: str, raw_value: str) -> Optional[bool]:
        normalized = raw_value.lower().strip()
        if normalized in {"true", "yes", "1", "on"}:
            return True
        if normalized in {"false", "no", "0", "off"}:
            return False
        return None

    @classmethod
    def _safe_bool(cls, key: str, default: bool) -> bool:
        """
        Safely parse boolean from environment.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).
        """
        cls._init_metrics()

        raw_value = os.getenv(key)
        if raw_value is None:
            if cls._metrics:
                cls._metrics.record_env_load(key, False, default)
            return default

        value = cls._parse_bool(key, raw_value)
        if value is None:
            cls._reject(key, f"{key}='{raw_value}' is not a valid boolean, using default {default}")
            return default

        if cls._metrics:
            cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        cls._init_metrics()
        value = os.getenv(key, default)
        if cls._metrics:
            cls._metrics.record_env_load(key, key in os.environ, default)
        return value

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """Load all configuration from environment variables with validation."""
        cls._init_metrics()

        # Database
        cls.DATABASE_HOST = cls._safe_str("DATABASE_HOST", "localhost")
        cls.DATABASE_PORT = cls._safe_int("DATABASE_PORT", 5432, min_val=1, max_val=65535)
        cls.DATABASE_USER = cls._safe_str("DATABASE_USER", "postgres")
        cls.DATABASE_PASSWORD = cls._safe_str("DATABASE_PASSWORD", "")
        cls.DATABASE_NAME = cls._safe_str("DATABASE_NAME", "adtime")
        cls.DATABASE_MAX_OPEN_CONNS = cls._safe_int(
            "DATABASE_MAX_OPEN_CONNS", 25, min_val=1, max_val=500
        )
        cls.DATABASE_MAX_IDLE_CONNS = cls._safe_int(
            "DATABASE_MAX_IDLE_CONNS", 10, min_val=1, max_val=500
        )
        cls.DATABASE_CONN_MAX_LIFETIME_SECONDS = cls._safe_int(
            "DATABASE_CONN_MAX_LIFETIME_SECONDS", 300, min_val=0
        )
        cls.DATABASE_CONN_MAX_IDLE_TIME_SECONDS = cls._safe_int(
            "DATABASE_CONN_MAX_IDLE_TIME_SECONDS", 60, min_val=0
        )
        cls.DATABASE_STATEMENT_TIMEOUT_MS = cls._safe_int(
            "DATABASE_STATEMENT_TIMEOUT_MS", 30_000, min_val=0
        )
        cls.DATABASE_ECHO = cls._safe_bool("DATABASE_ECHO", False)

        # Connection retry
        cls.DATABASE_CONNECT_INITIAL_INTERVAL_MS = cls._safe_int(
            "DATABASE_CONNECT_INITIAL_INTERVAL_MS", 500, min_val=1
        )
        cls.DATABASE_CONNECT_MULTIPLIER = cls._safe_float(
            "DATABASE_CONNECT_MULTIPLIER", 1.5, min_val=1.0
        )
        cls.DATABASE_CONNECT_MAX_INTERVAL_MS = cls._safe_int(
            "DATABASE_CONNECT_MAX_INTERVAL_MS", 15_000, min_val=1
        )
        cls.DATABASE_CONNECT_MAX_ELAPSED_SECONDS = cls._safe_int(
            "DATABASE_CONNECT_MAX_ELAPSED_SECONDS", 120, min_val=1
        )
        cls.DATABASE_CONNECT_JITTER_MS = cls._safe_int(
            "DATABASE_CONNECT_JITTER_MS", 0, min_val=0
        )

        # Redis
        cls.REDIS_ADDR = cls._safe_str("REDIS_ADDR", "localhost:6379")
        cls.REDIS_PASSWORD = os.getenv("REDIS_PASSWORD") or None
        cls.REDIS_DB = cls._safe_int("REDIS_DB", 0, min_val=0, max_val=15)
        cls.REDIS_SOCKET_TIMEOUT = cls._safe_int("REDIS_SOCKET_TIMEOUT", 5, min_val=1, max_val=60)
        cls.REDIS_MAX_CONNECTIONS = cls._safe_int(
            "REDIS_MAX_CONNECTIONS", 50, min_val=1, max_val=500
        )

        # Cache TTLs
        cls.TEXTURE_CACHE_TTL_SECONDS = cls._safe_int(
            "TEXTURE_CACHE_TTL_SECONDS", 24 * 60 * 60, min_val=1
        )
        cls.STATS_CACHE_TTL_SECONDS = cls._safe_int(
            "STATS_CACHE_TTL_SECONDS", 60 * 60, min_val=1
        )

        # Environment
        cls.ENVIRONMENT = cls._safe_str("ENVIRONMENT", "development")
        cls.LOG_LEVEL = cls._safe_str("LOG_LEVEL", "INFO")
        raw_json = os.getenv("LOG_JSON")
        cls.LOG_JSON = cls._parse_bool("LOG_JSON", raw_json) if raw_json is not None else None

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if cls.LOG_LEVEL.upper() not in valid_log_levels:
            cls._reject("LOG_LEVEL", f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
            cls.LOG_LEVEL = "INFO"

    # =========================================================================
    # Environment Checks
    # =========================================================================

    @classmethod
    def environment(cls) -> Environment:
        return Environment.from_string(cls.ENVIRONMENT)

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.environment() is Environment.PRODUCTION

    @classmethod
    def is_testing(cls) -> bool:
        """Check if running in testing environment."""
        return cls.environment() is Environment.TESTING

    # =========================================================================
    # Metrics & Summary
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Optional[_ConfigLoadMetrics]:
        """Get configuration loading metrics."""
        return cls._metrics

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """
        Get non-sensitive configuration summary for debugging.

        Passwords are reported only as "set"/"not set".
        """
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "database_host": cls.DATABASE_HOST,
            "database_name": cls.DATABASE_NAME,
            "database_max_open_conns": cls.DATABASE_MAX_OPEN_CONNS,
            "database_max_idle_conns": cls.DATABASE_MAX_IDLE_CONNS,
            "database_password_set": bool(cls.DATABASE_PASSWORD),
            "redis_addr": cls.REDIS_ADDR,
            "redis_db": cls.REDIS_DB,
            "redis_password_set": bool(cls.REDIS_PASSWORD),
        }


# Load on import
Config.load()
