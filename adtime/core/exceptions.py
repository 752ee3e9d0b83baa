"""
Infrastructure and storage exceptions for the Adtime order bot.

Purpose
-------
Define the structured exception hierarchy raised by the storage layer:
connection establishment, database and cache failures, not-found lookups,
data-integrity violations and rate limiting.

Design Notes
------------
- All exceptions inherit from `AdtimeInfrastructureException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the caller may retry the operation
  - `error_code`: short, stable identifier for programmatic use
- Callers distinguish failures by class (`isinstance`), never by message text.
- Underlying exceptions are always chained with `raise ... from exc`.
- Helper functions (`is_transient_error`, `get_error_severity`, `should_alert`)
  centralize common exception handling patterns.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning (e.g., rate limit hits)
    INFO = "info"  # Normal operation (e.g., not-found lookups)
    WARNING = "warning"  # Concerning but handled (e.g., retryable errors)
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # System-level failures requiring immediate action


class AdtimeInfrastructureException(Exception):
    """
    Base exception for all Adtime infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise AdtimeInfrastructureException(
        ...     "Database connection failed",
        ...     {"host": "localhost", "port": 5432}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


# ============================================================================
# Configuration & Connection
# ============================================================================


class ConfigurationError(AdtimeInfrastructureException):
    """
    Raised when a configuration key is invalid or missing.

    Args:
        config_key: The configuration key that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    DEFAULT_RETRYABLE = False

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "message": message},
            error_code="CONFIG_ERROR",
        )


class DatabaseConnectionError(AdtimeInfrastructureException):
    """
    Raised when the database cannot be reached within the retry budget.

    This is the only unrecoverable storage error: the process cannot serve
    requests without a database connection and should abort start-up.

    Args:
        attempts: Number of connection attempts made
        elapsed_seconds: Time spent retrying before giving up
        original_error: The last connection failure
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    DEFAULT_RETRYABLE = False

    def __init__(
        self,
        attempts: int,
        elapsed_seconds: float,
        original_error: BaseException,
    ) -> None:
        self.attempts = attempts
        self.elapsed_seconds = elapsed_seconds
        self.original_error = original_error
        super().__init__(
            f"Failed to connect to database after {attempts} attempts "
            f"({elapsed_seconds:.1f}s): {original_error}",
            details={
                "attempts": attempts,
                "elapsed_seconds": round(elapsed_seconds, 3),
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="DATABASE_CONNECT_FAILED",
        )


# ============================================================================
# Database
# ============================================================================


class DatabaseError(AdtimeInfrastructureException):
    """
    Raised when a database operation fails.

    Represents infrastructure-level failures that may be transient
    (connection loss, timeouts) or persistent (constraint violations).

    Args:
        operation: Name of the storage operation that failed
        original_error: The underlying database exception
        **context: Entity identifiers to attach to the error details
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    ERROR_CODE = "DATABASE_ERROR"

    def __init__(
        self,
        operation: str,
        original_error: BaseException,
        **context: Any,
    ) -> None:
        self.operation = operation
        self.original_error = original_error
        self.context = context
        super().__init__(
            f"Database error during {operation}: {original_error}",
            details={
                "operation": operation,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
                **context,
            },
            error_code=self.ERROR_CODE,
        )


class OrderSaveError(DatabaseError):
    """Raised when inserting a new order fails. Never retried by the store."""

    ERROR_CODE = "ORDER_SAVE_FAILED"

    def __init__(self, original_error: BaseException, user_id: int) -> None:
        super().__init__("orders.save", original_error, user_id=user_id)


class StatisticsError(DatabaseError):
    """
    Raised when one of the statistics aggregate queries fails.

    Partial statistics are never returned; `query` names the failing step.
    """

    ERROR_CODE = "STATISTICS_FAILED"

    def __init__(self, query: str, original_error: BaseException) -> None:
        self.query = query
        super().__init__("statistics.compute", original_error, query=query)


class DataIntegrityError(AdtimeInfrastructureException):
    """
    Raised when a row read from the database holds semantically invalid data.

    Indicates an upstream data-entry defect, not a caller mistake.

    Args:
        entity: Entity type (e.g. "order", "texture")
        identifier: Entity identifier
        field: Offending field name
        value: Offending value
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = False

    ERROR_CODE = "DATA_INTEGRITY"

    def __init__(self, entity: str, identifier: Any, field: str, value: Any) -> None:
        self.entity = entity
        self.identifier = identifier
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid {field} for {entity} {identifier}: {value!r}",
            details={
                "entity": entity,
                "identifier": identifier,
                "field": field,
                "value": value,
            },
            error_code=self.ERROR_CODE,
        )


class InvalidTexturePriceError(DataIntegrityError):
    """Raised when a texture loaded from the database has a non-positive price."""

    ERROR_CODE = "INVALID_TEXTURE_PRICE"

    def __init__(self, texture_id: str, price: float) -> None:
        super().__init__("texture", texture_id, "price_per_dm2", price)


# ============================================================================
# Not Found
# ============================================================================


class NotFoundError(AdtimeInfrastructureException):
    """
    Raised when a point lookup finds no row.

    Expected in normal operation; callers usually translate it into a
    user-facing message.
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, entity: str, lookup: str, identifier: Any) -> None:
        self.entity = entity
        self.lookup = lookup
        self.identifier = identifier
        super().__init__(
            f"{entity.capitalize()} not found: {lookup}={identifier!r}",
            details={"entity": entity, lookup: identifier},
            error_code=f"{entity.upper()}_NOT_FOUND",
        )


class OrderNotFoundError(NotFoundError):
    """Raised when no live order exists for the requested id."""

    def __init__(self, order_id: int) -> None:
        self.order_id = order_id
        super().__init__("order", "order_id", order_id)


class TextureNotFoundError(NotFoundError):
    """Raised when no texture matches the requested id or name."""

    def __init__(self, identifier: str, lookup: str = "texture_id") -> None:
        super().__init__("texture", lookup, identifier)


# ============================================================================
# Cache / Redis
# ============================================================================


class RedisConnectionError(AdtimeInfrastructureException):
    """
    Raised when the Redis client cannot be created or does not answer PING.

    Args:
        operation: Description of the Redis operation that failed
        original_error: The underlying Redis exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, original_error: BaseException) -> None:
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Redis error during {operation}: {original_error}",
            details={
                "operation": operation,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="REDIS_ERROR",
        )


class CacheError(AdtimeInfrastructureException):
    """
    Raised when a cache operation fails.

    Args:
        operation: Cache command that failed (GET, SET, INCR, ...)
        cache_key: The cache key involved in the failure
        original_error: The underlying exception (if any)
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(
        self,
        operation: str,
        cache_key: str,
        original_error: Optional[BaseException] = None,
    ) -> None:
        self.operation = operation
        self.cache_key = cache_key
        self.original_error = original_error
        error_msg = str(original_error) if original_error else "Cache operation failed"
        super().__init__(
            f"Cache error during {operation} for key '{cache_key}': {error_msg}",
            details={
                "operation": operation,
                "cache_key": cache_key,
                "error": error_msg,
                "error_type": (
                    type(original_error).__name__ if original_error else None
                ),
            },
            error_code="CACHE_ERROR",
        )


class RateLimitExceededError(AdtimeInfrastructureException):
    """Raised by `RateLimiter.check_or_raise` when a user exceeds a limit."""

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG
    DEFAULT_RETRYABLE = False

    def __init__(self, user_id: int, action: str, limit: int, window_seconds: int) -> None:
        self.user_id = user_id
        self.action = action
        self.limit = limit
        self.window_seconds = window_seconds
        super().__init__(
            f"Rate limit exceeded for user {user_id} on '{action}' "
            f"(limit={limit}, window_seconds={window_seconds})",
            details={
                "user_id": user_id,
                "action": action,
                "limit": limit,
                "window_seconds": window_seconds,
            },
            error_code="RATE_LIMITED",
        )


# Utility functions for exception handling patterns


def is_transient_error(exc: BaseException) -> bool:
    """
    Check if an exception represents a transient error that can be retried.

    Args:
        exc: Exception to check

    Returns:
        True if error is retryable, False otherwise.
    """
    if isinstance(exc, AdtimeInfrastructureException):
        return exc.is_retryable
    return False


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    """Get the severity level of an exception for logging."""
    if isinstance(exc, AdtimeInfrastructureException):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: BaseException) -> bool:
    """Return True if severity is ERROR or CRITICAL."""
    severity = get_error_severity(exc)
    return severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
