"""
Shared validation helpers for domain value objects.

Domain models are frozen dataclasses, separate from the SQLAlchemy table
models. Repositories convert rows into domain models before returning them,
so ORM rows never leave the storage layer.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

Number = Union[int, float]


class DomainValidationError(ValueError):
    """
    Raised when a value object is constructed with invalid data.

    This signals a caller mistake (bad input), unlike `DataIntegrityError`
    which signals bad data already in the store.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_positive(value: Number, field_name: str) -> None:
    if value <= 0:
        raise DomainValidationError(
            f"{field_name} must be positive, got {value}",
            field=field_name,
        )


def validate_non_negative(value: Number, field_name: str) -> None:
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )


def as_utc(value: datetime) -> datetime:
    """
    Normalize a timestamp to aware UTC.

    Naive values are taken to be UTC already (SQLite drops the offset).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def optional_utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return as_utc(datetime.fromisoformat(value)) if value else None
