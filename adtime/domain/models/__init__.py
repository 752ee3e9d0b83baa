"""
Domain models returned by the storage layer.

Domain models are frozen dataclasses and are separate from the database
models in `adtime.database.models`. Repositories convert between the two.
"""

from .agreement import UserAgreement
from .base import (
    DomainValidationError,
    validate_non_negative,
    validate_positive,
)
from .order import Order, OrderDraft
from .statistics import OrderStatistics, PeriodTotals
from .texture import Texture

__all__ = [
    "DomainValidationError",
    "validate_positive",
    "validate_non_negative",
    "Order",
    "OrderDraft",
    "Texture",
    "UserAgreement",
    "OrderStatistics",
    "PeriodTotals",
]
