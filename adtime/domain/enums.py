"""
Closed enumerations used at the storage boundary.

Both are persisted (or keyed) as their text value.
"""

from __future__ import annotations

from enum import Enum


class OrderStatus(str, Enum):
    NEW = "new"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class RateLimitAction(str, Enum):
    """User actions guarded by the per-user fixed-window limiter."""

    CREATE_ORDER = "create_order"
    CALCULATE_PRICE = "calculate_price"
    CONTACT_MANAGER = "contact_manager"
    DELETE_DATA = "delete_data"
