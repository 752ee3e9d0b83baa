"""
Order domain models.

`OrderDraft` is what a handler builds from a finished conversation and hands
to `save_order`. `Order` is what the store returns: the draft plus the
server-assigned id and lifecycle timestamps.

Monetary fields are non-negative except `profit`, which is negative for a
loss-making order. `total_cost = leather_cost + process_cost` is the caller's
arithmetic; it is not enforced here.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from adtime.core.exceptions import DataIntegrityError
from adtime.domain.enums import OrderStatus
from adtime.domain.models.base import (
    as_utc,
    optional_utc,
    validate_non_negative,
    validate_positive,
)

if TYPE_CHECKING:
    from adtime.database.models.order import OrderRecord


_NON_NEGATIVE_MONEY = (
    "price",
    "leather_cost",
    "process_cost",
    "total_cost",
    "commission",
    "tax",
    "net_revenue",
)


@dataclass(frozen=True)
class OrderDraft:
    """
    A new order, before the store assigns its id.

    `created_at` defaults to the time of insertion when left as None.
    """

    user_id: int
    width_cm: int
    height_cm: int
    texture_id: str
    texture_name: str = ""
    price: float = 0.0
    leather_cost: float = 0.0
    process_cost: float = 0.0
    total_cost: float = 0.0
    commission: float = 0.0
    tax: float = 0.0
    net_revenue: float = 0.0
    profit: float = 0.0
    contact: str = ""
    status: OrderStatus = OrderStatus.NEW
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        validate_positive(self.width_cm, "width_cm")
        validate_positive(self.height_cm, "height_cm")
        for name in _NON_NEGATIVE_MONEY:
            validate_non_negative(getattr(self, name), name)
        # Accept plain strings from callers, store the enum
        object.__setattr__(self, "status", OrderStatus(self.status))
        if self.created_at is not None:
            object.__setattr__(self, "created_at", as_utc(self.created_at))

    @property
    def area_dm2(self) -> float:
        return (self.width_cm * self.height_cm) / 100.0


@dataclass(frozen=True)
class Order:
    id: int
    user_id: int
    width_cm: int
    height_cm: int
    texture_id: str
    texture_name: str
    price: float
    leather_cost: float
    process_cost: float
    total_cost: float
    commission: float
    tax: float
    net_revenue: float
    profit: float
    contact: str
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = field(default=None)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_db(cls, row: OrderRecord) -> Order:
        """
        Convert a table row into a domain model.

        Raises
        ------
        DataIntegrityError
            If the stored status is not a known `OrderStatus`.
        """
        try:
            status = OrderStatus(row.status)
        except ValueError:
            raise DataIntegrityError("order", row.id, "status", row.status) from None

        return cls(
            id=row.id,
            user_id=row.user_id,
            width_cm=row.width_cm,
            height_cm=row.height_cm,
            texture_id=row.texture_id,
            texture_name=row.texture_name or "",
            price=row.price,
            leather_cost=row.leather_cost,
            process_cost=row.process_cost,
            total_cost=row.total_cost,
            commission=row.commission,
            tax=row.tax,
            net_revenue=row.net_revenue,
            profit=row.profit,
            contact=row.contact or "",
            status=status,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
            deleted_at=optional_utc(row.deleted_at),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view for report generation and logging."""
        data = asdict(self)
        data["status"] = self.status.value
        for key in ("created_at", "updated_at", "deleted_at"):
            value = data[key]
            data[key] = value.isoformat() if value is not None else None
        return data
