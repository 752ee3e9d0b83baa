"""
OrderRecord: customer orders.
Pure schema only. Rows are soft-deleted via `deleted_at`.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adtime.core.database.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin
from adtime.domain.enums import OrderStatus


class OrderRecord(Base, IdMixin, TimestampMixin, SoftDeleteMixin):
    """
    Schema-only:
    - owner (user_id) and dimensions
    - texture reference with denormalised name
    - final price and cost breakdown
    - contact and lifecycle status (text, validated on read)
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_user_created", "user_id", "created_at"),
        Index("ix_orders_status", "status"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    width_cm: Mapped[int] = mapped_column(Integer, nullable=False)
    height_cm: Mapped[int] = mapped_column(Integer, nullable=False)

    texture_id: Mapped[str] = mapped_column(String(64), nullable=False)
    texture_name: Mapped[str] = mapped_column(Text, nullable=False, default="")

    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    leather_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    process_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    commission: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tax: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    net_revenue: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    profit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    contact: Mapped[str] = mapped_column(Text, nullable=False, default="")

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=OrderStatus.NEW.value,
    )
