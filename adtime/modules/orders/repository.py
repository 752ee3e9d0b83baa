"""
Order Repository

Purpose
-------
Data access for the `orders` table: insert, point and list reads, soft
delete and status updates. Returns `Order` domain models, never ORM rows.

Responsibilities
----------------
- Apply the soft-delete predicate (`live_orders()`) to every read and
  mutation unless the caller opts out with `include_deleted=True`
- Wrap SQLAlchemy and driver failures with the operation name and the
  identifiers involved
- Log every operation with latency

Non-Responsibilities
--------------------
- Cache invalidation (handled by OrderService)
- Business rules beyond the soft-delete policy
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import TYPE_CHECKING, Callable, List

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.exc import SQLAlchemyError

from adtime.core.database.base import utc_now
from adtime.core.exceptions import DatabaseError, OrderNotFoundError, OrderSaveError
from adtime.core.logging import get_logger
from adtime.database.models.order import OrderRecord
from adtime.domain.enums import OrderStatus
from adtime.domain.models.order import Order, OrderDraft

if TYPE_CHECKING:
    from sqlalchemy import Select

    from adtime.core.database.service import DatabaseService

logger = get_logger(__name__)

_DB_ERRORS = (SQLAlchemyError, OSError)


def live_orders() -> ColumnElement[bool]:
    """The one soft-delete predicate shared by every order query."""
    return OrderRecord.deleted_at.is_(None)


def newest_first(stmt: Select) -> Select:
    return stmt.order_by(OrderRecord.created_at.desc(), OrderRecord.id.desc())


class OrderRepository:
    """
    Data access layer for orders.

    Every method opens its own session or transaction through the injected
    `DatabaseService`.
    """

    def __init__(
        self,
        database_service: DatabaseService,
        *,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._db_service = database_service
        self._now = now

    # ═══════════════════════════════════════════════════════════════════════
    # WRITE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════

    async def insert(self, draft: OrderDraft) -> int:
        """
        Insert a new order and return its id.

        Raises
        ------
        OrderSaveError
            On any database failure. Not retried.
        """
        start_time = time.monotonic()
        created_at = draft.created_at or self._now()

        record = OrderRecord(
            user_id=draft.user_id,
            width_cm=draft.width_cm,
            height_cm=draft.height_cm,
            texture_id=draft.texture_id,
            texture_name=draft.texture_name,
            price=draft.price,
            leather_cost=draft.leather_cost,
            process_cost=draft.process_cost,
            total_cost=draft.total_cost,
            commission=draft.commission,
            tax=draft.tax,
            net_revenue=draft.net_revenue,
            profit=draft.profit,
            contact=draft.contact,
            status=draft.status.value,
            created_at=created_at,
            updated_at=created_at,
        )

        try:
            async with self._db_service.get_transaction() as session:
                session.add(record)
                await session.flush()
                order_id = record.id
        except _DB_ERRORS as exc:
            logger.error(
                "Failed to save order",
                extra={
                    "user_id": draft.user_id,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise OrderSaveError(exc, user_id=draft.user_id) from exc

        logger.info(
            "Order saved",
            extra={
                "order_id": order_id,
                "user_id": draft.user_id,
                "texture_id": draft.texture_id,
                "status": draft.status.value,
                "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return order_id

    async def soft_delete_for_user(self, user_id: int) -> int:
        """
        Mark every live order of `user_id` as deleted.

        Returns the number of rows newly marked. Already-deleted rows keep
        their original `deleted_at`.
        """
        start_time = time.monotonic()
        now = self._now()

        stmt = (
            update(OrderRecord)
            .where(OrderRecord.user_id == user_id, live_orders())
            .values(deleted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )

        try:
            async with self._db_service.get_transaction() as session:
                result = await session.execute(stmt)
                affected = result.rowcount or 0
        except _DB_ERRORS as exc:
            logger.error(
                "Failed to delete user data",
                extra={"user_id": user_id, "error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise DatabaseError("orders.delete_user_data", exc, user_id=user_id) from exc

        logger.info(
            "User orders soft-deleted",
            extra={
                "user_id": user_id,
                "affected": affected,
                "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return affected

    async def update_status(self, order_id: int, status: OrderStatus) -> None:
        """
        Set the status of a live order.

        Raises
        ------
        OrderNotFoundError
            If no live order has this id.
        """
        status = OrderStatus(status)
        stmt = (
            update(OrderRecord)
            .where(OrderRecord.id == order_id, live_orders())
            .values(status=status.value, updated_at=self._now())
            .execution_options(synchronize_session=False)
        )

        try:
            async with self._db_service.get_transaction() as session:
                result = await session.execute(stmt)
                affected = result.rowcount or 0
        except _DB_ERRORS as exc:
            logger.error(
                "Failed to update order status",
                extra={
                    "order_id": order_id,
                    "status": status.value,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise DatabaseError(
                "orders.update_status", exc, order_id=order_id, status=status.value
            ) from exc

        if affected == 0:
            raise OrderNotFoundError(order_id)

        logger.info(
            "Order status updated",
            extra={"order_id": order_id, "status": status.value},
        )

    # ═══════════════════════════════════════════════════════════════════════
    # QUERY OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════

    async def get_by_id(self, order_id: int, *, include_deleted: bool = False) -> Order:
        """
        Raises
        ------
        OrderNotFoundError
            If the order does not exist (or is soft-deleted and
            `include_deleted` is False).
        DataIntegrityError
            If the stored status is unknown.
        """
        stmt = select(OrderRecord).where(OrderRecord.id == order_id)
        if not include_deleted:
            stmt = stmt.where(live_orders())

        try:
            async with self._db_service.get_session() as session:
                record = (await session.execute(stmt)).scalar_one_or_none()
        except _DB_ERRORS as exc:
            logger.error(
                "Failed to load order",
                extra={"order_id": order_id, "error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise DatabaseError("orders.get_by_id", exc, order_id=order_id) from exc

        if record is None:
            raise OrderNotFoundError(order_id)

        return Order.from_db(record)

    async def list_for_user(self, user_id: int) -> List[Order]:
        """Live orders of one user, newest first."""
        stmt = newest_first(
            select(OrderRecord).where(OrderRecord.user_id == user_id, live_orders())
        )
        return await self._list(stmt, "orders.get_user_orders", user_id=user_id)

    async def list_all(self, *, include_deleted: bool = False) -> List[Order]:
        """Every order, newest first. Used read-only by report generation."""
        stmt = select(OrderRecord)
        if not include_deleted:
            stmt = stmt.where(live_orders())
        return await self._list(
            newest_first(stmt), "orders.get_all_orders", include_deleted=include_deleted
        )

    async def _list(self, stmt: Select, operation: str, **context: object) -> List[Order]:
        start_time = time.monotonic()
        try:
            async with self._db_service.get_session() as session:
                records = (await session.execute(stmt)).scalars().all()
        except _DB_ERRORS as exc:
            logger.error(
                "Failed to list orders",
                extra={
                    **context,
                    "query": operation,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise DatabaseError(operation, exc, **context) from exc

        orders = [Order.from_db(record) for record in records]
        logger.debug(
            "Orders listed",
            extra={
                **context,
                "query": operation,
                "count": len(orders),
                "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return orders
