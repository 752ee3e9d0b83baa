"""
Order Service

Purpose
-------
Order operations exposed to the bot handlers. Reads delegate to the
repository; every mutation is followed by invalidation of the cached
statistics so the next statistics read recomputes them.

Write Discipline
----------------
A mutation and its invalidation run as one shielded unit
(`asyncio.shield`). Cancelling the caller after the commit cannot skip the
invalidation; the caller still sees `CancelledError`. Invalidation only
runs after a successful commit, and a failed invalidation is logged by
`invalidate_keys` without failing the committed write.
If the caller is cancelled and the write then fails, the failure is logged
from the task's done-callback, since nobody is left to receive it.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, List, TypeVar

from adtime.core.cache.keys import ORDER_STATS_KEY
from adtime.core.cache.read_through import invalidate_keys
from adtime.core.logging import get_logger
from adtime.domain.enums import OrderStatus
from adtime.domain.models.order import Order, OrderDraft

if TYPE_CHECKING:
    from adtime.core.cache.protocol import CacheBackend
    from adtime.modules.orders.repository import OrderRepository

logger = get_logger(__name__)

T = TypeVar("T")

# Writes still running after their caller was cancelled
_orphaned_writes: set[asyncio.Future] = set()


def _log_orphaned_failure(operation: str, task: asyncio.Future) -> None:
    _orphaned_writes.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Order write failed after the caller was cancelled",
            extra={
                "operation": operation,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=exc,
        )


async def _run_shielded(write: Callable[[], Awaitable[T]], operation: str) -> T:
    task = asyncio.ensure_future(write())
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        _orphaned_writes.add(task)
        task.add_done_callback(lambda done: _log_orphaned_failure(operation, done))
        raise


class OrderService:
    def __init__(self, order_repository: OrderRepository, cache: CacheBackend) -> None:
        self._repository = order_repository
        self._cache = cache

    async def _invalidate_statistics(self) -> None:
        await invalidate_keys(self._cache, ORDER_STATS_KEY)

    # ═══════════════════════════════════════════════════════════════════════
    # MUTATIONS
    # ═══════════════════════════════════════════════════════════════════════

    async def save_order(self, draft: OrderDraft) -> int:
        """
        Persist a new order and return its id.

        Raises
        ------
        OrderSaveError
            If the insert fails. Statistics are left untouched in that case.
        """

        async def write() -> int:
            order_id = await self._repository.insert(draft)
            await self._invalidate_statistics()
            return order_id

        return await _run_shielded(write, "orders.save")

    async def delete_user_data(self, chat_id: int) -> int:
        """
        Soft-delete every live order of the user. Idempotent.

        Returns the number of orders newly marked deleted.
        """

        async def write() -> int:
            affected = await self._repository.soft_delete_for_user(chat_id)
            if affected:
                await self._invalidate_statistics()
            else:
                logger.debug("No live orders to delete", extra={"chat_id": chat_id})
            return affected

        return await _run_shielded(write, "orders.delete_user_data")

    async def update_order_status(self, order_id: int, status: OrderStatus) -> None:
        """
        Raises
        ------
        OrderNotFoundError
            If no live order has this id.
        """

        async def write() -> None:
            await self._repository.update_status(order_id, status)
            await self._invalidate_statistics()

        await _run_shielded(write, "orders.update_status")

    # ═══════════════════════════════════════════════════════════════════════
    # READS
    # ═══════════════════════════════════════════════════════════════════════

    async def get_order_by_id(self, order_id: int, *, include_deleted: bool = False) -> Order:
        return await self._repository.get_by_id(order_id, include_deleted=include_deleted)

    async def get_user_orders(self, user_id: int) -> List[Order]:
        return await self._repository.list_for_user(user_id)

    async def get_all_orders(self, *, include_deleted: bool = False) -> List[Order]:
        return await self._repository.list_all(include_deleted=include_deleted)
