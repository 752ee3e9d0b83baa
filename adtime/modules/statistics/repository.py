"""
Statistics Repository

Aggregate queries over live orders. Period boundaries are anchored at the
start of the current UTC day: "today" is since midnight, "week" and "month"
are the trailing 7 and 30 days counted back from that midnight.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from adtime.core.exceptions import StatisticsError
from adtime.core.logging import get_logger
from adtime.database.models.order import OrderRecord
from adtime.domain.models.statistics import OrderStatistics, PeriodTotals
from adtime.modules.orders.repository import live_orders

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from adtime.core.database.service import DatabaseService

logger = get_logger(__name__)

WEEK = timedelta(days=7)
MONTH = timedelta(days=30)


def start_of_utc_day(now: datetime) -> datetime:
    now = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class StatisticsRepository:
    def __init__(self, database_service: DatabaseService) -> None:
        self._db_service = database_service

    async def _period_totals(
        self,
        session: AsyncSession,
        query: str,
        since: Optional[datetime] = None,
    ) -> PeriodTotals:
        stmt = select(
            func.count(OrderRecord.id),
            func.coalesce(func.sum(OrderRecord.price), 0.0),
        ).where(live_orders())
        if since is not None:
            stmt = stmt.where(OrderRecord.created_at >= since)

        try:
            orders, revenue = (await session.execute(stmt)).one()
        except (SQLAlchemyError, OSError) as exc:
            raise StatisticsError(query, exc) from exc
        return PeriodTotals(orders=int(orders), revenue=float(revenue))

    async def _status_counts(self, session: AsyncSession) -> Dict[str, int]:
        stmt = (
            select(OrderRecord.status, func.count(OrderRecord.id))
            .where(live_orders())
            .group_by(OrderRecord.status)
        )
        try:
            rows = (await session.execute(stmt)).all()
        except (SQLAlchemyError, OSError) as exc:
            raise StatisticsError("status_counts", exc) from exc
        return {status: int(count) for status, count in rows}

    async def compute(self, now: datetime) -> OrderStatistics:
        """
        Run the four period aggregates and the status breakdown.

        Raises
        ------
        StatisticsError
            If any single query fails. No partial result is returned.
        """
        start_time = time.monotonic()
        today_start = start_of_utc_day(now)

        try:
            async with self._db_service.get_session() as session:
                total = await self._period_totals(session, "total")
                today = await self._period_totals(session, "today", today_start)
                week = await self._period_totals(session, "week", today_start - WEEK)
                month = await self._period_totals(session, "month", today_start - MONTH)
                status_counts = await self._status_counts(session)
        except StatisticsError as exc:
            logger.error(
                "Statistics query failed",
                extra={"query": exc.query, "error": str(exc.original_error)},
                exc_info=True,
            )
            raise
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "Statistics session failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise StatisticsError("session", exc) from exc

        logger.info(
            "Order statistics computed",
            extra={
                "total_orders": total.orders,
                "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return OrderStatistics.from_periods(
            total=total,
            today=today,
            week=week,
            month=month,
            status_counts=status_counts,
        )
