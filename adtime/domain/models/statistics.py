"""
Aggregated order statistics.

Derived from order rows and never persisted. Cached as JSON under
`order_stats`.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Dict


@dataclass(frozen=True)
class PeriodTotals:
    orders: int = 0
    revenue: float = 0.0


@dataclass(frozen=True)
class OrderStatistics:
    total_orders: int = 0
    total_revenue: float = 0.0
    today_orders: int = 0
    today_revenue: float = 0.0
    week_orders: int = 0
    week_revenue: float = 0.0
    month_orders: int = 0
    month_revenue: float = 0.0
    status_counts: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_periods(
        cls,
        *,
        total: PeriodTotals,
        today: PeriodTotals,
        week: PeriodTotals,
        month: PeriodTotals,
        status_counts: Dict[str, int],
    ) -> OrderStatistics:
        return cls(
            total_orders=total.orders,
            total_revenue=total.revenue,
            today_orders=today.orders,
            today_revenue=today.revenue,
            week_orders=week.orders,
            week_revenue=week.revenue,
            month_orders=month.orders,
            month_revenue=month.revenue,
            status_counts=dict(status_counts),
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> OrderStatistics:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        status_counts = data.get("status_counts", {})
        if not isinstance(status_counts, dict):
            raise TypeError(
                f"status_counts must be an object, got {type(status_counts).__name__}"
            )
        return cls(
            total_orders=int(data["total_orders"]),
            total_revenue=float(data["total_revenue"]),
            today_orders=int(data["today_orders"]),
            today_revenue=float(data["today_revenue"]),
            week_orders=int(data["week_orders"]),
            week_revenue=float(data["week_revenue"]),
            month_orders=int(data["month_orders"]),
            month_revenue=float(data["month_revenue"]),
            status_counts={str(k): int(v) for k, v in status_counts.items()},
        )
