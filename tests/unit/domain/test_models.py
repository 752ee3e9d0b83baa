"""
Unit tests for the domain value objects.

Tests validation on construction and the JSON forms used by the cache.
"""

from datetime import datetime, timedelta, timezone

import pytest

from adtime.domain.enums import OrderStatus
from adtime.domain.models.base import DomainValidationError, as_utc
from adtime.domain.models.order import OrderDraft
from adtime.domain.models.statistics import OrderStatistics, PeriodTotals
from adtime.domain.models.texture import Texture


class TestOrderDraft:
    def test_valid_draft(self, make_draft):
        draft = make_draft(width_cm=50, height_cm=20)

        assert draft.status is OrderStatus.NEW
        assert draft.area_dm2 == 10.0

    @pytest.mark.parametrize("field", ["width_cm", "height_cm"])
    def test_dimensions_must_be_positive(self, make_draft, field):
        with pytest.raises(DomainValidationError) as exc_info:
            make_draft(**{field: 0})

        assert exc_info.value.field == field

    def test_negative_money_rejected(self, make_draft):
        with pytest.raises(DomainValidationError):
            make_draft(tax=-1.0)

    def test_negative_profit_allowed(self, make_draft):
        assert make_draft(profit=-100.0).profit == -100.0

    def test_status_string_coerced(self, make_draft):
        assert make_draft(status="shipped").status is OrderStatus.SHIPPED

    def test_unknown_status_rejected(self, make_draft):
        with pytest.raises(ValueError):
            make_draft(status="teleported")

    def test_created_at_normalised_to_utc(self, make_draft):
        local = datetime(2026, 3, 15, 15, 0, tzinfo=timezone(timedelta(hours=3)))

        draft = make_draft(created_at=local)

        assert draft.created_at == datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
        assert draft.created_at.utcoffset() == timedelta(0)


class TestAsUtc:
    def test_naive_is_taken_as_utc(self):
        assert as_utc(datetime(2026, 1, 1, 8)).tzinfo is timezone.utc


class TestTexture:
    def test_json_round_trip(self):
        texture = Texture(id="oak", name="Дуб", price_per_dm2=12.5, in_stock=False)

        assert Texture.from_json(texture.to_json()) == texture

    def test_has_valid_price(self):
        assert Texture(id="a", name="A", price_per_dm2=0.01).has_valid_price
        assert not Texture(id="a", name="A", price_per_dm2=0).has_valid_price

    def test_from_json_rejects_missing_fields(self):
        with pytest.raises(KeyError):
            Texture.from_json('{"id": "oak"}')


class TestOrderStatistics:
    def test_from_periods(self):
        stats = OrderStatistics.from_periods(
            total=PeriodTotals(10, 1000.0),
            today=PeriodTotals(1, 100.0),
            week=PeriodTotals(3, 300.0),
            month=PeriodTotals(6, 600.0),
            status_counts={"new": 4, "completed": 6},
        )

        assert stats.week_orders == 3
        assert stats.month_revenue == 600.0
        assert OrderStatistics.from_json(stats.to_json()) == stats
