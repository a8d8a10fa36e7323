"""
Tests for the forecasting engine.

Covers:
- Average daily usage windowing
- Reorder quantity: manual override, EOQ, maximum stock, reorder point
- EOQ parameters and the Wilson formula
- Service-level z-scores and optimal stock levels
- Stockout prediction
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from stock_engines.forecasting import (
    EoqParameters,
    average_daily_usage,
    economic_order_quantity,
    optimal_stock_levels,
    predict_stockout_date,
    reorder_quantity,
    service_level_z_score,
    usage_standard_deviation,
)
from stock_kernel.domain.inventory import MovementType


class TestAverageDailyUsage:

    def test_sums_consumption_and_sales_in_window(self, as_of, make_movement):
        movements = [
            make_movement(MovementType.CONSUMPTION, "-30", days_ago=2),
            make_movement(MovementType.SALE, "30", days_ago=10),
            make_movement(MovementType.PURCHASE, "500", days_ago=3),
            make_movement(MovementType.SALE, "100", days_ago=45),
        ]

        assert average_daily_usage("item-1", movements, as_of=as_of) == Decimal("2")

    def test_other_items_excluded(self, as_of, make_movement):
        movements = [make_movement(MovementType.SALE, "30", item_id="other")]

        assert average_daily_usage("item-1", movements, as_of=as_of) == Decimal("0")

    @pytest.mark.parametrize("window", [0, -5])
    def test_non_positive_window_is_zero(self, as_of, make_movement, window):
        movements = [make_movement(MovementType.SALE, "30")]

        assert average_daily_usage("item-1", movements, as_of=as_of, window_days=window) == 0

    def test_future_movements_excluded(self, as_of, make_movement):
        movements = [make_movement(MovementType.SALE, "30", days_ago=-1)]

        assert average_daily_usage("item-1", movements, as_of=as_of) == Decimal("0")


class TestEconomicOrderQuantity:

    def test_wilson_formula(self):
        # sqrt(2 * 1000 * 50 / 2) = sqrt(50000)
        assert economic_order_quantity(1000, 50, 2) == Decimal("223.61")

    def test_zero_demand(self):
        assert economic_order_quantity(0, 50, 2) == Decimal("0")

    def test_zero_holding_cost(self):
        assert economic_order_quantity(1000, 50, 0) == Decimal("0")

    def test_negative_inputs_rejected(self):
        with pytest.raises(ValueError):
            economic_order_quantity(-1, 50, 2)
        with pytest.raises(ValueError):
            economic_order_quantity(1, -50, 2)

    def test_eoq_parameters_validated(self):
        with pytest.raises(ValueError):
            EoqParameters(ordering_cost=Decimal("-1"))
        with pytest.raises(ValueError):
            EoqParameters(holding_cost_rate=Decimal("-0.1"))

    def test_eoq_parameters_coerce_to_decimal(self):
        params = EoqParameters(ordering_cost=75, holding_cost_rate="0.3")

        assert params.ordering_cost == Decimal("75")
        assert params.holding_cost_rate == Decimal("0.3")


class TestReorderQuantity:

    def test_manual_override_wins(self, make_item):
        item = make_item(reorder_quantity="50", current_stock="0")

        assert reorder_quantity(item, Decimal("100")) == Decimal("50")

    def test_zero_override_is_ignored(self, make_item):
        item = make_item(reorder_quantity="0", cost_price="10")

        assert reorder_quantity(item, Decimal("0")) == Decimal("0")

    def test_eoq_dominates_without_maximum(self, make_item):
        # usage 10/day: annual demand 3650, holding 10 * 0.20 = 2
        # EOQ = sqrt(2 * 3650 * 50 / 2) = sqrt(182500) = 427.20
        item = make_item(cost_price="10", current_stock="0")

        assert reorder_quantity(item, Decimal("10")) == Decimal("427.20")

    def test_maximum_stock_top_up(self, make_item):
        item = make_item(cost_price="10", current_stock="100", maximum_stock="1000")

        assert reorder_quantity(item, Decimal("10")) == Decimal("900")

    def test_reorder_point_shortfall(self, make_item):
        # Free holding cost makes EOQ 0; reorder point = 5 * (7 + 3) = 50
        item = make_item(cost_price="0", current_stock="20")

        assert reorder_quantity(item, Decimal("5")) == Decimal("50") - Decimal("20")

    def test_configured_eoq_parameters_used(self, make_item):
        item = make_item(cost_price="10", current_stock="0")
        params = EoqParameters(ordering_cost=Decimal("200"), holding_cost_rate=Decimal("0.20"))

        # sqrt(2 * 3650 * 200 / 2) = sqrt(730000) = 854.40
        assert reorder_quantity(item, Decimal("10"), eoq=params) == Decimal("854.40")

    def test_negative_lead_time_rejected(self, make_item):
        with pytest.raises(ValueError):
            reorder_quantity(make_item(), Decimal("1"), lead_time_days=-1)


class TestServiceLevel:

    def test_ninety_five_percent(self):
        assert abs(service_level_z_score("0.95") - Decimal("1.644854")) < Decimal("0.000001")

    def test_fifty_percent_is_zero(self):
        assert service_level_z_score("0.5") == Decimal("0")

    @pytest.mark.parametrize("level", ["0", "1", "1.5", "-0.1"])
    def test_out_of_range_rejected(self, level):
        with pytest.raises(ValueError):
            service_level_z_score(level)

    def test_std_dev_of_empty_history(self):
        assert usage_standard_deviation([]) == Decimal("0")


class TestOptimalStockLevels:

    def test_no_history_gives_zero_safety_stock(self, as_of, make_item):
        levels = optimal_stock_levels(make_item(cost_price="10"), [], as_of=as_of)

        assert levels.safety_stock == Decimal("0")
        assert levels.reorder_point == Decimal("0")
        assert levels.maximum_stock == Decimal("0")

    def test_levels_from_history(self, as_of, make_item, make_movement):
        item = make_item(cost_price="0", current_stock="0")
        movements = [
            make_movement(MovementType.SALE, "10", days_ago=1),
            make_movement(MovementType.SALE, "20", days_ago=2),
        ]

        levels = optimal_stock_levels(item, movements, as_of=as_of, lead_time_days=4)

        usage = Decimal("30") / Decimal("30")
        z = service_level_z_score("0.95")
        expected_safety = z * Decimal("5") * Decimal("2")
        assert levels.safety_stock == expected_safety
        assert levels.reorder_point == usage * 4 + expected_safety
        # EOQ is 0 at zero cost, so the order covers the reorder point shortfall
        assert levels.maximum_stock == levels.reorder_point + usage * (4 + 3)

    def test_values_never_negative(self, as_of, make_item, make_movement):
        item = make_item(current_stock="1000", maximum_stock="10", cost_price="1")
        movements = [make_movement(MovementType.SALE, "1")]

        levels = optimal_stock_levels(item, movements, as_of=as_of)

        assert levels.reorder_point >= 0
        assert levels.safety_stock >= 0
        assert levels.maximum_stock >= 0

    def test_invalid_service_level(self, as_of, make_item):
        with pytest.raises(ValueError):
            optimal_stock_levels(make_item(), [], as_of=as_of, service_level="1")


class TestPredictStockout:

    def test_projects_days_left(self, as_of, make_item, make_movement):
        item = make_item(current_stock="25")
        movements = [make_movement(MovementType.SALE, "60", days_ago=5)]

        # 2 per day, 25 / 2 = 12.5 -> 12 whole days
        assert predict_stockout_date(item, movements, as_of=as_of) == as_of + timedelta(days=12)

    def test_no_usage_returns_none(self, as_of, make_item):
        assert predict_stockout_date(make_item(current_stock="5"), [], as_of=as_of) is None

    def test_no_stock_returns_none(self, as_of, make_item, make_movement):
        movements = [make_movement(MovementType.SALE, "60")]

        assert predict_stockout_date(make_item(current_stock="0"), movements, as_of=as_of) is None
