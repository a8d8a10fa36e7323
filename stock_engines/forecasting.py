"""
stock_engines.forecasting -- Usage rate, reorder quantity, safety stock, stockout.

Responsibility:
    Turn the consumption history in the movement ledger into replenishment
    decisions: average daily usage, how much to reorder (manual override,
    Economic Order Quantity, or top-up to maximum), service-level driven
    reorder point / safety stock / maximum stock, and the projected
    stockout date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain and sibling engines (ledger).

Invariants enforced:
    - Purity: ``as_of`` is always a parameter; the clock is never read.
    - Manual override wins: an item with ``reorder_quantity > 0`` gets
      exactly that quantity back.
    - EOQ inputs (ordering cost, holding-cost rate) are configuration
      carried in ``EoqParameters``, never literals inside the formula.
    - All stock-level outputs are clamped to >= 0.

Failure modes:
    - Degenerate math returns 0: usage over a non-positive window, EOQ with
      no demand or no holding cost, std-dev of an empty history.
    - ValueError on caller errors: negative lead time, service level
      outside (0, 1), negative EOQ inputs.

Usage:
    from stock_engines.forecasting import average_daily_usage, reorder_quantity

    usage = average_daily_usage(item.id, movements, as_of=now)
    qty = reorder_quantity(item, usage, lead_time_days=5)
"""

from __future__ import annotations

import statistics
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_FLOOR, Decimal

from stock_kernel.domain.inventory import USAGE_TYPES, InventoryItem, StockMovement
from stock_kernel.domain.values import ZERO, Numeric, to_decimal
from stock_kernel.logging_config import get_logger
from stock_engines.ledger import filter_movements, total_magnitude, window_start
from stock_engines.tracer import traced_engine

logger = get_logger("engines.forecasting")

DAYS_PER_YEAR = Decimal("365")


@dataclass(frozen=True)
class EoqParameters:
    """
    Cost inputs to the Economic Order Quantity formula.

    ``ordering_cost`` is the fixed cost of placing one order;
    ``holding_cost_rate`` is the annual cost of holding one unit as a
    fraction of its cost price.
    """

    ordering_cost: Decimal = Decimal("50")
    holding_cost_rate: Decimal = Decimal("0.20")

    def __post_init__(self) -> None:
        object.__setattr__(self, "ordering_cost", to_decimal(self.ordering_cost))
        object.__setattr__(self, "holding_cost_rate", to_decimal(self.holding_cost_rate))
        if self.ordering_cost < 0:
            raise ValueError(f"ordering_cost must be non-negative, got {self.ordering_cost}")
        if self.holding_cost_rate < 0:
            raise ValueError(
                f"holding_cost_rate must be non-negative, got {self.holding_cost_rate}"
            )


DEFAULT_EOQ_PARAMETERS = EoqParameters()


@dataclass(frozen=True)
class OptimalStockLevels:
    """Service-level driven stock targets for one item."""

    reorder_point: Decimal
    safety_stock: Decimal
    maximum_stock: Decimal


# =============================================================================
# Usage
# =============================================================================


@traced_engine("forecasting", "1.0", fingerprint_fields=("item_id", "as_of", "window_days"))
def average_daily_usage(
    item_id: str,
    movements: Sequence[StockMovement],
    *,
    as_of: datetime,
    window_days: int = 30,
) -> Decimal:
    """
    Average units consumed per day over the trailing window.

    Counts consumption and sale movements of ``item_id`` dated within
    ``[as_of - window_days, as_of]``.  Returns 0 when ``window_days <= 0``.
    """
    if window_days <= 0:
        return ZERO

    usage = filter_movements(
        movements,
        item_id,
        USAGE_TYPES,
        since=window_start(as_of, window_days),
        until=as_of,
    )
    total = total_magnitude(usage)
    rate = total / Decimal(window_days)

    logger.debug("average_daily_usage_calculated", extra={
        "item_id": item_id,
        "window_days": window_days,
        "usage_movements": len(usage),
        "total_usage": str(total),
        "daily_usage": str(rate),
    })
    return rate


def usage_history(item_id: str, movements: Sequence[StockMovement]) -> list[Decimal]:
    """Per-movement usage magnitudes for ``item_id`` over the whole ledger."""
    return [m.magnitude for m in filter_movements(movements, item_id, USAGE_TYPES)]


def usage_standard_deviation(history: Sequence[Decimal]) -> Decimal:
    """Population standard deviation of ``history`` (0 when empty)."""
    if not history:
        return ZERO
    return to_decimal(statistics.pstdev(history))


# =============================================================================
# Reorder quantity
# =============================================================================


def economic_order_quantity(
    annual_demand: Numeric,
    order_cost: Numeric,
    holding_cost: Numeric,
) -> Decimal:
    """
    Economic Order Quantity using the Wilson formula.

    Formula: ``EOQ = sqrt(2 * D * S / H)``, rounded to 2 decimal places.

    Returns 0 when annual demand or holding cost is 0 (no meaningful order
    size exists).

    Raises:
        ValueError: If any input is negative.
    """
    demand = to_decimal(annual_demand)
    order = to_decimal(order_cost)
    holding = to_decimal(holding_cost)
    if demand < 0:
        raise ValueError(f"annual_demand must be non-negative, got {demand}")
    if order < 0:
        raise ValueError(f"order_cost must be non-negative, got {order}")
    if holding < 0:
        raise ValueError(f"holding_cost must be non-negative, got {holding}")

    if demand == 0 or holding == 0:
        return ZERO

    numerator = Decimal("2") * demand * order
    eoq = (numerator / holding).sqrt()
    return eoq.quantize(Decimal("0.01"))


@traced_engine(
    "forecasting",
    "1.0",
    fingerprint_fields=("item", "avg_daily_usage", "lead_time_days", "safety_stock_days"),
)
def reorder_quantity(
    item: InventoryItem,
    avg_daily_usage: Numeric,
    lead_time_days: int = 7,
    safety_stock_days: int = 3,
    *,
    eoq: EoqParameters = DEFAULT_EOQ_PARAMETERS,
) -> Decimal:
    """
    Quantity to order for ``item``.

    A manual ``item.reorder_quantity`` greater than zero is returned as is.
    Otherwise the result is the largest of:

    - EOQ with ``annual_demand = usage * 365`` and
      ``holding_cost = cost_price * holding_cost_rate``;
    - the top-up to ``maximum_stock`` (EOQ again when no maximum is set);
    - the shortfall against ``reorder_point = usage * (lead + safety days)``.
    """
    if item.has_reorder_override:
        logger.debug("reorder_quantity_manual_override", extra={
            "item_id": item.id,
            "reorder_quantity": str(item.reorder_quantity),
        })
        return item.reorder_quantity

    usage = to_decimal(avg_daily_usage)
    if lead_time_days < 0:
        raise ValueError(f"lead_time_days must be non-negative, got {lead_time_days}")
    if safety_stock_days < 0:
        raise ValueError(f"safety_stock_days must be non-negative, got {safety_stock_days}")

    demand_during_lead_time = usage * lead_time_days
    safety_stock = usage * safety_stock_days
    reorder_point = demand_during_lead_time + safety_stock

    annual_demand = usage * DAYS_PER_YEAR
    holding_cost = item.cost_price * eoq.holding_cost_rate
    eoq_qty = economic_order_quantity(annual_demand, eoq.ordering_cost, holding_cost)

    if item.has_maximum_stock:
        max_stock_order = item.maximum_stock - item.current_stock
    else:
        max_stock_order = eoq_qty

    quantity = max(eoq_qty, max_stock_order, reorder_point - item.current_stock)

    logger.info("reorder_quantity_calculated", extra={
        "item_id": item.id,
        "avg_daily_usage": str(usage),
        "eoq": str(eoq_qty),
        "max_stock_order": str(max_stock_order),
        "reorder_point": str(reorder_point),
        "reorder_quantity": str(quantity),
    })
    return quantity


# =============================================================================
# Safety stock and stock levels
# =============================================================================


def service_level_z_score(service_level: Numeric) -> Decimal:
    """
    Standard-normal z-score for a cycle service level.

    ``0.95`` gives ~1.6449, ``0.99`` gives ~2.3263.

    Raises:
        ValueError: If service_level is not strictly between 0 and 1.
    """
    level = to_decimal(service_level)
    if not (ZERO < level < Decimal("1")):
        raise ValueError(f"service_level must be between 0 and 1, got {level}")
    z = statistics.NormalDist().inv_cdf(float(level))
    return Decimal(str(round(z, 6)))


@traced_engine(
    "forecasting",
    "1.0",
    fingerprint_fields=("item", "as_of", "service_level", "lead_time_days"),
)
def optimal_stock_levels(
    item: InventoryItem,
    movements: Sequence[StockMovement],
    *,
    as_of: datetime,
    service_level: Numeric = Decimal("0.95"),
    lead_time_days: int = 7,
    window_days: int = 30,
    safety_stock_days: int = 3,
    eoq: EoqParameters = DEFAULT_EOQ_PARAMETERS,
) -> OptimalStockLevels:
    """
    Reorder point, safety stock and maximum stock for a target service level.

    Formula:
        safety_stock  = z(service_level) * stddev(usage per movement) * sqrt(lead_time_days)
        reorder_point = avg_daily_usage * lead_time_days + safety_stock
        maximum_stock = reorder_point + reorder_quantity(item, avg_daily_usage, lead_time_days)

    All three values are clamped to >= 0.
    """
    if lead_time_days < 0:
        raise ValueError(f"lead_time_days must be non-negative, got {lead_time_days}")

    usage = average_daily_usage(item.id, movements, as_of=as_of, window_days=window_days)
    demand_during_lead_time = usage * lead_time_days

    history = usage_history(item.id, movements)
    std_dev = usage_standard_deviation(history)
    z_score = service_level_z_score(service_level)
    safety_stock = z_score * std_dev * Decimal(lead_time_days).sqrt()

    reorder_point = demand_during_lead_time + safety_stock
    order_quantity = reorder_quantity(
        item, usage, lead_time_days, safety_stock_days, eoq=eoq,
    )
    maximum_stock = reorder_point + order_quantity

    levels = OptimalStockLevels(
        reorder_point=max(ZERO, reorder_point),
        safety_stock=max(ZERO, safety_stock),
        maximum_stock=max(ZERO, maximum_stock),
    )

    logger.info("optimal_stock_levels_calculated", extra={
        "item_id": item.id,
        "avg_daily_usage": str(usage),
        "usage_samples": len(history),
        "usage_std_dev": str(std_dev),
        "z_score": str(z_score),
        "reorder_point": str(levels.reorder_point),
        "safety_stock": str(levels.safety_stock),
        "maximum_stock": str(levels.maximum_stock),
    })
    return levels


# =============================================================================
# Stockout prediction
# =============================================================================


@traced_engine("forecasting", "1.0", fingerprint_fields=("item", "as_of", "window_days"))
def predict_stockout_date(
    item: InventoryItem,
    movements: Sequence[StockMovement],
    *,
    as_of: datetime,
    window_days: int = 30,
) -> datetime | None:
    """
    Date on which current stock runs out at the recent usage rate.

    Returns ``as_of + floor(current_stock / avg_daily_usage)`` days, or
    ``None`` when there is no usage or no stock.
    """
    usage = average_daily_usage(item.id, movements, as_of=as_of, window_days=window_days)
    if usage <= 0 or item.current_stock <= 0:
        return None

    days_left = (item.current_stock / usage).to_integral_value(rounding=ROUND_FLOOR)
    stockout = as_of + timedelta(days=int(days_left))

    logger.debug("stockout_predicted", extra={
        "item_id": item.id,
        "days_until_stockout": int(days_left),
        "stockout_date": stockout.isoformat(),
    })
    return stockout
