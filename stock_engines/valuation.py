"""
stock_engines.valuation -- Costing, turnover and ABC classification.

Responsibility:
    Weighted-average cost from purchase lots, inventory valuation under a
    chosen cost basis, turnover rate, Pareto (ABC) classification by
    annual consumption value, and carrying cost.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain and sibling engines (ledger,
    forecasting).

Invariants enforced:
    - Purity: time windows take an explicit ``as_of``.
    - ABC ordering is a stable sort: items with equal annual value keep
      their input order.
    - Every item receives exactly one classification.

Failure modes:
    - Division-by-zero safe: WAC falls back to ``cost_price`` when total
      quantity is 0; turnover and days-to-turnover are 0 when their
      denominators are 0; ABC classifies every item C when total value is 0.
    - ValueError on invalid ABC thresholds or negative rates.

Notes:
    ``fifo`` and ``lifo`` valuation read the single cost fields on the item
    (``last_cost_price`` / ``average_cost``); true layer-by-layer costing
    is out of scope for this engine.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from stock_kernel.domain.inventory import (
    USAGE_TYPES,
    InventoryItem,
    MovementType,
    StockMovement,
)
from stock_kernel.domain.values import HUNDRED, ZERO, Numeric, to_decimal
from stock_kernel.logging_config import get_logger
from stock_engines.forecasting import DAYS_PER_YEAR
from stock_engines.ledger import filter_movements, total_magnitude, window_start
from stock_engines.tracer import traced_engine

logger = get_logger("engines.valuation")


class ValuationMethod(str, Enum):
    """Cost basis used to value on-hand stock."""

    CURRENT_COST = "current_cost"
    AVERAGE_COST = "average_cost"
    FIFO = "fifo"
    LIFO = "lifo"


class AbcClass(str, Enum):
    """Pareto class by share of annual consumption value."""

    A = "A"
    B = "B"
    C = "C"


@dataclass(frozen=True)
class TurnoverResult:
    """How many times stock turns over in the period, and how long one turn takes."""

    turnover_rate: Decimal
    days_to_turnover: Decimal


@dataclass(frozen=True)
class AbcResult:
    """Classification of one item."""

    item_id: str
    classification: AbcClass
    annual_value: Decimal


# =============================================================================
# Costing
# =============================================================================


@traced_engine("valuation", "1.0", fingerprint_fields=("item", "movements"))
def weighted_average_cost(
    item: InventoryItem,
    movements: Sequence[StockMovement],
) -> Decimal:
    """
    Weighted-average unit cost over on-hand stock and purchase lots.

    On-hand stock at ``cost_price`` is one lot; every purchase of the item
    carrying a positive ``unit_cost`` is another.  Purchases without a
    unit cost cannot be weighted and are skipped.

    Returns ``item.cost_price`` when the total lot quantity is 0.
    """
    total_quantity = item.current_stock
    total_cost = item.current_stock * item.cost_price
    lots = 1

    for movement in filter_movements(movements, item.id, {MovementType.PURCHASE}):
        if movement.unit_cost is None or movement.unit_cost <= 0:
            continue
        total_quantity += movement.quantity
        total_cost += movement.quantity * movement.unit_cost
        lots += 1

    if total_quantity == 0:
        return item.cost_price

    wac = total_cost / total_quantity
    logger.debug("weighted_average_cost_calculated", extra={
        "item_id": item.id,
        "lots": lots,
        "total_quantity": str(total_quantity),
        "weighted_average_cost": str(wac),
    })
    return wac


def _unit_cost_for(item: InventoryItem, method: ValuationMethod) -> Decimal:
    match method:
        case ValuationMethod.CURRENT_COST:
            return item.cost_price
        case ValuationMethod.AVERAGE_COST | ValuationMethod.LIFO:
            return item.average_cost if item.average_cost else item.cost_price
        case ValuationMethod.FIFO:
            return item.last_cost_price if item.last_cost_price else item.cost_price
        case _:
            logger.error("inventory_value_unknown_method", extra={"method": str(method)})
            raise ValueError(f"Unknown valuation method: {method}")


@traced_engine("valuation", "1.0", fingerprint_fields=("items", "method"))
def inventory_value(
    items: Sequence[InventoryItem],
    method: ValuationMethod | str = ValuationMethod.CURRENT_COST,
) -> Decimal:
    """
    Total value of on-hand stock: ``sum(current_stock * unit_cost)``.

    ``current_cost`` uses ``cost_price``; ``average_cost`` and ``lifo`` use
    ``average_cost`` when set and non-zero; ``fifo`` uses
    ``last_cost_price`` likewise; every method falls back to ``cost_price``.
    An empty item list is worth 0.
    """
    method = ValuationMethod(method)
    total = sum((item.current_stock * _unit_cost_for(item, method) for item in items), ZERO)

    logger.info("inventory_value_calculated", extra={
        "method": method.value,
        "item_count": len(items),
        "total_value": str(total),
    })
    return total


def carrying_cost(inventory_value: Numeric, rate: Numeric = Decimal("0.25")) -> Decimal:
    """Annual cost of holding ``inventory_value`` at ``rate``."""
    rate_d = to_decimal(rate)
    if rate_d < 0:
        raise ValueError(f"carrying cost rate must be non-negative, got {rate_d}")
    return to_decimal(inventory_value) * rate_d


# =============================================================================
# Turnover
# =============================================================================


@traced_engine("valuation", "1.0", fingerprint_fields=("item", "as_of", "period_days"))
def turnover_rate(
    item: InventoryItem,
    movements: Sequence[StockMovement],
    *,
    as_of: datetime,
    period_days: int = 365,
) -> TurnoverResult:
    """
    Inventory turnover over the trailing period.

    Formula:
        turnover_rate    = usage in period / current_stock   (0 if no stock)
        days_to_turnover = period_days / turnover_rate       (0 if no turnover)

    ``current_stock`` stands in for average stock over the period.
    """
    usage = total_magnitude(
        filter_movements(
            movements,
            item.id,
            USAGE_TYPES,
            since=window_start(as_of, period_days),
            until=as_of,
        )
    )

    rate = usage / item.current_stock if item.current_stock > 0 else ZERO
    days = Decimal(period_days) / rate if rate > 0 else ZERO

    logger.debug("turnover_rate_calculated", extra={
        "item_id": item.id,
        "period_days": period_days,
        "usage": str(usage),
        "turnover_rate": str(rate),
        "days_to_turnover": str(days),
    })
    return TurnoverResult(turnover_rate=rate, days_to_turnover=days)


# =============================================================================
# ABC classification
# =============================================================================


def classify_by_value(
    values: Sequence[tuple[str, Decimal]],
    a_threshold: Numeric = Decimal("80"),
    b_threshold: Numeric = Decimal("95"),
) -> list[AbcResult]:
    """
    Classify ``(item_id, annual_value)`` pairs by cumulative value share.

    Sorted descending by value (stable).  An item is A while the cumulative
    share including it is <= ``a_threshold`` percent, B while <=
    ``b_threshold``, otherwise C.  All items are C when the total is 0.

    Raises:
        ValueError: If thresholds are outside 0..100 or b < a.
    """
    a_pct = to_decimal(a_threshold)
    b_pct = to_decimal(b_threshold)
    if not (ZERO <= a_pct <= HUNDRED) or not (ZERO <= b_pct <= HUNDRED):
        raise ValueError(f"ABC thresholds must be within 0..100, got {a_pct}/{b_pct}")
    if b_pct < a_pct:
        raise ValueError(f"b_threshold ({b_pct}) must not be below a_threshold ({a_pct})")

    ranked = sorted(values, key=lambda pair: pair[1], reverse=True)
    total = sum((value for _, value in ranked), ZERO)

    results: list[AbcResult] = []
    cumulative = ZERO
    for item_id, value in ranked:
        cumulative += value
        if total <= 0:
            classification = AbcClass.C
        else:
            # Compare cumulative / total against pct / 100 without dividing.
            scaled = cumulative * HUNDRED
            if scaled <= a_pct * total:
                classification = AbcClass.A
            elif scaled <= b_pct * total:
                classification = AbcClass.B
            else:
                classification = AbcClass.C
        results.append(AbcResult(item_id=item_id, classification=classification, annual_value=value))
    return results


@traced_engine("valuation", "1.0", fingerprint_fields=("items", "as_of", "a_threshold", "b_threshold"))
def abc_classification(
    items: Sequence[InventoryItem],
    movements: Sequence[StockMovement],
    *,
    as_of: datetime,
    a_threshold: Numeric = Decimal("80"),
    b_threshold: Numeric = Decimal("95"),
) -> list[AbcResult]:
    """
    Pareto classification of ``items`` by annual consumption value.

    ``annual_value = units used in the trailing 365 days * cost_price``, the
    same figure as average daily usage * 365 without the rounding of the
    per-day division.
    Results are ordered by annual value, highest first.
    """
    since = window_start(as_of, DAYS_PER_YEAR)
    values = [
        (
            item.id,
            total_magnitude(
                filter_movements(movements, item.id, USAGE_TYPES, since=since, until=as_of)
            )
            * item.cost_price,
        )
        for item in items
    ]
    results = classify_by_value(values, a_threshold, b_threshold)

    logger.info("abc_classification_completed", extra={
        "item_count": len(results),
        "class_a": sum(1 for r in results if r.classification is AbcClass.A),
        "class_b": sum(1 for r in results if r.classification is AbcClass.B),
        "class_c": sum(1 for r in results if r.classification is AbcClass.C),
    })
    return results
