"""
stock_engines.ledger -- Theoretical stock projection and count variance.

Responsibility:
    Fold the append-only movement ledger onto an item's last counted stock
    to obtain theoretical stock, compare counted against theoretical stock,
    and summarize a whole count.  Also owns the movement-filtering helpers
    the forecasting, valuation and waste engines share.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain.

Invariants enforced:
    - Sign convention: increase-type movements add their signed quantity,
      decrease-type movements subtract ``abs(quantity)``, counts are
      skipped (see ``stock_kernel.domain.inventory.stock_effect``).
    - Theoretical stock is floored at zero.  A projection below zero means
      the ledger is missing receipts; it is clamped, not reported.
    - Purity: no clock access.  Time windows take an explicit ``as_of``.

Failure modes:
    - Division-by-zero safe: ``percentage_variance`` is 0 when theoretical
      stock is 0.  Nothing in this module raises on degenerate input.

Usage:
    from stock_engines.ledger import theoretical_stock, stock_variance

    expected = theoretical_stock(item, movements_since_count)
    variance = stock_variance(counted, expected, item.cost_price)
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from stock_kernel.domain.inventory import (
    InventoryItem,
    MovementType,
    StockEffect,
    StockMovement,
    stock_effect,
)
from stock_kernel.domain.values import HUNDRED, ZERO, Numeric, to_decimal
from stock_kernel.logging_config import get_logger
from stock_engines.tracer import traced_engine

logger = get_logger("engines.ledger")


# =============================================================================
# Movement filtering
# =============================================================================


def window_start(as_of: datetime, days: int | Decimal) -> datetime:
    """Start of the trailing ``days`` window ending at ``as_of``."""
    return as_of - timedelta(days=float(days))


def filter_movements(
    movements: Iterable[StockMovement],
    item_id: str,
    types: Collection[MovementType] | None = None,
    *,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[StockMovement]:
    """Movements of ``item_id`` with a type in ``types`` inside ``[since, until]``.

    ``None`` for ``types``, ``since`` or ``until`` means unrestricted.
    Ledger order is preserved.
    """
    selected: list[StockMovement] = []
    for movement in movements:
        if movement.item_id != item_id:
            continue
        if types is not None and movement.movement_type not in types:
            continue
        if since is not None and movement.created_at < since:
            continue
        if until is not None and movement.created_at > until:
            continue
        selected.append(movement)
    return selected


def total_magnitude(movements: Iterable[StockMovement]) -> Decimal:
    """Sum of ``abs(quantity)`` over ``movements``."""
    return sum((m.magnitude for m in movements), ZERO)


# =============================================================================
# Theoretical stock and variance
# =============================================================================


@dataclass(frozen=True)
class StockVariance:
    """
    Counted-versus-theoretical comparison for one item.

    Negative variances mean stock is missing (shrinkage).
    """

    quantity_variance: Decimal
    value_variance: Decimal
    percentage_variance: Decimal

    @property
    def is_shortage(self) -> bool:
        return self.quantity_variance < 0


@traced_engine("ledger", "1.0", fingerprint_fields=("item", "movements"))
def theoretical_stock(
    item: InventoryItem,
    movements: Sequence[StockMovement],
) -> Decimal:
    """
    Project an item's stock from its last count through later movements.

    Preconditions:
        ``movements`` are the movements recorded after ``item.current_stock``
        was last reconciled, in ledger order.  Movements of other items are
        ignored.

    Postconditions:
        Returns ``max(0, current_stock + increases - |decreases|)``.
    """
    projected = item.current_stock
    applied = 0

    for movement in movements:
        if movement.item_id != item.id:
            continue
        match stock_effect(movement.movement_type):
            case StockEffect.INCREASE:
                projected += movement.quantity
            case StockEffect.DECREASE:
                projected -= movement.magnitude
            case StockEffect.NEUTRAL:
                continue
        applied += 1

    if projected < 0:
        logger.warning("theoretical_stock_clamped", extra={
            "item_id": item.id,
            "projected": str(projected),
            "movements_applied": applied,
        })
        projected = ZERO

    logger.debug("theoretical_stock_calculated", extra={
        "item_id": item.id,
        "anchor": str(item.current_stock),
        "theoretical_stock": str(projected),
        "movements_applied": applied,
    })
    return projected


@traced_engine("ledger", "1.0", fingerprint_fields=("actual", "theoretical", "cost_price"))
def stock_variance(
    actual: Numeric,
    theoretical: Numeric,
    cost_price: Numeric,
) -> StockVariance:
    """
    Compare counted stock against theoretical stock.

    Formula:
        quantity_variance   = actual - theoretical
        value_variance      = quantity_variance * cost_price
        percentage_variance = quantity_variance / theoretical * 100  (0 if theoretical is 0)
    """
    actual_d = to_decimal(actual)
    theoretical_d = to_decimal(theoretical)
    cost_d = to_decimal(cost_price)

    quantity_variance = actual_d - theoretical_d
    value_variance = quantity_variance * cost_d
    if theoretical_d > 0:
        percentage_variance = quantity_variance / theoretical_d * HUNDRED
    else:
        percentage_variance = ZERO

    return StockVariance(
        quantity_variance=quantity_variance,
        value_variance=value_variance,
        percentage_variance=percentage_variance,
    )


# =============================================================================
# Stock counts
# =============================================================================


@dataclass(frozen=True)
class CountLine:
    """One counted item: what the ledger expected and what was found."""

    item_id: str
    item_name: str
    expected_quantity: Decimal
    counted_quantity: Decimal
    variance: StockVariance


@dataclass(frozen=True)
class CountSummary:
    """Totals over every line of a stock count."""

    lines: tuple[CountLine, ...]
    total_quantity_variance: Decimal
    total_value_variance: Decimal
    lines_over_tolerance: tuple[str, ...]

    @property
    def line_count(self) -> int:
        return len(self.lines)


def reconcile_count(
    item: InventoryItem,
    counted_quantity: Numeric,
    movements: Sequence[StockMovement],
) -> CountLine:
    """Build the count line for ``item`` from its theoretical stock."""
    counted = to_decimal(counted_quantity)
    expected = theoretical_stock(item, movements)
    variance = stock_variance(counted, expected, item.cost_price)

    logger.info("count_line_reconciled", extra={
        "item_id": item.id,
        "expected": str(expected),
        "counted": str(counted),
        "quantity_variance": str(variance.quantity_variance),
        "value_variance": str(variance.value_variance),
    })

    return CountLine(
        item_id=item.id,
        item_name=item.name,
        expected_quantity=expected,
        counted_quantity=counted,
        variance=variance,
    )


def summarize_count(
    lines: Sequence[CountLine],
    tolerance_percent: Numeric = Decimal("5"),
) -> CountSummary:
    """
    Total a stock count and flag lines whose absolute percentage variance
    exceeds ``tolerance_percent``.
    """
    tolerance = to_decimal(tolerance_percent)
    if tolerance < 0:
        raise ValueError(f"tolerance_percent must be non-negative, got {tolerance}")

    total_qty = sum((line.variance.quantity_variance for line in lines), ZERO)
    total_value = sum((line.variance.value_variance for line in lines), ZERO)
    flagged = tuple(
        line.item_id
        for line in lines
        if abs(line.variance.percentage_variance) > tolerance
    )

    logger.info("count_summarized", extra={
        "line_count": len(lines),
        "total_quantity_variance": str(total_qty),
        "total_value_variance": str(total_value),
        "lines_over_tolerance": len(flagged),
    })

    return CountSummary(
        lines=tuple(lines),
        total_quantity_variance=total_qty,
        total_value_variance=total_value,
        lines_over_tolerance=flagged,
    )
