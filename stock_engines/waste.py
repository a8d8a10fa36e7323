"""
stock_engines.waste -- Shrinkage and waste analysis.

Responsibility:
    Compare what was thrown away against what was bought over a trailing
    period (shrinkage rate and value), and break waste down by reason.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Waste logs are windowed on ``waste_date``; purchases on ``created_at``.
    - Shrinkage rate is 0 when nothing was purchased in the period.
    - Waste values use ``WasteLog.total_cost`` (always ``quantity * unit_cost``).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from stock_kernel.domain.inventory import MovementType, StockMovement, WasteLog
from stock_kernel.domain.values import HUNDRED, ZERO
from stock_kernel.logging_config import get_logger
from stock_engines.ledger import filter_movements, total_magnitude, window_start
from stock_engines.tracer import traced_engine

logger = get_logger("engines.waste")


@dataclass(frozen=True)
class ShrinkageResult:
    """Waste as a percentage of purchases, and its cost."""

    shrinkage_rate: Decimal
    shrinkage_value: Decimal


@dataclass(frozen=True)
class WasteReasonTotal:
    """Waste totals for one reason."""

    reason_id: str
    reason_name: str
    quantity: Decimal
    value: Decimal
    log_count: int


def waste_in_window(
    waste_logs: Iterable[WasteLog],
    *,
    since: datetime,
    until: datetime,
    item_id: str | None = None,
) -> list[WasteLog]:
    """Waste logs dated within ``[since, until]``, optionally for one item."""
    return [
        log
        for log in waste_logs
        if (item_id is None or log.item_id == item_id)
        and since <= log.waste_date <= until
    ]


@traced_engine("waste", "1.0", fingerprint_fields=("item_id", "as_of", "period_days"))
def shrinkage_rate(
    item_id: str,
    waste_logs: Sequence[WasteLog],
    movements: Sequence[StockMovement],
    *,
    as_of: datetime,
    period_days: int = 30,
) -> ShrinkageResult:
    """
    Shrinkage of ``item_id`` over the trailing period.

    Formula:
        shrinkage_rate  = sum(waste quantity) / sum(purchase quantity) * 100
        shrinkage_value = sum(waste total_cost)
    """
    since = window_start(as_of, period_days)
    wasted = waste_in_window(waste_logs, since=since, until=as_of, item_id=item_id)
    purchases = filter_movements(
        movements, item_id, {MovementType.PURCHASE}, since=since, until=as_of,
    )

    waste_quantity = sum((log.quantity for log in wasted), ZERO)
    waste_value = sum((log.total_cost for log in wasted), ZERO)
    purchased = total_magnitude(purchases)

    rate = waste_quantity / purchased * HUNDRED if purchased > 0 else ZERO

    logger.info("shrinkage_calculated", extra={
        "item_id": item_id,
        "period_days": period_days,
        "waste_quantity": str(waste_quantity),
        "purchased_quantity": str(purchased),
        "shrinkage_rate": str(rate),
        "shrinkage_value": str(waste_value),
    })
    return ShrinkageResult(shrinkage_rate=rate, shrinkage_value=waste_value)


@traced_engine("waste", "1.0", fingerprint_fields=("as_of", "period_days"))
def waste_by_reason(
    waste_logs: Sequence[WasteLog],
    *,
    as_of: datetime,
    period_days: int = 30,
) -> list[WasteReasonTotal]:
    """Per-reason waste totals over the trailing period, highest value first."""
    wasted = waste_in_window(
        waste_logs, since=window_start(as_of, period_days), until=as_of,
    )

    totals: dict[str, WasteReasonTotal] = {}
    for log in wasted:
        current = totals.get(log.reason_id)
        if current is None:
            totals[log.reason_id] = WasteReasonTotal(
                reason_id=log.reason_id,
                reason_name=log.reason_name,
                quantity=log.quantity,
                value=log.total_cost,
                log_count=1,
            )
        else:
            totals[log.reason_id] = WasteReasonTotal(
                reason_id=current.reason_id,
                reason_name=current.reason_name or log.reason_name,
                quantity=current.quantity + log.quantity,
                value=current.value + log.total_cost,
                log_count=current.log_count + 1,
            )

    ranked = sorted(totals.values(), key=lambda t: t.value, reverse=True)
    logger.debug("waste_by_reason_calculated", extra={
        "period_days": period_days,
        "log_count": len(wasted),
        "reason_count": len(ranked),
    })
    return ranked
