"""
stock_engines.metrics -- Dashboard metrics, stock alerts and reorder report.

Responsibility:
    Summarize the stock position for the inventory dashboard: headline
    metrics (value, low/out-of-stock and expiring counts, recent waste,
    mean turnover), threshold alerts per item, and the list of items to
    reorder with a recommended quantity.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Composes stock_engines.valuation and stock_engines.waste.

Invariants enforced:
    - An item raises at most one stock alert: the most severe condition
      it meets (out of stock > low stock > reorder point > overstock).
    - Recommended reorder quantities are never negative.
    - Means over zero items are 0.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from stock_kernel.domain.inventory import InventoryItem, StockMovement, WasteLog
from stock_kernel.domain.values import ZERO
from stock_kernel.logging_config import get_logger
from stock_engines.forecasting import DAYS_PER_YEAR
from stock_engines.ledger import window_start
from stock_engines.tracer import traced_engine
from stock_engines.valuation import ValuationMethod, inventory_value, turnover_rate
from stock_engines.waste import waste_in_window

logger = get_logger("engines.metrics")


class AlertType(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    REORDER_POINT = "reorder_point"
    OVERSTOCK = "overstock"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class InventoryMetrics:
    """Headline numbers for the inventory dashboard."""

    total_value: Decimal
    total_items: int
    low_stock_items: int
    out_of_stock_items: int
    expiring_items: int
    waste_value: Decimal
    turnover_rate: Decimal
    average_days_to_turnover: Decimal


@dataclass(frozen=True)
class StockAlert:
    """A threshold breach on one item."""

    item_id: str
    item_name: str
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    current_value: Decimal
    threshold_value: Decimal | None = None


@dataclass(frozen=True)
class ReorderRecommendation:
    """An item at or below its reorder point and how much to order."""

    item_id: str
    item_name: str
    current_stock: Decimal
    reorder_point: Decimal
    recommended_quantity: Decimal


def is_expiring(item: InventoryItem, shelf_life_days: int = 3) -> bool:
    """True for expiry-tracked items whose shelf life is ``shelf_life_days`` or less."""
    if not item.expiration_tracking or not item.shelf_life_days:
        return False
    return item.shelf_life_days <= shelf_life_days


@traced_engine("metrics", "1.0", fingerprint_fields=("items", "as_of", "waste_window_days"))
def inventory_metrics(
    items: Sequence[InventoryItem],
    movements: Sequence[StockMovement],
    waste_logs: Sequence[WasteLog],
    *,
    as_of: datetime,
    waste_window_days: int = 7,
    turnover_period_days: int = 365,
    expiring_shelf_life_days: int = 3,
) -> InventoryMetrics:
    """
    Dashboard metrics over ``items``.

    ``waste_value`` covers waste dated in the trailing ``waste_window_days``;
    ``turnover_rate`` is the mean of the per-item turnover rates and
    ``average_days_to_turnover`` is 365 divided by that mean (0 when the
    mean is 0).
    """
    total_value = inventory_value(items, ValuationMethod.CURRENT_COST)
    low_stock = sum(1 for item in items if item.current_stock <= item.minimum_stock)
    out_of_stock = sum(1 for item in items if item.current_stock <= 0)
    expiring = sum(1 for item in items if is_expiring(item, expiring_shelf_life_days))

    recent_waste = waste_in_window(
        waste_logs, since=window_start(as_of, waste_window_days), until=as_of,
    )
    waste_value = sum((log.total_cost for log in recent_waste), ZERO)

    rates = [
        turnover_rate(item, movements, as_of=as_of, period_days=turnover_period_days).turnover_rate
        for item in items
    ]
    mean_rate = sum(rates, ZERO) / len(rates) if rates else ZERO
    days_to_turnover = DAYS_PER_YEAR / mean_rate if mean_rate > 0 else ZERO

    metrics = InventoryMetrics(
        total_value=total_value,
        total_items=len(items),
        low_stock_items=low_stock,
        out_of_stock_items=out_of_stock,
        expiring_items=expiring,
        waste_value=waste_value,
        turnover_rate=mean_rate,
        average_days_to_turnover=days_to_turnover,
    )
    logger.info("inventory_metrics_calculated", extra={
        "total_items": metrics.total_items,
        "total_value": str(metrics.total_value),
        "low_stock_items": low_stock,
        "out_of_stock_items": out_of_stock,
        "expiring_items": expiring,
        "waste_value": str(waste_value),
    })
    return metrics


def _alert_for(item: InventoryItem) -> StockAlert | None:
    if item.current_stock <= 0:
        return StockAlert(
            item_id=item.id,
            item_name=item.name,
            alert_type=AlertType.OUT_OF_STOCK,
            severity=AlertSeverity.CRITICAL,
            message=f"{item.name} is out of stock",
            current_value=item.current_stock,
        )
    if item.current_stock <= item.minimum_stock:
        return StockAlert(
            item_id=item.id,
            item_name=item.name,
            alert_type=AlertType.LOW_STOCK,
            severity=AlertSeverity.HIGH,
            message=(
                f"{item.name} is below minimum stock level "
                f"({item.current_stock} {item.primary_unit} remaining)"
            ),
            current_value=item.current_stock,
            threshold_value=item.minimum_stock,
        )
    if item.current_stock <= item.reorder_point:
        return StockAlert(
            item_id=item.id,
            item_name=item.name,
            alert_type=AlertType.REORDER_POINT,
            severity=AlertSeverity.MEDIUM,
            message=f"{item.name} has reached its reorder point",
            current_value=item.current_stock,
            threshold_value=item.reorder_point,
        )
    if item.has_maximum_stock and item.current_stock > item.maximum_stock:
        return StockAlert(
            item_id=item.id,
            item_name=item.name,
            alert_type=AlertType.OVERSTOCK,
            severity=AlertSeverity.LOW,
            message=f"{item.name} is above maximum stock level",
            current_value=item.current_stock,
            threshold_value=item.maximum_stock,
        )
    return None


def stock_alerts(items: Sequence[InventoryItem]) -> list[StockAlert]:
    """Alerts for every item breaching a stock threshold, in input order."""
    alerts = [alert for alert in map(_alert_for, items) if alert is not None]
    if alerts:
        logger.info("stock_alerts_raised", extra={
            "alert_count": len(alerts),
            "critical": sum(1 for a in alerts if a.severity is AlertSeverity.CRITICAL),
        })
    return alerts


def recommended_order(item: InventoryItem) -> Decimal:
    """Manual reorder quantity, else the top-up to maximum (or twice the reorder point)."""
    if item.has_reorder_override:
        return item.reorder_quantity
    target = item.maximum_stock if item.has_maximum_stock else item.reorder_point * 2
    return max(ZERO, target - item.current_stock)


def reorder_report(items: Sequence[InventoryItem]) -> list[ReorderRecommendation]:
    """Items at or below their reorder point with the quantity to order."""
    report = [
        ReorderRecommendation(
            item_id=item.id,
            item_name=item.name,
            current_stock=item.current_stock,
            reorder_point=item.reorder_point,
            recommended_quantity=recommended_order(item),
        )
        for item in items
        if item.current_stock <= item.reorder_point
    ]
    logger.info("reorder_report_generated", extra={
        "items_considered": len(items),
        "items_to_reorder": len(report),
    })
    return report
