"""
stock_engines.scan_analytics -- Reporting over historical barcode scan logs.

Responsibility:
    Scan success rate, throughput, most-scanned items and error breakdown
    over a set of barcode logs; and a trailing-period efficiency report
    with the busiest hours of the day.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Rates over zero logs, or over a zero time span, are 0.
    - Rankings are stable: ties keep first-seen order (items) or
      hour order (peak hours).
    - Hour of day is read from each log's own timestamp; no timezone
      conversion is applied.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from stock_kernel.domain.scanning import BarcodeLog
from stock_kernel.domain.values import HUNDRED, ZERO, to_decimal
from stock_kernel.logging_config import get_logger
from stock_engines.ledger import window_start
from stock_engines.tracer import traced_engine

logger = get_logger("engines.scan_analytics")

TOP_ITEMS_LIMIT = 10
PEAK_HOURS_LIMIT = 5
UNKNOWN_ERROR = "Unknown error"
SECONDS_PER_HOUR = Decimal("3600")


@dataclass(frozen=True)
class ScannedItemCount:
    item_id: str
    item_name: str
    scan_count: int


@dataclass(frozen=True)
class HourCount:
    hour: int
    scan_count: int


@dataclass(frozen=True)
class ScanPerformance:
    """Success and throughput figures for a set of scan logs."""

    success_rate: Decimal
    average_scans_per_hour: Decimal
    top_scanned_items: tuple[ScannedItemCount, ...]
    errors_by_type: dict[str, int]


@dataclass(frozen=True)
class EfficiencyReport:
    """Scanning activity over a trailing period."""

    total_scans: int
    unique_items: int
    average_scans_per_item: Decimal
    peak_scanning_hours: tuple[HourCount, ...]


def time_span_hours(logs: Sequence[BarcodeLog]) -> Decimal:
    """Hours between the earliest and latest log (0 for fewer than two)."""
    if not logs:
        return ZERO
    stamps = [log.created_at for log in logs]
    span = max(stamps) - min(stamps)
    return to_decimal(span.total_seconds()) / SECONDS_PER_HOUR


@traced_engine("scan_analytics", "1.0", fingerprint_fields=("logs",))
def analyze_scan_performance(logs: Sequence[BarcodeLog]) -> ScanPerformance:
    """
    Success rate (percent), scans per hour across the logged time span,
    the ten most-scanned items and failure counts by error message.

    Only logs carrying both an item id and an item name count toward the
    top items.  Failures without a message are counted as ``"Unknown error"``.
    """
    total = len(logs)
    successful = sum(1 for log in logs if log.is_successful)
    success_rate = Decimal(successful) / Decimal(total) * HUNDRED if total else ZERO

    span = time_span_hours(logs)
    per_hour = Decimal(total) / span if span > 0 else ZERO

    counts: Counter[str] = Counter()
    names: dict[str, str] = {}
    for log in logs:
        if log.item_id and log.item_name:
            counts[log.item_id] += 1
            names.setdefault(log.item_id, log.item_name)
    top_items = tuple(
        ScannedItemCount(item_id=item_id, item_name=names[item_id], scan_count=count)
        for item_id, count in counts.most_common(TOP_ITEMS_LIMIT)
    )

    errors: dict[str, int] = {}
    for log in logs:
        if log.is_successful:
            continue
        message = log.error_message or UNKNOWN_ERROR
        errors[message] = errors.get(message, 0) + 1

    logger.info("scan_performance_analyzed", extra={
        "total_scans": total,
        "successful_scans": successful,
        "success_rate": str(success_rate),
        "error_types": len(errors),
    })
    return ScanPerformance(
        success_rate=success_rate,
        average_scans_per_hour=per_hour,
        top_scanned_items=top_items,
        errors_by_type=errors,
    )


@traced_engine("scan_analytics", "1.0", fingerprint_fields=("logs", "as_of", "period_days"))
def efficiency_report(
    logs: Sequence[BarcodeLog],
    *,
    as_of: datetime,
    period_days: int = 30,
) -> EfficiencyReport:
    """
    Scan volume per item and the five busiest hours of the day over the
    trailing ``period_days``.
    """
    since = window_start(as_of, period_days)
    recent = [log for log in logs if since <= log.created_at <= as_of]

    unique_items = len({log.item_id for log in recent if log.item_id})
    per_item = Decimal(len(recent)) / Decimal(unique_items) if unique_items else ZERO

    hour_counts = [0] * 24
    for log in recent:
        hour_counts[log.created_at.hour] += 1
    ranked = sorted(range(24), key=lambda hour: hour_counts[hour], reverse=True)
    peak_hours = tuple(
        HourCount(hour=hour, scan_count=hour_counts[hour])
        for hour in ranked[:PEAK_HOURS_LIMIT]
    )

    logger.info("scan_efficiency_reported", extra={
        "period_days": period_days,
        "total_scans": len(recent),
        "unique_items": unique_items,
    })
    return EfficiencyReport(
        total_scans=len(recent),
        unique_items=unique_items,
        average_scans_per_item=per_item,
        peak_scanning_hours=peak_hours,
    )
