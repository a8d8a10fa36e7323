"""
stock_services.analytics_service -- Clock- and config-aware engine facade.

Responsibility:
    Give callers (dashboard handlers, scheduled jobs) one object through
    which to run the stock-control engines without threading ``as_of``
    and tuning parameters through every call.  The service reads the time
    from its ``Clock`` and the parameters from its ``StockControlConfig``,
    then delegates to the pure engines.

Architecture position:
    Services -- orchestration over engines.  Holds no inventory state;
    every call takes the caller's current snapshots.

Invariants enforced:
    - One clock read per call: every engine invoked by a call sees the
      same ``as_of``.
    - ``item.current_stock`` is passed to engines as given (the last
      count).  ``project_item`` is the explicit way to replace it with the
      theoretical stock before forecasting.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.inventory import InventoryItem, StockMovement, WasteLog
from stock_kernel.domain.scanning import BarcodeLog
from stock_kernel.logging_config import get_logger
from stock_config import StockControlConfig
from stock_engines.barcode import BarcodeGenerator
from stock_engines.forecasting import (
    OptimalStockLevels,
    average_daily_usage,
    optimal_stock_levels,
    predict_stockout_date,
    reorder_quantity,
)
from stock_engines.ledger import (
    CountLine,
    CountSummary,
    reconcile_count,
    summarize_count,
    theoretical_stock,
)
from stock_engines.metrics import InventoryMetrics, inventory_metrics
from stock_engines.scan_analytics import EfficiencyReport, efficiency_report
from stock_engines.valuation import (
    AbcResult,
    TurnoverResult,
    abc_classification,
    carrying_cost,
    turnover_rate,
)
from stock_engines.waste import (
    ShrinkageResult,
    WasteReasonTotal,
    shrinkage_rate,
    waste_by_reason,
)

logger = get_logger("services.analytics")


class InventoryAnalyticsService:
    """
    Runs the time-windowed engines at the clock's current time with
    configured parameters.

    Contract:
        Receives config and clock via constructor injection.
    Non-goals:
        - Does not load or persist items, movements or logs.
    """

    def __init__(
        self,
        config: StockControlConfig | None = None,
        clock: Clock | None = None,
    ):
        self._config = config or StockControlConfig.with_defaults()
        self._clock = clock or SystemClock()

    @property
    def config(self) -> StockControlConfig:
        return self._config

    def now(self) -> datetime:
        return self._clock.now()

    # Forecasting

    def daily_usage(self, item_id: str, movements: Sequence[StockMovement]) -> Decimal:
        return average_daily_usage(
            item_id, movements,
            as_of=self._clock.now(),
            window_days=self._config.usage_window_days,
        )

    def reorder_quantity(
        self,
        item: InventoryItem,
        movements: Sequence[StockMovement],
    ) -> Decimal:
        """Recommended order for ``item`` from its recent usage."""
        return reorder_quantity(
            item,
            self.daily_usage(item.id, movements),
            self._config.lead_time_days,
            self._config.safety_stock_days,
            eoq=self._config.eoq_parameters(),
        )

    def optimal_stock_levels(
        self,
        item: InventoryItem,
        movements: Sequence[StockMovement],
    ) -> OptimalStockLevels:
        return optimal_stock_levels(
            item, movements,
            as_of=self._clock.now(),
            service_level=self._config.service_level,
            lead_time_days=self._config.lead_time_days,
            window_days=self._config.usage_window_days,
            safety_stock_days=self._config.safety_stock_days,
            eoq=self._config.eoq_parameters(),
        )

    def stockout_date(
        self,
        item: InventoryItem,
        movements: Sequence[StockMovement],
    ) -> datetime | None:
        return predict_stockout_date(
            item, movements,
            as_of=self._clock.now(),
            window_days=self._config.usage_window_days,
        )

    def project_item(
        self,
        item: InventoryItem,
        movements_since_count: Sequence[StockMovement],
    ) -> InventoryItem:
        """Copy of ``item`` whose ``current_stock`` is its theoretical stock."""
        projected = theoretical_stock(item, movements_since_count)
        logger.debug("item_projected", extra={
            "item_id": item.id,
            "counted_stock": str(item.current_stock),
            "theoretical_stock": str(projected),
        })
        return replace(item, current_stock=projected)

    # Valuation

    def turnover(
        self,
        item: InventoryItem,
        movements: Sequence[StockMovement],
    ) -> TurnoverResult:
        return turnover_rate(
            item, movements,
            as_of=self._clock.now(),
            period_days=self._config.turnover_period_days,
        )

    def abc_classification(
        self,
        items: Sequence[InventoryItem],
        movements: Sequence[StockMovement],
    ) -> list[AbcResult]:
        return abc_classification(
            items, movements,
            as_of=self._clock.now(),
            a_threshold=self._config.abc_a_threshold,
            b_threshold=self._config.abc_b_threshold,
        )

    def carrying_cost(self, inventory_value: Decimal) -> Decimal:
        return carrying_cost(inventory_value, self._config.carrying_cost_rate)

    # Waste

    def shrinkage(
        self,
        item_id: str,
        waste_logs: Sequence[WasteLog],
        movements: Sequence[StockMovement],
    ) -> ShrinkageResult:
        return shrinkage_rate(
            item_id, waste_logs, movements,
            as_of=self._clock.now(),
            period_days=self._config.shrinkage_period_days,
        )

    def waste_by_reason(self, waste_logs: Sequence[WasteLog]) -> list[WasteReasonTotal]:
        return waste_by_reason(
            waste_logs,
            as_of=self._clock.now(),
            period_days=self._config.shrinkage_period_days,
        )

    # Counts

    def reconcile_count(
        self,
        counts: Sequence[tuple[InventoryItem, Decimal]],
        movements: Sequence[StockMovement],
    ) -> CountSummary:
        """Reconcile ``(item, counted_quantity)`` pairs and total the count."""
        lines: list[CountLine] = [
            reconcile_count(item, counted, movements) for item, counted in counts
        ]
        return summarize_count(lines, self._config.count_tolerance_percent)

    # Dashboard and scanning

    def dashboard_metrics(
        self,
        items: Sequence[InventoryItem],
        movements: Sequence[StockMovement],
        waste_logs: Sequence[WasteLog],
    ) -> InventoryMetrics:
        return inventory_metrics(
            items, movements, waste_logs,
            as_of=self._clock.now(),
            waste_window_days=self._config.waste_window_days,
            turnover_period_days=self._config.turnover_period_days,
            expiring_shelf_life_days=self._config.expiring_shelf_life_days,
        )

    def scan_efficiency(self, logs: Sequence[BarcodeLog]) -> EfficiencyReport:
        return efficiency_report(
            logs,
            as_of=self._clock.now(),
            period_days=self._config.scan_report_period_days,
        )

    def barcode_generator(self, rng: random.Random | None = None) -> BarcodeGenerator:
        """Generator minting internal barcodes with the configured prefix."""
        return BarcodeGenerator(rng, default_prefix=self._config.internal_barcode_prefix)
