"""
Module: stock_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for stock_services
    and for callers embedding the engines directly.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel (and sibling engine modules).
    MUST NOT import stock_services or stock_config.

Invariants enforced:
    - Purity: engines never call ``datetime.now()``.  Time-windowed
      calculations take ``as_of``; services supply it from their Clock.
    - Decimal-only arithmetic for quantities, costs and rates.
    - Determinism: identical inputs always produce identical outputs
      (the barcode generator's randomness is an injected ``random.Random``).

Failure modes:
    - ValueError propagated from individual engines on invalid arguments.
    - Degenerate math (zero denominators, empty inputs) returns 0.

Usage:
    from stock_engines import theoretical_stock, reorder_quantity, validate_barcode
"""

from stock_kernel.logging_config import get_logger

logger = get_logger("engines")

from stock_engines.barcode import (
    BarcodeGenerator,
    BarcodeValidation,
    clean_barcode,
    detect_format,
    format_for_display,
    generate_upca_check_digit,
    upca_to_upce,
    upce_to_upca,
    validate_barcode,
)
from stock_engines.forecasting import (
    DEFAULT_EOQ_PARAMETERS,
    EoqParameters,
    OptimalStockLevels,
    average_daily_usage,
    economic_order_quantity,
    optimal_stock_levels,
    predict_stockout_date,
    reorder_quantity,
    service_level_z_score,
)
from stock_engines.ledger import (
    CountLine,
    CountSummary,
    StockVariance,
    reconcile_count,
    stock_variance,
    summarize_count,
    theoretical_stock,
)
from stock_engines.metrics import (
    AlertSeverity,
    AlertType,
    InventoryMetrics,
    ReorderRecommendation,
    StockAlert,
    inventory_metrics,
    reorder_report,
    stock_alerts,
)
from stock_engines.recipe import (
    DegradedReason,
    IngredientCost,
    RecipeCostResult,
    food_cost_percentage,
    recipe_cost,
)
from stock_engines.scan_analytics import (
    EfficiencyReport,
    HourCount,
    ScanPerformance,
    ScannedItemCount,
    analyze_scan_performance,
    efficiency_report,
)
from stock_engines.tracer import traced_engine
from stock_engines.units import ConversionResult, convert_quantity
from stock_engines.valuation import (
    AbcClass,
    AbcResult,
    TurnoverResult,
    ValuationMethod,
    abc_classification,
    carrying_cost,
    inventory_value,
    turnover_rate,
    weighted_average_cost,
)
from stock_engines.waste import (
    ShrinkageResult,
    WasteReasonTotal,
    shrinkage_rate,
    waste_by_reason,
)

__all__ = [
    # Barcode
    "BarcodeGenerator",
    "BarcodeValidation",
    "clean_barcode",
    "detect_format",
    "format_for_display",
    "generate_upca_check_digit",
    "upca_to_upce",
    "upce_to_upca",
    "validate_barcode",
    # Forecasting
    "DEFAULT_EOQ_PARAMETERS",
    "EoqParameters",
    "OptimalStockLevels",
    "average_daily_usage",
    "economic_order_quantity",
    "optimal_stock_levels",
    "predict_stockout_date",
    "reorder_quantity",
    "service_level_z_score",
    # Ledger
    "CountLine",
    "CountSummary",
    "StockVariance",
    "reconcile_count",
    "stock_variance",
    "summarize_count",
    "theoretical_stock",
    # Metrics
    "AlertSeverity",
    "AlertType",
    "InventoryMetrics",
    "ReorderRecommendation",
    "StockAlert",
    "inventory_metrics",
    "reorder_report",
    "stock_alerts",
    # Recipe
    "DegradedReason",
    "IngredientCost",
    "RecipeCostResult",
    "food_cost_percentage",
    "recipe_cost",
    # Scan analytics
    "EfficiencyReport",
    "HourCount",
    "ScanPerformance",
    "ScannedItemCount",
    "analyze_scan_performance",
    "efficiency_report",
    # Tracer
    "traced_engine",
    # Units
    "ConversionResult",
    "convert_quantity",
    # Valuation
    "AbcClass",
    "AbcResult",
    "TurnoverResult",
    "ValuationMethod",
    "abc_classification",
    "carrying_cost",
    "inventory_value",
    "turnover_rate",
    "weighted_average_cost",
    # Waste
    "ShrinkageResult",
    "WasteReasonTotal",
    "shrinkage_rate",
    "waste_by_reason",
]
