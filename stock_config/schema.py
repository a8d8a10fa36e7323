"""
Stock-control configuration schema (``stock_config.schema``).

Defines the tunable parameters of the stock-control engines with their
defaults.  Values normally come from ``defaults.yaml`` (or a site-specific
YAML file) through ``stock_config.loader``.

Invariants enforced
-------------------
* Costs and rates are non-negative ``Decimal`` values.
* ``service_level`` lies strictly between 0 and 1.
* Day counts are positive integers (lead time may be 0).
* ABC class shares add up to at most 100 percent.
* Unknown keys in ``from_dict`` are rejected, not ignored.

Failure modes
-------------
* ``ConfigurationError`` (a ``ValueError``) naming the offending field.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from decimal import Decimal
from typing import Any, Self

from stock_kernel.domain.values import HUNDRED, ZERO, to_decimal
from stock_kernel.exceptions import ConfigurationError
from stock_kernel.logging_config import get_logger
from stock_engines.forecasting import EoqParameters

logger = get_logger("config.schema")

_DECIMAL_FIELDS = (
    "ordering_cost",
    "holding_cost_rate",
    "carrying_cost_rate",
    "service_level",
    "abc_class_a_percent",
    "abc_class_b_percent",
    "count_tolerance_percent",
)
_POSITIVE_DAY_FIELDS = (
    "usage_window_days",
    "turnover_period_days",
    "shrinkage_period_days",
    "waste_window_days",
    "scan_report_period_days",
)
_NON_NEGATIVE_DAY_FIELDS = (
    "lead_time_days",
    "safety_stock_days",
    "expiring_shelf_life_days",
)


@dataclass(frozen=True)
class StockControlConfig:
    """
    Parameters for forecasting, valuation, waste and barcode engines.

    Field defaults are the usual restaurant-inventory settings:

        config = StockControlConfig(lead_time_days=3, service_level=Decimal("0.99"))
    """

    # Replenishment
    ordering_cost: Decimal = Decimal("50")
    holding_cost_rate: Decimal = Decimal("0.20")
    lead_time_days: int = 7
    safety_stock_days: int = 3
    usage_window_days: int = 30
    service_level: Decimal = Decimal("0.95")

    # Valuation
    carrying_cost_rate: Decimal = Decimal("0.25")
    turnover_period_days: int = 365
    abc_class_a_percent: Decimal = Decimal("80")
    abc_class_b_percent: Decimal = Decimal("15")

    # Waste and counts
    shrinkage_period_days: int = 30
    waste_window_days: int = 7
    expiring_shelf_life_days: int = 3
    count_tolerance_percent: Decimal = Decimal("5")

    # Barcodes and scanning
    internal_barcode_prefix: str = "2"
    scan_report_period_days: int = 30

    def __post_init__(self) -> None:
        for name in _DECIMAL_FIELDS:
            try:
                value = to_decimal(getattr(self, name))
            except ValueError as exc:
                raise ConfigurationError(name, f"not a number ({exc})") from exc
            if value < 0:
                raise ConfigurationError(name, f"must be non-negative, got {value}")
            object.__setattr__(self, name, value)

        for name in _POSITIVE_DAY_FIELDS + _NON_NEGATIVE_DAY_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(name, f"must be an integer, got {value!r}")
            if name in _POSITIVE_DAY_FIELDS and value <= 0:
                raise ConfigurationError(name, f"must be positive, got {value}")
            if value < 0:
                raise ConfigurationError(name, f"must be non-negative, got {value}")

        if not (ZERO < self.service_level < Decimal("1")):
            raise ConfigurationError(
                "service_level", f"must be between 0 and 1, got {self.service_level}",
            )
        if self.abc_class_a_percent + self.abc_class_b_percent > HUNDRED:
            raise ConfigurationError(
                "abc_class_b_percent",
                "class A and class B shares exceed 100 percent",
            )
        prefix = self.internal_barcode_prefix
        if not isinstance(prefix, str) or len(prefix) != 1 or not prefix.isdigit():
            raise ConfigurationError(
                "internal_barcode_prefix", f"must be a single digit, got {prefix!r}",
            )

    @property
    def abc_a_threshold(self) -> Decimal:
        """Cumulative value share (percent) up to which items are class A."""
        return self.abc_class_a_percent

    @property
    def abc_b_threshold(self) -> Decimal:
        """Cumulative value share (percent) up to which items are class B."""
        return self.abc_class_a_percent + self.abc_class_b_percent

    def eoq_parameters(self) -> EoqParameters:
        return EoqParameters(
            ordering_cost=self.ordering_cost,
            holding_cost_rate=self.holding_cost_rate,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the built-in defaults."""
        logger.info("stock_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from a dictionary (e.g. parsed YAML)."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(unknown[0], "unknown configuration key")
        logger.info(
            "stock_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
