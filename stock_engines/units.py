"""
stock_engines.units -- Unit-of-measurement conversion.

Responsibility:
    Convert a quantity between two units of the same dimension using the
    conversion-factor table (each unit's factor is relative to the base
    unit of its type).

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Leaf dependency of
    recipe costing.

Invariants enforced:
    - Identity: converting a unit to itself returns the quantity unchanged
      and counts as converted.
    - Conversion only happens within one ``UnitType``.

Failure modes:
    - Unknown unit, type mismatch or a zero target factor never raise.
      The result carries the original quantity, ``converted=False`` and a
      warning message, and ``unit_conversion_failed`` is logged at WARNING.
      Callers decide whether to trust a figure built from it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from stock_kernel.domain.inventory import UnitOfMeasurement
from stock_kernel.domain.values import Numeric, to_decimal
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.units")


@dataclass(frozen=True)
class ConversionResult:
    """
    Outcome of a unit conversion.

    When ``converted`` is False, ``quantity`` is the caller's input
    quantity and ``warning`` says why it could not be converted.
    """

    quantity: Decimal
    converted: bool
    warning: str | None = None


def find_unit(ref: str, units: Iterable[UnitOfMeasurement]) -> UnitOfMeasurement | None:
    """First unit whose id or abbreviation is ``ref``."""
    for unit in units:
        if unit.matches(ref):
            return unit
    return None


def _unconverted(quantity: Decimal, from_unit: str, to_unit: str, warning: str) -> ConversionResult:
    logger.warning("unit_conversion_failed", extra={
        "from_unit": from_unit,
        "to_unit": to_unit,
        "quantity": str(quantity),
        "reason": warning,
    })
    return ConversionResult(quantity=quantity, converted=False, warning=warning)


def convert_quantity(
    quantity: Numeric,
    from_unit: str,
    to_unit: str,
    units: Iterable[UnitOfMeasurement] = (),
) -> ConversionResult:
    """
    Convert ``quantity`` from ``from_unit`` to ``to_unit``.

    Formula: ``quantity * from.conversion_factor / to.conversion_factor``.
    Units are looked up by id or abbreviation.
    """
    qty = to_decimal(quantity)
    if from_unit == to_unit:
        return ConversionResult(quantity=qty, converted=True)

    table = tuple(units)
    source = find_unit(from_unit, table)
    target = find_unit(to_unit, table)

    if source is None or target is None:
        return _unconverted(
            qty, from_unit, to_unit,
            f"Cannot convert from {from_unit} to {to_unit}: units not found",
        )
    if source.unit_type is not target.unit_type:
        return _unconverted(
            qty, from_unit, to_unit,
            "Cannot convert between different unit types: "
            f"{source.unit_type.value} to {target.unit_type.value}",
        )
    if target.conversion_factor == 0:
        return _unconverted(
            qty, from_unit, to_unit,
            f"Unit {to_unit} has a zero conversion factor",
        )

    base_quantity = qty * source.conversion_factor
    return ConversionResult(
        quantity=base_quantity / target.conversion_factor,
        converted=True,
    )
