"""
Pure domain layer.

Immutable records and value helpers with NO dependencies on a database,
the wall clock, or I/O.  ``ScanSession`` is the single mutable record and
is owned by the scan session service.
"""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.ids import IdGenerator, SequentialIdGenerator, UuidIdGenerator
from stock_kernel.domain.inventory import (
    USAGE_TYPES,
    InventoryItem,
    LocationStock,
    MovementType,
    Recipe,
    RecipeIngredient,
    ReferenceType,
    StockEffect,
    StockMovement,
    UnitOfMeasurement,
    UnitType,
    WasteLog,
    stock_effect,
)
from stock_kernel.domain.scanning import (
    BarcodeFormat,
    BarcodeLog,
    ScanResult,
    ScanSession,
    ScanSessionSnapshot,
    ScanSessionType,
    ScanType,
)
from stock_kernel.domain.values import to_decimal

__all__ = [
    "BarcodeFormat",
    "BarcodeLog",
    "Clock",
    "DeterministicClock",
    "IdGenerator",
    "InventoryItem",
    "LocationStock",
    "MovementType",
    "Recipe",
    "RecipeIngredient",
    "ReferenceType",
    "ScanResult",
    "ScanSession",
    "ScanSessionSnapshot",
    "ScanSessionType",
    "ScanType",
    "SequentialIdGenerator",
    "StockEffect",
    "StockMovement",
    "SystemClock",
    "USAGE_TYPES",
    "UnitOfMeasurement",
    "UnitType",
    "UuidIdGenerator",
    "WasteLog",
    "stock_effect",
    "to_decimal",
]
