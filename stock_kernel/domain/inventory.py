"""
Inventory Domain Records (``stock_kernel.domain.inventory``).

Responsibility
--------------
Frozen value objects for the nouns the calculation engines consume: items
and their per-location stock, the append-only movement ledger, waste logs,
units of measurement and recipes.

Architecture
------------
Layer: **Kernel > Domain** -- pure data structures.  Records are
``frozen=True``; the persistence layer that owns them hands the engines
already-loaded snapshots.  No I/O, no clock.

Invariants
----------
- ``InventoryItem`` pricing and stock-level fields are non-negative.
- ``WasteLog.total_cost`` is derived (``quantity * unit_cost``) and can
  never disagree with its inputs.
- The stock-sign convention lives in ``stock_effect``: every
  ``MovementType`` maps to exactly one ``StockEffect``.
- All numeric fields are ``Decimal`` after construction.

Failure Modes
-------------
- ``ValueError`` from ``InventoryItem`` / ``WasteLog`` construction when a
  field violates its range.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from stock_kernel.domain.values import ZERO, coerce_fields
from stock_kernel.logging_config import get_logger

logger = get_logger("domain.inventory")


class MovementType(str, Enum):
    """Kinds of entries in the stock movement ledger."""

    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    WASTE = "waste"
    RETURN = "return"
    PRODUCTION = "production"
    CONSUMPTION = "consumption"
    COUNT = "count"


class StockEffect(str, Enum):
    """Direction in which a movement moves theoretical stock."""

    INCREASE = "increase"  # signed quantity is added
    DECREASE = "decrease"  # abs(quantity) is subtracted
    NEUTRAL = "neutral"    # count anchors, not deltas


class ReferenceType(str, Enum):
    """Source document that produced a movement."""

    PURCHASE_ORDER = "purchase_order"
    SALES_ORDER = "sales_order"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    WASTE_LOG = "waste_log"


class UnitType(str, Enum):
    """Dimension of a unit of measurement; conversion stays within one type."""

    WEIGHT = "weight"
    VOLUME = "volume"
    COUNT = "count"
    LENGTH = "length"
    AREA = "area"


USAGE_TYPES: frozenset[MovementType] = frozenset(
    {MovementType.CONSUMPTION, MovementType.SALE}
)


def stock_effect(movement_type: MovementType) -> StockEffect:
    """Return how a movement of ``movement_type`` changes theoretical stock."""
    match movement_type:
        case (
            MovementType.PURCHASE
            | MovementType.ADJUSTMENT
            | MovementType.RETURN
            | MovementType.PRODUCTION
        ):
            return StockEffect.INCREASE
        case (
            MovementType.SALE
            | MovementType.CONSUMPTION
            | MovementType.WASTE
            | MovementType.TRANSFER
        ):
            return StockEffect.DECREASE
        case MovementType.COUNT:
            return StockEffect.NEUTRAL
        case _:
            raise ValueError(f"Unknown movement type: {movement_type}")


@dataclass(frozen=True)
class LocationStock:
    """Stock of one item held at one location."""

    location_id: str
    quantity: Decimal
    last_updated: datetime
    reserved_quantity: Decimal = ZERO

    def __post_init__(self) -> None:
        coerce_fields(self, "quantity", "reserved_quantity")
        if self.quantity < 0 or self.reserved_quantity < 0:
            raise ValueError(
                f"Location stock quantities must be non-negative at {self.location_id}"
            )

    @property
    def available_quantity(self) -> Decimal:
        return self.quantity - self.reserved_quantity


_NON_NEGATIVE_ITEM_FIELDS = (
    "cost_price",
    "current_stock",
    "minimum_stock",
    "reorder_point",
)
_OPTIONAL_NON_NEGATIVE_ITEM_FIELDS = (
    "maximum_stock",
    "reorder_quantity",
    "average_cost",
    "last_cost_price",
    "sell_price",
)


@dataclass(frozen=True)
class InventoryItem:
    """
    A stocked ingredient or supply.

    Contract: Immutable snapshot.  ``current_stock`` is the stock figure the
    caller last reconciled (the physical-count anchor); engines never edit
    it.  Optional limits (``maximum_stock``, ``reorder_quantity``) are
    ``None`` when unset.
    """

    id: str
    name: str
    primary_unit: str
    cost_price: Decimal
    current_stock: Decimal = ZERO
    minimum_stock: Decimal = ZERO
    maximum_stock: Decimal | None = None
    reorder_point: Decimal = ZERO
    reorder_quantity: Decimal | None = None
    average_cost: Decimal | None = None
    last_cost_price: Decimal | None = None
    sell_price: Decimal | None = None
    sku: str | None = None
    barcode: str | None = None
    secondary_unit: str | None = None
    conversion_factor: Decimal = Decimal("1")
    is_perishable: bool = False
    shelf_life_days: int | None = None
    expiration_tracking: bool = False
    supplier_id: str | None = None
    location_stock: tuple[LocationStock, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        coerce_fields(
            self,
            *_NON_NEGATIVE_ITEM_FIELDS,
            "conversion_factor",
            optional=_OPTIONAL_NON_NEGATIVE_ITEM_FIELDS,
        )
        object.__setattr__(self, "location_stock", tuple(self.location_stock))

        for name in _NON_NEGATIVE_ITEM_FIELDS + _OPTIONAL_NON_NEGATIVE_ITEM_FIELDS:
            value = getattr(self, name)
            if value is not None and value < 0:
                logger.warning(
                    "inventory_item_negative_field",
                    extra={"item_id": self.id, "field": name, "value": str(value)},
                )
                raise ValueError(f"{name} must be non-negative (got {value})")

    @property
    def has_maximum_stock(self) -> bool:
        """True when a positive maximum stock level is configured."""
        return self.maximum_stock is not None and self.maximum_stock > 0

    @property
    def has_reorder_override(self) -> bool:
        """True when a manual reorder quantity is configured."""
        return self.reorder_quantity is not None and self.reorder_quantity > 0

    @property
    def stock_value(self) -> Decimal:
        return self.current_stock * self.cost_price


@dataclass(frozen=True)
class StockMovement:
    """
    One immutable entry in the stock ledger.

    Corrections are new movements (``adjustment`` or ``count``); existing
    movements are never edited or deleted.
    """

    id: str
    item_id: str
    location_id: str
    movement_type: MovementType
    quantity: Decimal
    created_at: datetime
    user_id: str
    unit_cost: Decimal | None = None
    total_cost: Decimal | None = None
    reference_id: str | None = None
    reference_type: ReferenceType | None = None
    reason: str | None = None
    batch_number: str | None = None
    expiration_date: date | None = None
    is_approved: bool = True
    approved_by: str | None = None

    def __post_init__(self) -> None:
        coerce_fields(self, "quantity", optional=("unit_cost", "total_cost"))
        object.__setattr__(self, "movement_type", MovementType(self.movement_type))

    @property
    def effect(self) -> StockEffect:
        return stock_effect(self.movement_type)

    @property
    def magnitude(self) -> Decimal:
        return abs(self.quantity)


@dataclass(frozen=True)
class WasteLog:
    """A recorded loss of stock, with its reason and approval state."""

    id: str
    item_id: str
    location_id: str
    quantity: Decimal
    unit_cost: Decimal
    reason_id: str
    waste_date: datetime
    reported_by: str
    item_name: str = ""
    reason_name: str = ""
    description: str | None = None
    batch_number: str | None = None
    preventable: bool = False
    is_approved: bool = False
    approved_by: str | None = None

    def __post_init__(self) -> None:
        coerce_fields(self, "quantity", "unit_cost")
        if self.quantity <= 0:
            raise ValueError(f"Waste quantity must be positive (got {self.quantity})")
        if self.unit_cost < 0:
            raise ValueError(f"Waste unit cost cannot be negative (got {self.unit_cost})")

    @property
    def total_cost(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass(frozen=True)
class UnitOfMeasurement:
    """
    A unit and its factor relative to the base unit of its type.

    ``conversion_factor`` is how many base units one of this unit holds
    (grams as base: kg = 1000, g = 1).
    """

    id: str
    name: str
    abbreviation: str
    unit_type: UnitType
    conversion_factor: Decimal = Decimal("1")

    def __post_init__(self) -> None:
        coerce_fields(self, "conversion_factor")
        object.__setattr__(self, "unit_type", UnitType(self.unit_type))

    def matches(self, ref: str) -> bool:
        """True if ``ref`` names this unit by id or abbreviation."""
        return ref == self.id or ref == self.abbreviation


@dataclass(frozen=True)
class RecipeIngredient:
    """One line of a recipe; ``cost`` is the last stored cost for the line."""

    item_id: str
    quantity: Decimal
    unit: str
    cost: Decimal = ZERO
    item_name: str = ""
    notes: str | None = None

    def __post_init__(self) -> None:
        coerce_fields(self, "quantity", "cost")


@dataclass(frozen=True)
class Recipe:
    """A menu recipe: its ingredient lines and how many servings it yields."""

    id: str
    name: str
    ingredients: tuple[RecipeIngredient, ...]
    servings: Decimal = Decimal("1")
    menu_item_id: str | None = None
    target_cost_percent: Decimal | None = None

    def __post_init__(self) -> None:
        coerce_fields(self, "servings", optional=("target_cost_percent",))
        object.__setattr__(self, "ingredients", tuple(self.ingredients))
