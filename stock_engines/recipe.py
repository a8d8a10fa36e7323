"""
stock_engines.recipe -- Recipe cost roll-up and food-cost percentage.

Responsibility:
    Cost each recipe line from the current price of its inventory item
    (after converting the line's unit to the item's primary unit), total
    the recipe and derive the cost per serving.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on stock_engines.units.

Invariants enforced:
    - ``total_cost == sum(ingredient.cost)``.
    - No division by zero: with ``servings <= 0`` the cost per serving is
      the total cost.

Failure modes:
    - Degraded, not failed.  A line whose item is missing falls back to
      its stored cost (``item_not_found``); a line whose unit cannot be
      converted is costed on the unconverted quantity
      (``unit_not_converted``).  ``RecipeCostResult.is_degraded`` tells the
      caller whether the total can be trusted.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from stock_kernel.domain.inventory import InventoryItem, Recipe, UnitOfMeasurement
from stock_kernel.domain.values import HUNDRED, ZERO, Numeric, to_decimal
from stock_kernel.logging_config import get_logger
from stock_engines.tracer import traced_engine
from stock_engines.units import convert_quantity

logger = get_logger("engines.recipe")


class DegradedReason(str, Enum):
    """Why an ingredient cost is less trustworthy than usual."""

    ITEM_NOT_FOUND = "item_not_found"
    UNIT_NOT_CONVERTED = "unit_not_converted"


@dataclass(frozen=True)
class IngredientCost:
    """Cost of one recipe line."""

    item_id: str
    item_name: str
    quantity: Decimal
    unit: str
    costed_quantity: Decimal
    cost: Decimal
    degraded_reason: DegradedReason | None = None
    warning: str | None = None

    @property
    def is_degraded(self) -> bool:
        return self.degraded_reason is not None


@dataclass(frozen=True)
class RecipeCostResult:
    """Total and per-serving cost of a recipe, line by line."""

    recipe_id: str
    total_cost: Decimal
    cost_per_serving: Decimal
    ingredient_costs: tuple[IngredientCost, ...]

    @property
    def is_degraded(self) -> bool:
        return any(line.is_degraded for line in self.ingredient_costs)

    def food_cost_percent(self, sell_price: Numeric) -> Decimal:
        """Cost per serving as a percentage of ``sell_price``."""
        return food_cost_percentage(self.cost_per_serving, sell_price)


@traced_engine("recipe", "1.0", fingerprint_fields=("recipe", "items"))
def recipe_cost(
    recipe: Recipe,
    items: Sequence[InventoryItem],
    units: Sequence[UnitOfMeasurement] = (),
) -> RecipeCostResult:
    """
    Roll up the cost of ``recipe`` from the current inventory prices.

    For each line: find the item by id, convert the line quantity into the
    item's primary unit, and multiply by the item's ``cost_price``.  Lines
    without a matching item use the cost stored on the line.
    """
    by_id = {item.id: item for item in items}
    lines: list[IngredientCost] = []
    total = ZERO

    for ingredient in recipe.ingredients:
        item = by_id.get(ingredient.item_id)
        if item is None:
            logger.warning("recipe_ingredient_not_found", extra={
                "recipe_id": recipe.id,
                "item_id": ingredient.item_id,
                "stored_cost": str(ingredient.cost),
            })
            line = IngredientCost(
                item_id=ingredient.item_id,
                item_name=ingredient.item_name,
                quantity=ingredient.quantity,
                unit=ingredient.unit,
                costed_quantity=ingredient.quantity,
                cost=ingredient.cost,
                degraded_reason=DegradedReason.ITEM_NOT_FOUND,
                warning=f"Item {ingredient.item_id} not found; stored cost used",
            )
        else:
            conversion = convert_quantity(
                ingredient.quantity, ingredient.unit, item.primary_unit, units,
            )
            line = IngredientCost(
                item_id=ingredient.item_id,
                item_name=ingredient.item_name or item.name,
                quantity=ingredient.quantity,
                unit=ingredient.unit,
                costed_quantity=conversion.quantity,
                cost=conversion.quantity * item.cost_price,
                degraded_reason=(
                    None if conversion.converted else DegradedReason.UNIT_NOT_CONVERTED
                ),
                warning=conversion.warning,
            )
        total += line.cost
        lines.append(line)

    per_serving = total / recipe.servings if recipe.servings > 0 else total

    result = RecipeCostResult(
        recipe_id=recipe.id,
        total_cost=total,
        cost_per_serving=per_serving,
        ingredient_costs=tuple(lines),
    )
    logger.info("recipe_cost_calculated", extra={
        "recipe_id": recipe.id,
        "ingredient_count": len(lines),
        "total_cost": str(total),
        "cost_per_serving": str(per_serving),
        "degraded_lines": sum(1 for line in lines if line.is_degraded),
    })
    return result


def food_cost_percentage(cost_of_goods_sold: Numeric, revenue: Numeric) -> Decimal:
    """Cost of goods sold as a percentage of revenue (0 with no revenue)."""
    revenue_d = to_decimal(revenue)
    if revenue_d <= 0:
        return ZERO
    return to_decimal(cost_of_goods_sold) / revenue_d * HUNDRED
