"""
Tests for unit conversion and recipe costing.

Covers:
- Conversion within a unit type, by id or abbreviation
- Degraded conversions (unknown unit, type mismatch) and their warnings
- Recipe roll-up, fallbacks, and the servings guard
- Food cost percentage
"""

from decimal import Decimal

import pytest

from stock_engines.recipe import (
    DegradedReason,
    food_cost_percentage,
    recipe_cost,
)
from stock_engines.units import convert_quantity
from stock_kernel.domain.inventory import (
    Recipe,
    RecipeIngredient,
    UnitOfMeasurement,
    UnitType,
)

UNITS = (
    UnitOfMeasurement(id="u-g", name="Gram", abbreviation="g", unit_type=UnitType.WEIGHT),
    UnitOfMeasurement(
        id="u-kg", name="Kilogram", abbreviation="kg",
        unit_type=UnitType.WEIGHT, conversion_factor="1000",
    ),
    UnitOfMeasurement(id="u-ml", name="Millilitre", abbreviation="ml", unit_type=UnitType.VOLUME),
    UnitOfMeasurement(
        id="u-l", name="Litre", abbreviation="l",
        unit_type=UnitType.VOLUME, conversion_factor="1000",
    ),
)


class TestConvertQuantity:

    def test_identity(self):
        result = convert_quantity("3", "kg", "kg")

        assert result.quantity == Decimal("3")
        assert result.converted is True

    def test_grams_to_kilograms(self):
        result = convert_quantity("250", "g", "kg", UNITS)

        assert result.quantity == Decimal("0.25")
        assert result.converted is True
        assert result.warning is None

    def test_lookup_by_id(self):
        assert convert_quantity("2", "u-l", "u-ml", UNITS).quantity == Decimal("2000")

    def test_unknown_unit_returns_original(self, captured_logs):
        result = convert_quantity("5", "cup", "kg", UNITS)

        assert result.quantity == Decimal("5")
        assert result.converted is False
        assert "units not found" in result.warning
        assert any(r["message"] == "unit_conversion_failed" for r in captured_logs())

    def test_type_mismatch_returns_original(self):
        result = convert_quantity("5", "l", "kg", UNITS)

        assert result.quantity == Decimal("5")
        assert result.converted is False
        assert "different unit types" in result.warning

    def test_zero_target_factor(self):
        broken = UnitOfMeasurement(
            id="u-x", name="Broken", abbreviation="x",
            unit_type=UnitType.WEIGHT, conversion_factor="0",
        )

        result = convert_quantity("5", "g", "x", UNITS + (broken,))

        assert result.converted is False


class TestRecipeCost:

    def _recipe(self, servings="4"):
        return Recipe(
            id="r-1",
            name="Bread",
            servings=servings,
            ingredients=(
                RecipeIngredient(item_id="flour", quantity="500", unit="g"),
                RecipeIngredient(item_id="water", quantity="300", unit="ml"),
                RecipeIngredient(item_id="yeast", quantity="7", unit="g", cost="0.35"),
            ),
        )

    def _items(self, make_item):
        return [
            make_item("flour", cost_price="1.20", primary_unit="kg"),
            make_item("water", cost_price="0.01", primary_unit="l"),
        ]

    def test_rolls_up_converted_costs(self, make_item):
        result = recipe_cost(self._recipe(), self._items(make_item), UNITS)

        costs = {line.item_id: line for line in result.ingredient_costs}
        assert costs["flour"].costed_quantity == Decimal("0.5")
        assert costs["flour"].cost == Decimal("0.600")
        assert costs["water"].cost == Decimal("0.003")
        assert costs["yeast"].cost == Decimal("0.35")
        assert result.total_cost == Decimal("0.953")
        assert result.cost_per_serving == Decimal("0.953") / 4

    def test_missing_item_uses_stored_cost(self, make_item):
        result = recipe_cost(self._recipe(), self._items(make_item), UNITS)

        yeast = next(line for line in result.ingredient_costs if line.item_id == "yeast")
        assert yeast.degraded_reason is DegradedReason.ITEM_NOT_FOUND
        assert result.is_degraded is True

    def test_unconverted_unit_flagged(self, make_item):
        recipe = Recipe(
            id="r-2", name="Soup", servings="1",
            ingredients=(RecipeIngredient(item_id="flour", quantity="2", unit="cup"),),
        )

        result = recipe_cost(recipe, self._items(make_item), UNITS)

        line = result.ingredient_costs[0]
        assert line.degraded_reason is DegradedReason.UNIT_NOT_CONVERTED
        assert line.costed_quantity == Decimal("2")
        assert line.cost == Decimal("2.40")
        assert line.warning

    def test_fully_resolved_recipe_not_degraded(self, make_item):
        recipe = Recipe(
            id="r-3", name="Dough", servings="2",
            ingredients=(RecipeIngredient(item_id="flour", quantity="1", unit="kg"),),
        )

        result = recipe_cost(recipe, self._items(make_item), UNITS)

        assert result.is_degraded is False
        assert result.total_cost == Decimal("1.20")
        assert result.cost_per_serving == Decimal("0.60")

    @pytest.mark.parametrize("servings", ["0", "-1"])
    def test_non_positive_servings(self, make_item, servings):
        result = recipe_cost(self._recipe(servings), self._items(make_item), UNITS)

        assert result.cost_per_serving == result.total_cost

    def test_food_cost_percent_of_sell_price(self, make_item):
        recipe = Recipe(
            id="r-3", name="Dough", servings="1",
            ingredients=(RecipeIngredient(item_id="flour", quantity="1", unit="kg"),),
        )

        result = recipe_cost(recipe, self._items(make_item), UNITS)

        assert result.food_cost_percent("4.00") == Decimal("30")


class TestFoodCostPercentage:

    def test_percentage(self):
        assert food_cost_percentage("300", "1000") == Decimal("30")

    def test_zero_revenue(self):
        assert food_cost_percentage("300", "0") == Decimal("0")
