"""
Unit tests for ingredient scaling and unit conversion.
"""

import pytest

from dailydish.measurements import (
    clamp_servings,
    display,
    format_amount,
    initial_servings,
    resolve_system,
    scale_factor,
    scaled_ingredients,
)
from dailydish.models import Ingredient, MeasurementPreference, MeasurementSystem

from conftest import make_recipe

METRIC = MeasurementSystem.METRIC
IMPERIAL = MeasurementSystem.IMPERIAL


class TestFormatAmount:
    def test_collapses_to_integer(self):
        assert format_amount(2.04) == "2"

    def test_keeps_one_decimal(self):
        assert format_amount(2.26) == "2.3"

    def test_half_rounds_up(self):
        assert format_amount(0.25) == "0.3"
        assert format_amount(2.5) == "2.5"

    def test_whole_number(self):
        assert format_amount(240.0) == "240"


class TestPassThrough:
    @pytest.mark.parametrize("amount", ["a pinch", "to taste", "", "1/2"])
    def test_non_numeric_amount_unchanged(self, amount):
        assert display(amount, "Cup", 3.0, METRIC) == (amount, "Cup")
        assert display(amount, "g", 0.5, IMPERIAL) == (amount, "g")

    @pytest.mark.parametrize("amount", ["1_000", "2_5"])
    def test_digit_separators_not_numbers(self, amount):
        assert display(amount, "g", 2.0, METRIC) == (amount, "g")
        assert display(amount, "ml", 1.0, IMPERIAL) == (amount, "ml")


class TestToMetric:
    def test_tablespoon(self):
        assert display("1", "tbsp", 1.0, METRIC) == ("15", "ml")

    def test_tablespoon_scaled_before_bucketing(self):
        assert display("1", "tbsp", 2.0, METRIC) == ("30", "ml")

    def test_cup(self):
        assert display("1", "cup", 1.0, METRIC) == ("240", "ml")

    def test_large_volume_becomes_litres(self):
        assert display("5", "cups", 1.0, METRIC) == ("1.2", "L")

    def test_exactly_1000_ml_is_litres(self):
        # 200 tsp * 5 = 1000 ml
        assert display("200", "tsp", 1.0, METRIC) == ("1", "L")

    def test_unit_lookup_ignores_case_and_whitespace(self):
        assert display("2", " Tablespoons ", 1.0, METRIC) == ("30", "ml")

    def test_fluid_ounce(self):
        assert display("2", "fl oz", 1.0, METRIC) == ("59.1", "ml")

    def test_ounces_to_grams(self):
        assert display("4", "oz", 1.0, METRIC) == ("113.4", "g")

    def test_pounds_to_kilograms(self):
        assert display("3", "lbs", 1.0, METRIC) == ("1.4", "kg")

    def test_metric_unit_left_alone_but_scaled(self):
        assert display("100", "G", 1.5, METRIC) == ("150", "G")


class TestToImperial:
    def test_millilitres_to_cups(self):
        assert display("250", "ml", 1.0, IMPERIAL) == ("1", "cups")

    def test_millilitres_to_tablespoons(self):
        assert display("30", "ml", 1.0, IMPERIAL) == ("2", "tbsp")

    def test_small_volume_to_teaspoons(self):
        assert display("10", "ml", 1.0, IMPERIAL) == ("2", "tsp")

    def test_litre(self):
        assert display("1", "L", 1.0, IMPERIAL) == ("4.2", "cups")

    def test_grams_to_ounces(self):
        assert display("100", "g", 1.0, IMPERIAL) == ("3.5", "oz")

    def test_kilograms_to_pounds(self):
        assert display("1", "kg", 1.0, IMPERIAL) == ("2.2", "lb")

    def test_imperial_unit_left_alone(self):
        assert display("1", "cup", 2.0, IMPERIAL) == ("2", "cup")


class TestNonConvertible:
    @pytest.mark.parametrize("unit", ["pinch", "clove", "piece", ""])
    def test_unit_kept_value_scaled(self, unit):
        assert display("3", unit, 2.0, METRIC) == ("6", unit)
        assert display("3", unit, 0.5, IMPERIAL) == ("1.5", unit)


class TestIdempotence:
    @pytest.mark.parametrize(
        "amount,unit,system",
        [("240", "ml", METRIC), ("2", "cups", IMPERIAL), ("1.5", "kg", METRIC), ("3", "clove", IMPERIAL)],
    )
    def test_native_system_at_scale_one(self, amount, unit, system):
        assert display(amount, unit, 1.0, system) == (amount, unit)


class TestResolveSystem:
    def test_explicit_preferences(self):
        assert resolve_system(MeasurementPreference.METRIC, "en_US") == METRIC
        assert resolve_system(MeasurementPreference.IMPERIAL, "fr_FR") == IMPERIAL

    @pytest.mark.parametrize("locale_name", ["en_US", "en-US", "en_US.UTF-8", "en_LR"])
    def test_system_follows_imperial_locale(self, locale_name):
        assert resolve_system(MeasurementPreference.SYSTEM, locale_name) == IMPERIAL

    @pytest.mark.parametrize("locale_name", ["en_GB", "nl_NL.UTF-8", "de-DE"])
    def test_system_follows_metric_locale(self, locale_name):
        assert resolve_system(MeasurementPreference.SYSTEM, locale_name) == METRIC

    def test_unknown_locale_is_metric(self, monkeypatch):
        monkeypatch.setattr("dailydish.measurements._host_locale", lambda: None)
        assert resolve_system(MeasurementPreference.SYSTEM) == METRIC


class TestServings:
    def test_scale_factor(self):
        assert scale_factor(4, 2) == 2.0

    def test_scale_factor_without_recipe_servings(self):
        assert scale_factor(4, 0) == 1.0

    def test_clamp(self):
        assert clamp_servings(0) == 1
        assert clamp_servings(25) == 20
        assert clamp_servings(6) == 6

    def test_initial_servings_default_zero_uses_recipe(self):
        assert initial_servings(make_recipe("a", servings=3), 0) == 3

    def test_initial_servings_uses_default(self):
        assert initial_servings(make_recipe("a", servings=3), 5) == 5

    def test_scaled_ingredients(self):
        recipe = make_recipe(
            "a",
            servings=2,
            ingredients=[
                Ingredient(name="milk", amount="1", unit="cup"),
                Ingredient(name="salt", amount="a pinch", unit=""),
            ],
            ingredient_names_nl=["melk", "zout"],
        )
        rows = scaled_ingredients(recipe, 4, METRIC, lang="nl")
        assert [(r.name, r.amount, r.unit) for r in rows] == [
            ("melk", "480", "ml"),
            ("zout", "a pinch", ""),
        ]
