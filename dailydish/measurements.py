"""
Ingredient quantity scaling and metric/imperial conversion for display.

Amounts are stored as strings on the recipe ("2", "0.5", "a pinch"); only
the numeric ones are scaled and converted, everything else is shown as-is.
"""

import locale as _locale
import math
from typing import Optional

from dailydish.models import (
    MeasurementPreference,
    MeasurementSystem,
    Recipe,
    ScaledIngredient,
)

# ---------------------------------------------------------------------------
# Lookup tables (keys are lower-case, trimmed)
# ---------------------------------------------------------------------------

IMPERIAL_VOLUME_TO_ML = {
    "cup": 240, "cups": 240,
    "tablespoon": 15, "tablespoons": 15, "tbsp": 15,
    "teaspoon": 5, "teaspoons": 5, "tsp": 5,
    "fl oz": 29.57, "fluid ounce": 29.57, "fluid ounces": 29.57,
}

IMPERIAL_WEIGHT_TO_G = {
    "oz": 28.35, "ounce": 28.35, "ounces": 28.35,
    "lb": 453.59, "lbs": 453.59, "pound": 453.59, "pounds": 453.59,
}

METRIC_VOLUME_TO_ML = {
    "ml": 1, "milliliter": 1, "milliliters": 1, "millilitre": 1, "millilitres": 1,
    "l": 1000, "liter": 1000, "liters": 1000, "litre": 1000, "litres": 1000,
}

METRIC_WEIGHT_TO_G = {
    "g": 1, "gram": 1, "grams": 1,
    "kg": 1000, "kilogram": 1000, "kilograms": 1000,
}

ML_PER_CUP = 240
ML_PER_TBSP = 15
ML_PER_TSP = 5
G_PER_LB = 453.59
G_PER_OZ = 28.35

# Territories whose locale measurement system is not metric
IMPERIAL_TERRITORIES = {"US", "LR", "MM"}

MIN_SERVINGS = 1
MAX_SERVINGS = 20


def format_amount(value: float) -> str:
    """Round to one decimal; drop the decimal when it is zero (2.04 -> "2")."""
    rounded = math.copysign(math.floor(abs(value) * 10 + 0.5), value) / 10
    if rounded == round(rounded):
        return "%.0f" % rounded
    return "%.1f" % rounded


def _parse_amount(amount: str) -> Optional[float]:
    # float() also takes digit separators such as "1_000"; stored amounts never use them
    if isinstance(amount, str) and "_" in amount:
        return None
    try:
        value = float(amount.strip())
    except (ValueError, AttributeError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def display(
    amount: str,
    unit: str,
    scale_factor: float = 1.0,
    system: MeasurementSystem = MeasurementSystem.METRIC,
) -> tuple[str, str]:
    """Return a display-ready (amount, unit) pair after scaling and conversion."""
    value = _parse_amount(amount)
    if value is None:
        return amount, unit

    scaled = value * scale_factor
    lower = unit.strip().lower()

    if system == MeasurementSystem.METRIC:
        if lower in IMPERIAL_VOLUME_TO_ML:
            ml = scaled * IMPERIAL_VOLUME_TO_ML[lower]
            return (format_amount(ml / 1000), "L") if ml >= 1000 else (format_amount(ml), "ml")
        if lower in IMPERIAL_WEIGHT_TO_G:
            g = scaled * IMPERIAL_WEIGHT_TO_G[lower]
            return (format_amount(g / 1000), "kg") if g >= 1000 else (format_amount(g), "g")
    else:
        if lower in METRIC_VOLUME_TO_ML:
            ml = scaled * METRIC_VOLUME_TO_ML[lower]
            if ml >= ML_PER_CUP:
                return format_amount(ml / ML_PER_CUP), "cups"
            if ml >= ML_PER_TBSP:
                return format_amount(ml / ML_PER_TBSP), "tbsp"
            return format_amount(ml / ML_PER_TSP), "tsp"
        if lower in METRIC_WEIGHT_TO_G:
            g = scaled * METRIC_WEIGHT_TO_G[lower]
            if g >= G_PER_LB:
                return format_amount(g / G_PER_LB), "lb"
            return format_amount(g / G_PER_OZ), "oz"

    # Already in the target system, or not convertible (pinch, clove, piece)
    return format_amount(scaled), unit


# ---------------------------------------------------------------------------
# Preference resolution
# ---------------------------------------------------------------------------


def _host_locale() -> Optional[str]:
    try:
        name, _ = _locale.getlocale()
    except ValueError:
        return None
    return name


def resolve_system(
    preference: MeasurementPreference, locale: Optional[str] = None
) -> MeasurementSystem:
    """Resolve a stored preference; ``system`` follows the host locale at call time."""
    if preference == MeasurementPreference.METRIC:
        return MeasurementSystem.METRIC
    if preference == MeasurementPreference.IMPERIAL:
        return MeasurementSystem.IMPERIAL

    name = locale if locale is not None else _host_locale()
    if not name:
        return MeasurementSystem.METRIC
    # "en_US.UTF-8", "en-US", "en_US"
    territory = name.split(".")[0].replace("-", "_").split("_")[-1].upper()
    if territory in IMPERIAL_TERRITORIES:
        return MeasurementSystem.IMPERIAL
    return MeasurementSystem.METRIC


# ---------------------------------------------------------------------------
# Servings
# ---------------------------------------------------------------------------


def scale_factor(target_servings: int, recipe_servings: int) -> float:
    if recipe_servings <= 0:
        return 1.0
    return target_servings / recipe_servings


def clamp_servings(servings: int) -> int:
    return max(MIN_SERVINGS, min(MAX_SERVINGS, servings))


def initial_servings(recipe: Recipe, default_servings: int = 0) -> int:
    """0 means "use the recipe's own serving count"."""
    if default_servings > 0:
        return clamp_servings(default_servings)
    return clamp_servings(recipe.servings) if recipe.servings > 0 else MIN_SERVINGS


def scaled_ingredients(
    recipe: Recipe,
    servings: int,
    system: MeasurementSystem,
    lang: Optional[str] = None,
) -> list[ScaledIngredient]:
    factor = scale_factor(servings, recipe.servings)
    rows = []
    for ing in recipe.localized_ingredients(lang):
        amount, unit = display(ing.amount, ing.unit, factor, system)
        rows.append(ScaledIngredient(name=ing.name, amount=amount, unit=unit))
    return rows
