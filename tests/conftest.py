"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime

import pytest

from dailydish.catalog import InMemoryCatalog
from dailydish.clock import FixedClock
from dailydish.models import Ingredient, Recipe
from dailydish.preferences import MemoryPreferencesStore

ALL_ALLERGENS = ["nuts", "dairy", "gluten", "shellfish", "eggs", "soy", "fish", "sesame"]


def make_recipe(recipe_id, **overrides) -> Recipe:
    """Recipe that passes every filter unless overridden."""
    data = dict(
        id=recipe_id,
        title=f"Recipe {recipe_id}",
        description="Tasty",
        ingredients=[
            Ingredient(name="flour", amount="2", unit="cups"),
            Ingredient(name="salt", amount="a pinch", unit=""),
        ],
        steps=["Mix", "Bake"],
        dietary_tags=[],
        allergen_free=ALL_ALLERGENS,
        prep_time=10,
        cook_time=15,
        servings=2,
        difficulty="easy",
    )
    data.update(overrides)
    return Recipe(**data)


@pytest.fixture
def recipes():
    return [make_recipe(f"r{i}") for i in range(1, 6)]


@pytest.fixture
def store():
    return MemoryPreferencesStore()


@pytest.fixture
def clock():
    """Monday 19 October 2026, 08:00."""
    return FixedClock(datetime(2026, 10, 19, 8, 0))


@pytest.fixture
def catalog(recipes):
    return InMemoryCatalog(recipes)
