from abc import ABC, abstractmethod
from typing import Iterable, Optional

from dailydish.matching import filter_recipes
from dailydish.models import DietaryProfile, Recipe


class CatalogError(Exception):
    """The recipe catalog could not be fetched or decoded."""


class RecipeCatalog(ABC):
    @abstractmethod
    async def fetch_recipes(self) -> list[Recipe]:
        ...

    async def fetch_candidates(self, profile: DietaryProfile, weekday: int) -> list[Recipe]:
        return filter_recipes(await self.fetch_recipes(), profile, weekday)

    async def fetch_recipe(self, recipe_id: str) -> Optional[Recipe]:
        for recipe in await self.fetch_recipes():
            if recipe.id == recipe_id:
                return recipe
        return None

    async def push_dietary_profile(self, profile: DietaryProfile, device_id: str) -> None:
        """Upload an anonymous copy of the profile; catalogs without storage ignore it."""


class InMemoryCatalog(RecipeCatalog):
    def __init__(self, recipes: Iterable[Recipe] = ()):
        self._recipes = list(recipes)

    async def fetch_recipes(self) -> list[Recipe]:
        return list(self._recipes)

    def add(self, recipe: Recipe) -> None:
        self._recipes.append(recipe)


class UnavailableCatalog(RecipeCatalog):
    """Stands in for a catalog that could not be opened; every fetch fails."""

    def __init__(self, reason: str):
        self._reason = reason

    async def fetch_recipes(self) -> list[Recipe]:
        raise CatalogError(self._reason)
