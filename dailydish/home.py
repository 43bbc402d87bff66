import logging
from typing import Optional

from dailydish.catalog import CatalogError, RecipeCatalog
from dailydish.clock import Clock
from dailydish.daily_pick import DailyPickEngine
from dailydish.measurements import (
    clamp_servings,
    initial_servings,
    resolve_system,
    scaled_ingredients,
)
from dailydish.models import (
    DietaryProfile,
    PickOutcome,
    Recipe,
    ScaledIngredient,
    TodayResult,
)
from dailydish.preferences import PreferencesStore

log = logging.getLogger(__name__)

NO_ELIGIBLE_MESSAGE = (
    "No recipes match your dietary profile. "
    "Try adjusting your preferences in Settings."
)
CATALOG_UNAVAILABLE_MESSAGE = "Failed to load recipes. Check your internet connection."


class HomeService:
    """Today's recipe for one installation, as shown on the home screen."""

    def __init__(
        self,
        catalog: RecipeCatalog,
        store: PreferencesStore,
        clock: Optional[Clock] = None,
        engine: Optional[DailyPickEngine] = None,
        locale: Optional[str] = None,
    ):
        self._catalog = catalog
        self._store = store
        self._clock = clock or Clock()
        self._engine = engine or DailyPickEngine(store, self._clock)
        self._locale = locale
        self._candidates: list[Recipe] = []
        # Date key the candidates were filtered for
        self._candidates_key: Optional[str] = None
        self._today: Optional[Recipe] = None

    @property
    def catalog(self) -> RecipeCatalog:
        return self._catalog

    @property
    def store(self) -> PreferencesStore:
        return self._store

    @property
    def today_recipe(self) -> Optional[Recipe]:
        return self._today

    @property
    def candidates(self) -> list[Recipe]:
        return list(self._candidates)

    # ------------------------------------------------------------------
    # Today's pick
    # ------------------------------------------------------------------

    async def load_today(self) -> TodayResult:
        profile = self._store.load_profile()
        key = self._clock.date_key()
        try:
            candidates = await self._catalog.fetch_candidates(profile, self._clock.weekday())
        except CatalogError:
            log.exception("Could not load recipe catalog")
            return TodayResult(
                outcome=PickOutcome.CATALOG_UNAVAILABLE,
                message=CATALOG_UNAVAILABLE_MESSAGE,
            )

        self._candidates = candidates
        self._candidates_key = key
        self._today = self._engine.load(candidates)
        if self._today is None:
            return TodayResult(
                outcome=PickOutcome.NO_ELIGIBLE_RECIPES, message=NO_ELIGIBLE_MESSAGE
            )
        return TodayResult(outcome=PickOutcome.PICKED, recipe=self._today)

    @property
    def is_stale(self) -> bool:
        """True when there is no pick yet or the day has turned since the last load."""
        return self._today is None or self._candidates_key != self._clock.date_key()

    async def skip(self) -> TodayResult:
        if self.is_stale:
            result = await self.load_today()
            if result.outcome != PickOutcome.PICKED:
                return result

        self._today = self._engine.skip(self._candidates, self._today)
        return TodayResult(outcome=PickOutcome.PICKED, recipe=self._today)

    # ------------------------------------------------------------------
    # Ingredients
    # ------------------------------------------------------------------

    def recipe_ingredients(
        self,
        recipe: Recipe,
        servings: Optional[int] = None,
        lang: Optional[str] = None,
    ) -> list[ScaledIngredient]:
        if servings is None:
            servings = initial_servings(recipe, self._store.default_servings)
        system = resolve_system(self._store.measurement_preference, self._locale)
        return scaled_ingredients(recipe, clamp_servings(servings), system, lang)

    def shopping_list(
        self, servings: Optional[int] = None, lang: Optional[str] = None
    ) -> list[ScaledIngredient]:
        if self.is_stale:
            return []
        return self.recipe_ingredients(self._today, servings, lang)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def save_profile(self, profile: DietaryProfile) -> None:
        self._store.save_profile(profile)
        # Candidates were filtered with the old profile
        self._candidates = []
        self._candidates_key = None
        self._today = None
        try:
            await self._catalog.push_dietary_profile(profile, self._store.device_id)
        except CatalogError:
            log.warning("Could not upload dietary profile; kept locally", exc_info=True)

    async def complete_onboarding(self, profile: DietaryProfile) -> None:
        await self.save_profile(profile)
        self._store.has_completed_onboarding = True

    def reset_onboarding(self) -> None:
        self._store.reset_onboarding()
        self._candidates = []
        self._candidates_key = None
        self._today = None
