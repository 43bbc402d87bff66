from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Ingredient(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    amount: str  # "2", "0.5", "a pinch"
    unit: str  # "cup", "g", "tbsp", "clove", "" (for count)

    @property
    def key(self) -> str:
        return self.name + self.amount + self.unit


LANGUAGES = ["nl", "fr", "de", "it"]


class Recipe(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[str] = None
    title: str
    description: str = ""
    description_nl: Optional[str] = Field(None, alias="descriptionNl")
    description_fr: Optional[str] = Field(None, alias="descriptionFr")
    description_de: Optional[str] = Field(None, alias="descriptionDe")
    description_it: Optional[str] = Field(None, alias="descriptionIt")
    ingredients: list[Ingredient] = []
    ingredient_names_nl: Optional[list[str]] = Field(None, alias="ingredientNamesNl")
    ingredient_names_fr: Optional[list[str]] = Field(None, alias="ingredientNamesFr")
    ingredient_names_de: Optional[list[str]] = Field(None, alias="ingredientNamesDe")
    ingredient_names_it: Optional[list[str]] = Field(None, alias="ingredientNamesIt")
    steps: list[str] = []
    steps_nl: Optional[list[str]] = Field(None, alias="stepsNl")
    steps_fr: Optional[list[str]] = Field(None, alias="stepsFr")
    steps_de: Optional[list[str]] = Field(None, alias="stepsDe")
    steps_it: Optional[list[str]] = Field(None, alias="stepsIt")
    dietary_tags: frozenset[str] = Field(frozenset(), alias="dietaryTags")
    allergen_free: frozenset[str] = Field(frozenset(), alias="allergenFree")
    prep_time: int = Field(0, alias="prepTime")
    cook_time: int = Field(0, alias="cookTime")
    servings: int = 0
    difficulty: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageURL")

    @property
    def total_time(self) -> int:
        return self.prep_time + self.cook_time

    def _variant(self, field: str, lang: Optional[str]):
        if lang not in LANGUAGES:
            return None
        return getattr(self, f"{field}_{lang}")

    def localized_description(self, lang: Optional[str] = None) -> str:
        return self._variant("description", lang) or self.description

    def localized_steps(self, lang: Optional[str] = None) -> list[str]:
        variant = self._variant("steps", lang)
        return list(variant) if variant is not None else list(self.steps)

    def localized_ingredients(self, lang: Optional[str] = None) -> list[Ingredient]:
        """Swap in translated names only when the list lines up one-to-one."""
        names = self._variant("ingredient_names", lang)
        if names is None or len(names) != len(self.ingredients):
            return list(self.ingredients)
        return [
            Ingredient(name=name, amount=ing.amount, unit=ing.unit)
            for ing, name in zip(self.ingredients, names)
        ]


# ---------------------------------------------------------------------------
# Dietary profile
# ---------------------------------------------------------------------------


class Allergy(str, Enum):
    NUTS = "nuts"
    DAIRY = "dairy"
    GLUTEN = "gluten"
    SHELLFISH = "shellfish"
    EGGS = "eggs"
    SOY = "soy"
    FISH = "fish"
    SESAME = "sesame"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Diet(str, Enum):
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    PESCATARIAN = "pescatarian"
    KETO = "keto"
    GLUTEN_FREE = "glutenFree"
    HALAL = "halal"
    KOSHER = "kosher"
    DAIRY_FREE = "dairyFree"
    LOW_CARB = "lowCarb"
    HIGH_PROTEIN = "highProtein"

    @property
    def display_name(self) -> str:
        return DIET_LABELS[self]


DIET_LABELS = {
    Diet.VEGETARIAN: "Vegetarian",
    Diet.VEGAN: "Vegan",
    Diet.PESCATARIAN: "Pescatarian",
    Diet.KETO: "Keto",
    Diet.GLUTEN_FREE: "Gluten Free",
    Diet.HALAL: "Halal",
    Diet.KOSHER: "Kosher",
    Diet.DAIRY_FREE: "Dairy Free",
    Diet.LOW_CARB: "Low Carb",
    Diet.HIGH_PROTEIN: "High Protein",
}


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class MaxDuration(str, Enum):
    ANY = "any"
    THIRTY = "thirty"
    SIXTY = "sixty"
    NINETY = "ninety"

    @property
    def minutes(self) -> Optional[int]:
        return DURATION_MINUTES[self]

    @property
    def display_name(self) -> str:
        if self.minutes is None:
            return "Any"
        return f"≤ {self.minutes} min"


DURATION_MINUTES = {
    MaxDuration.ANY: None,
    MaxDuration.THIRTY: 30,
    MaxDuration.SIXTY: 60,
    MaxDuration.NINETY: 90,
}

# Calendar weekday numbering: Sunday=1 ... Saturday=7
WEEKDAYS = [1, 2, 3, 4, 5, 6, 7]

WEEKDAY_LABELS = {
    1: "Sunday",
    2: "Monday",
    3: "Tuesday",
    4: "Wednesday",
    5: "Thursday",
    6: "Friday",
    7: "Saturday",
}


class DayOverride(BaseModel):
    difficulties: set[Difficulty] = set()
    max_duration: MaxDuration = MaxDuration.ANY


class DietaryProfile(BaseModel):
    selected_allergies: set[Allergy] = set()
    selected_diets: set[Diet] = set()
    preferred_difficulties: set[Difficulty] = set()
    max_duration: MaxDuration = MaxDuration.ANY
    per_day_overrides: dict[int, DayOverride] = {}

    @field_validator("per_day_overrides")
    @classmethod
    def _check_weekdays(cls, v: dict[int, DayOverride]) -> dict[int, DayOverride]:
        for weekday in v:
            if weekday not in WEEKDAY_LABELS:
                raise ValueError(f"weekday must be 1..7 (Sunday=1), got {weekday}")
        return v

    @classmethod
    def empty(cls) -> "DietaryProfile":
        return cls()

    # ------------------------------------------------------------------
    # Editing (returns updated copies)
    # ------------------------------------------------------------------

    def toggle_allergy(self, allergy: Allergy) -> "DietaryProfile":
        return self.model_copy(
            update={"selected_allergies": self.selected_allergies ^ {allergy}}
        )

    def toggle_diet(self, diet: Diet) -> "DietaryProfile":
        return self.model_copy(update={"selected_diets": self.selected_diets ^ {diet}})

    def toggle_difficulty(self, difficulty: Difficulty) -> "DietaryProfile":
        return self.model_copy(
            update={"preferred_difficulties": self.preferred_difficulties ^ {difficulty}}
        )

    def with_day_override(self, weekday: int, override: DayOverride) -> "DietaryProfile":
        overrides = dict(self.per_day_overrides)
        overrides[weekday] = override
        return DietaryProfile.model_validate(
            {**self.model_dump(), "per_day_overrides": overrides}
        )

    def without_day_override(self, weekday: int) -> "DietaryProfile":
        overrides = {d: o for d, o in self.per_day_overrides.items() if d != weekday}
        return self.model_copy(update={"per_day_overrides": overrides})


class MeasurementPreference(str, Enum):
    SYSTEM = "system"
    METRIC = "metric"
    IMPERIAL = "imperial"


class MeasurementSystem(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


# ---------------------------------------------------------------------------
# Daily pick
# ---------------------------------------------------------------------------


class DailyPickState(BaseModel):
    picked_recipe_id: Optional[str] = None
    picked_date_key: str = ""  # YYYY-MM-DD
    recent_recipe_ids: list[str] = []  # most recent first


class ScaledIngredient(BaseModel):
    name: str
    amount: str
    unit: str


class PickOutcome(str, Enum):
    PICKED = "picked"
    NO_ELIGIBLE_RECIPES = "no_eligible_recipes"
    CATALOG_UNAVAILABLE = "catalog_unavailable"


class TodayResult(BaseModel):
    outcome: PickOutcome
    recipe: Optional[Recipe] = None
    message: Optional[str] = None
