import logging
from typing import Iterable, Optional

from dailydish.models import DietaryProfile, Difficulty, MaxDuration, Recipe

log = logging.getLogger(__name__)


def effective_constraints(
    profile: DietaryProfile, weekday: int
) -> tuple[set[Difficulty], MaxDuration]:
    """Difficulty/duration limits for a weekday (1=Sunday).

    An override for the day replaces the global pair entirely, it is never
    merged with it.
    """
    override = profile.per_day_overrides.get(weekday)
    if override is not None:
        return override.difficulties, override.max_duration
    return profile.preferred_difficulties, profile.max_duration


def rejection_reason(
    recipe: Recipe, profile: DietaryProfile, weekday: int
) -> Optional[str]:
    """Return why ``recipe`` fails ``profile`` on ``weekday``, or None if it matches."""
    # A missing allergen-free tag counts as "may contain"
    for allergy in profile.selected_allergies:
        if allergy.value not in recipe.allergen_free:
            return f"not declared free of {allergy.value}"

    if profile.selected_diets:
        wanted = {diet.value for diet in profile.selected_diets}
        if not wanted & recipe.dietary_tags:
            return "matches none of the selected diets"

    difficulties, max_duration = effective_constraints(profile, weekday)

    # Recipes without a difficulty (older documents) always pass
    if difficulties and recipe.difficulty is not None:
        if recipe.difficulty not in {d.value for d in difficulties}:
            return f"difficulty {recipe.difficulty!r} not preferred"

    cap = max_duration.minutes
    if cap is not None and recipe.total_time > cap:
        return f"takes {recipe.total_time} min, limit is {cap}"

    return None


def matches(recipe: Recipe, profile: DietaryProfile, weekday: int) -> bool:
    return rejection_reason(recipe, profile, weekday) is None


def filter_recipes(
    recipes: Iterable[Recipe], profile: DietaryProfile, weekday: int
) -> list[Recipe]:
    kept = []
    for recipe in recipes:
        reason = rejection_reason(recipe, profile, weekday)
        if reason is None:
            kept.append(recipe)
        else:
            log.debug("Excluding %s: %s", recipe.id or recipe.title, reason)
    return kept
