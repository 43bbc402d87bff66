"""
Local key-value preferences.

One store per installation holds the dietary profile, the daily pick state,
the measurement preference, default servings, favourites and the anonymous
device id. Values are JSON-compatible; typed accessors live on the base
class so every backend decodes them the same way.
"""

import json
import logging
import os
import tempfile
import threading
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Type

from pydantic import ValidationError

from dailydish.models import (
    Allergy,
    DailyPickState,
    DayOverride,
    Diet,
    DietaryProfile,
    Difficulty,
    MaxDuration,
    MeasurementPreference,
    Recipe,
    WEEKDAY_LABELS,
)

log = logging.getLogger(__name__)


class Keys:
    HAS_COMPLETED_ONBOARDING = "hasCompletedOnboarding"
    DIETARY_PROFILE = "dietaryProfile"
    DAILY_PICK = "dailyPick"
    DEVICE_ID = "deviceId"
    MEASUREMENT_PREFERENCE = "measurementPreference"
    DEFAULT_SERVINGS = "defaultServings"
    FAVOURITE_RECIPES = "favouriteRecipes"


# ---------------------------------------------------------------------------
# Dietary profile schema
# ---------------------------------------------------------------------------

# 1: allergies + diets
# 2: + preferredDifficulties, maxDuration
# 3: + perDayOverrides
PROFILE_VERSION = 3


def _enum_set(enum_cls: Type[Enum], raw: Any, field: str) -> set:
    values = set()
    if raw is None:
        return values
    if isinstance(raw, str):
        raw = [raw]
    elif not isinstance(raw, (list, tuple, set)):
        log.warning("Ignoring %s in stored profile, expected a list: %r", field, raw)
        return values
    for item in raw:
        try:
            values.add(enum_cls(item))
        except (ValueError, TypeError):
            log.warning("Dropping unknown %s value %r from stored profile", field, item)
    return values


def _duration(raw: Any) -> MaxDuration:
    if raw is None:
        return MaxDuration.ANY
    try:
        return MaxDuration(raw)
    except ValueError:
        log.warning("Unknown maxDuration %r in stored profile, using 'any'", raw)
        return MaxDuration.ANY


def load_profile_data(data: dict) -> DietaryProfile:
    """Decode a stored profile of any schema version, filling absent fields."""
    version = int(data.get("version", 1))
    if version > PROFILE_VERSION:
        log.warning(
            "Stored profile version %d is newer than supported %d; reading known fields",
            version,
            PROFILE_VERSION,
        )

    allergies = _enum_set(Allergy, data.get("selectedAllergies"), "selectedAllergies")
    diets = _enum_set(Diet, data.get("selectedDiets"), "selectedDiets")

    # Version 1 data has neither key; defaults mean "no constraint"
    difficulties = _enum_set(
        Difficulty, data.get("preferredDifficulties"), "preferredDifficulties"
    )
    max_duration = _duration(data.get("maxDuration"))

    overrides: dict[int, DayOverride] = {}
    stored_overrides = data.get("perDayOverrides") or {}
    if not isinstance(stored_overrides, dict):
        log.warning("Ignoring perDayOverrides in stored profile: %r", stored_overrides)
        stored_overrides = {}
    for day, raw in stored_overrides.items():
        try:
            weekday = int(day)
        except ValueError:
            weekday = 0
        if weekday not in WEEKDAY_LABELS:
            log.warning("Dropping override for invalid weekday %r", day)
            continue
        if not isinstance(raw, dict):
            log.warning("Dropping malformed override for weekday %d: %r", weekday, raw)
            continue
        overrides[weekday] = DayOverride(
            difficulties=_enum_set(Difficulty, raw.get("difficulties"), "difficulties"),
            max_duration=_duration(raw.get("maxDuration")),
        )

    return DietaryProfile(
        selected_allergies=allergies,
        selected_diets=diets,
        preferred_difficulties=difficulties,
        max_duration=max_duration,
        per_day_overrides=overrides,
    )


def dump_profile(profile: DietaryProfile) -> dict:
    return {
        "version": PROFILE_VERSION,
        "selectedAllergies": sorted(a.value for a in profile.selected_allergies),
        "selectedDiets": sorted(d.value for d in profile.selected_diets),
        "preferredDifficulties": sorted(d.value for d in profile.preferred_difficulties),
        "maxDuration": profile.max_duration.value,
        "perDayOverrides": {
            str(day): {
                "difficulties": sorted(d.value for d in override.difficulties),
                "maxDuration": override.max_duration.value,
            }
            for day, override in sorted(profile.per_day_overrides.items())
        },
    }


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class PreferencesStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    # ------------------------------------------------------------------
    # Dietary profile
    # ------------------------------------------------------------------

    def load_profile(self) -> DietaryProfile:
        raw = self.get(Keys.DIETARY_PROFILE)
        if not isinstance(raw, dict):
            return DietaryProfile.empty()
        try:
            return load_profile_data(raw)
        except (ValidationError, AttributeError, TypeError, ValueError):
            log.exception("Stored dietary profile is unreadable, using empty profile")
            return DietaryProfile.empty()

    def save_profile(self, profile: DietaryProfile) -> None:
        self.set(Keys.DIETARY_PROFILE, dump_profile(profile))

    # ------------------------------------------------------------------
    # Daily pick
    # ------------------------------------------------------------------

    def load_pick_state(self) -> DailyPickState:
        raw = self.get(Keys.DAILY_PICK)
        if raw is None:
            return DailyPickState()
        try:
            return DailyPickState.model_validate(raw)
        except ValidationError:
            log.warning("Stored daily pick state is unreadable, starting fresh")
            return DailyPickState()

    def save_pick_state(self, state: DailyPickState) -> None:
        self.set(Keys.DAILY_PICK, state.model_dump())

    # ------------------------------------------------------------------
    # Simple settings
    # ------------------------------------------------------------------

    @property
    def has_completed_onboarding(self) -> bool:
        return bool(self.get(Keys.HAS_COMPLETED_ONBOARDING))

    @has_completed_onboarding.setter
    def has_completed_onboarding(self, value: bool) -> None:
        self.set(Keys.HAS_COMPLETED_ONBOARDING, bool(value))

    @property
    def measurement_preference(self) -> MeasurementPreference:
        raw = self.get(Keys.MEASUREMENT_PREFERENCE)
        try:
            return MeasurementPreference(raw) if raw else MeasurementPreference.SYSTEM
        except ValueError:
            return MeasurementPreference.SYSTEM

    @measurement_preference.setter
    def measurement_preference(self, value: MeasurementPreference) -> None:
        self.set(Keys.MEASUREMENT_PREFERENCE, MeasurementPreference(value).value)

    @property
    def default_servings(self) -> int:
        """0 means "use each recipe's own serving count"."""
        raw = self.get(Keys.DEFAULT_SERVINGS)
        return raw if isinstance(raw, int) and raw > 0 else 0

    @default_servings.setter
    def default_servings(self, value: int) -> None:
        self.set(Keys.DEFAULT_SERVINGS, max(0, int(value)))

    @property
    def device_id(self) -> str:
        existing = self.get(Keys.DEVICE_ID)
        if existing:
            return existing
        new_id = str(uuid.uuid4()).upper()
        self.set(Keys.DEVICE_ID, new_id)
        return new_id

    # ------------------------------------------------------------------
    # Favourites
    # ------------------------------------------------------------------

    @staticmethod
    def _favourite_key(recipe: Recipe) -> str:
        return recipe.id or recipe.title

    @property
    def favourite_recipes(self) -> list[Recipe]:
        recipes = []
        for raw in self.get(Keys.FAVOURITE_RECIPES) or []:
            try:
                recipes.append(Recipe.model_validate(raw))
            except ValidationError:
                log.warning("Dropping unreadable favourite %r", raw.get("title") if isinstance(raw, dict) else raw)
        return recipes

    def _save_favourites(self, recipes: list[Recipe]) -> None:
        self.set(Keys.FAVOURITE_RECIPES, [r.model_dump(mode="json") for r in recipes])

    def is_favourite(self, recipe: Recipe) -> bool:
        key = self._favourite_key(recipe)
        return any(self._favourite_key(r) == key for r in self.favourite_recipes)

    def toggle_favourite(self, recipe: Recipe) -> bool:
        """Add or remove ``recipe``; returns whether it is now a favourite."""
        key = self._favourite_key(recipe)
        favourites = self.favourite_recipes
        kept = [r for r in favourites if self._favourite_key(r) != key]
        if len(kept) == len(favourites):
            kept.append(recipe)
            self._save_favourites(kept)
            return True
        self._save_favourites(kept)
        return False

    def remove_favourite(self, recipe_id: str) -> None:
        self._save_favourites(
            [r for r in self.favourite_recipes if self._favourite_key(r) != recipe_id]
        )

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset_onboarding(self) -> None:
        # The daily pick is left alone; a stale date key heals on next load
        self.has_completed_onboarding = False
        self.save_profile(DietaryProfile.empty())


class MemoryPreferencesStore(PreferencesStore):
    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFilePreferencesStore(PreferencesStore):
    """Preferences kept in one JSON document on disk."""

    def __init__(self, path: str):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._data = self._read()

    def _read(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            log.exception("Could not read preferences from %s, starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            log.warning("Preferences file %s is not an object, starting empty", self._path)
            return {}
        return data

    def _write(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".prefs-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self._path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Any:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = {**self._data, key: value}
            self._write(data)
            self._data = data

    def delete(self, key: str) -> None:
        with self._lock:
            if self._data.get(key) is None:
                return
            data = {k: v for k, v in self._data.items() if k != key}
            self._write(data)
            self._data = data
