import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.exceptions import GSpreadException
from pydantic import ValidationError
from requests.exceptions import ConnectionError as RequestsConnectionError

from dailydish.catalog import CatalogError, RecipeCatalog
from dailydish.models import DietaryProfile, Ingredient, Recipe

log = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
]

RECIPES_SHEET = "recipes"
PROFILES_SHEET = "dietary_profiles"

_SHEET_ERRORS = (GSpreadException, GoogleAuthError, RequestsConnectionError)

_LIST_COLUMNS = [
    "ingredient_names_nl", "ingredient_names_fr", "ingredient_names_de", "ingredient_names_it",
    "steps_nl", "steps_fr", "steps_de", "steps_it",
]
_TEXT_COLUMNS = [
    "description_nl", "description_fr", "description_de", "description_it",
    "difficulty", "image_url",
]

# Header row of the recipes worksheet, in column order
RECIPE_COLUMNS = [
    "id", "title", "description", "ingredients", "steps", "dietary_tags",
    "allergen_free", "prep_time", "cook_time", "servings",
    *_TEXT_COLUMNS,
    *_LIST_COLUMNS,
]


def open_spreadsheet(
    spreadsheet_id: str,
    credentials_path: Optional[str] = None,
    credentials_json: Optional[str] = None,
) -> gspread.Spreadsheet:
    if credentials_json:
        info = json.loads(credentials_json)
        creds = Credentials.from_service_account_info(info, scopes=SCOPES)
    else:
        creds = Credentials.from_service_account_file(credentials_path, scopes=SCOPES)
    gc = gspread.authorize(creds)
    return gc.open_by_key(spreadsheet_id)


class SheetsCatalog(RecipeCatalog):
    """Recipe catalog backed by the ``recipes`` worksheet.

    List-valued columns hold JSON arrays; tag columns also accept a plain
    comma-separated list. Rows that fail validation are skipped.
    """

    def __init__(self, spreadsheet: gspread.Spreadsheet):
        self._spreadsheet = spreadsheet

    @classmethod
    def connect(
        cls,
        spreadsheet_id: str,
        credentials_path: Optional[str] = None,
        credentials_json: Optional[str] = None,
    ) -> "SheetsCatalog":
        try:
            spreadsheet = open_spreadsheet(spreadsheet_id, credentials_path, credentials_json)
        except _SHEET_ERRORS as e:
            raise CatalogError(f"Could not open spreadsheet {spreadsheet_id}") from e
        return cls(spreadsheet)

    # ------------------------------------------------------------------
    # Recipes
    # ------------------------------------------------------------------

    async def fetch_recipes(self) -> list[Recipe]:
        return await asyncio.to_thread(self.get_all_recipes)

    def get_all_recipes(self) -> list[Recipe]:
        try:
            records = self._spreadsheet.worksheet(RECIPES_SHEET).get_all_records()
        except _SHEET_ERRORS as e:
            log.exception("Fetching recipes failed")
            raise CatalogError("Could not retrieve recipe catalog") from e

        recipes = []
        for idx, r in enumerate(records):
            try:
                recipes.append(self._row_to_recipe(r))
            except (ValidationError, ValueError, KeyError, TypeError) as e:
                log.warning("Skipping recipe row %d (%s): %s", idx + 2, r.get("id", "?"), e)
        return recipes

    def add_recipe(self, recipe: Recipe) -> str:
        """Append ``recipe`` and return the id it was stored under."""
        ws = self._spreadsheet.worksheet(RECIPES_SHEET)
        recipe_id = recipe.id or f"r{len(ws.get_all_records()) + 1}"
        ws.append_row(
            self._recipe_to_row(recipe.model_copy(update={"id": recipe_id})),
            value_input_option="RAW",
        )
        return recipe_id

    # ------------------------------------------------------------------
    # Dietary profiles (anonymous)
    # ------------------------------------------------------------------

    async def push_dietary_profile(self, profile: DietaryProfile, device_id: str) -> None:
        try:
            await asyncio.to_thread(self.save_dietary_profile, profile, device_id)
        except _SHEET_ERRORS as e:
            raise CatalogError("Could not upload dietary profile") from e

    def save_dietary_profile(self, profile: DietaryProfile, device_id: str) -> None:
        ws = self._spreadsheet.worksheet(PROFILES_SHEET)
        row = [
            device_id,
            json.dumps(sorted(a.value for a in profile.selected_allergies)),
            json.dumps(sorted(d.value for d in profile.selected_diets)),
            datetime.now(timezone.utc).isoformat(),
        ]
        for idx, r in enumerate(ws.get_all_records()):
            if r.get("device_id") == device_id:
                row_num = idx + 2  # 1-indexed + header row
                ws.update(f"A{row_num}:D{row_num}", [row], value_input_option="RAW")
                return
        ws.append_row(row, value_input_option="RAW")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _json_list(raw: Any) -> Optional[list]:
        if raw is None or raw == "":
            return None
        if isinstance(raw, list):
            return raw
        value = json.loads(raw)
        if not isinstance(value, list):
            raise ValueError(f"expected a JSON array, got {raw!r}")
        return value

    @staticmethod
    def _tags(raw: Any) -> list[str]:
        if isinstance(raw, str) and not raw.strip().startswith("["):
            return [t.strip() for t in raw.split(",") if t.strip()]
        return SheetsCatalog._json_list(raw) or []

    @staticmethod
    def _row_to_recipe(r: dict) -> Recipe:
        data: dict[str, Any] = {
            "id": str(r["id"]) if r.get("id") not in (None, "") else None,
            "title": r["title"],
            "description": r.get("description", ""),
            "ingredients": [
                Ingredient(name=i["name"], amount=str(i["amount"]), unit=i.get("unit", ""))
                for i in SheetsCatalog._json_list(r.get("ingredients")) or []
            ],
            "steps": SheetsCatalog._json_list(r.get("steps")) or [],
            "dietary_tags": SheetsCatalog._tags(r.get("dietary_tags")),
            "allergen_free": SheetsCatalog._tags(r.get("allergen_free")),
            "prep_time": int(r.get("prep_time") or 0),
            "cook_time": int(r.get("cook_time") or 0),
            "servings": int(r.get("servings") or 0),
        }
        for col in _LIST_COLUMNS:
            data[col] = SheetsCatalog._json_list(r.get(col))
        for col in _TEXT_COLUMNS:
            data[col] = str(r[col]) if r.get(col) not in (None, "") else None
        return Recipe.model_validate(data)

    @staticmethod
    def _recipe_to_row(recipe: Recipe) -> list:
        def opt_list(value: Optional[list]) -> str:
            return json.dumps(value) if value is not None else ""

        return [
            recipe.id or "",
            recipe.title,
            recipe.description,
            json.dumps([i.model_dump() for i in recipe.ingredients]),
            json.dumps(recipe.steps),
            json.dumps(sorted(recipe.dietary_tags)),
            json.dumps(sorted(recipe.allergen_free)),
            recipe.prep_time,
            recipe.cook_time,
            recipe.servings,
            *[getattr(recipe, col) or "" for col in _TEXT_COLUMNS],
            *[opt_list(getattr(recipe, col)) for col in _LIST_COLUMNS],
        ]
