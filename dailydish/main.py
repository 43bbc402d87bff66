import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dailydish.catalog import CatalogError, InMemoryCatalog, RecipeCatalog, UnavailableCatalog
from dailydish.clock import Clock
from dailydish.config import Settings, settings
from dailydish.daily_pick import DailyPickEngine
from dailydish.home import HomeService
from dailydish.measurements import MAX_SERVINGS, MIN_SERVINGS
from dailydish.models import (
    DietaryProfile,
    MeasurementPreference,
    PickOutcome,
    Recipe,
    ScaledIngredient,
    TodayResult,
)
from dailydish.preferences import JsonFilePreferencesStore

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=settings.log_level,
)
log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Build the home service (one per installation)
# ---------------------------------------------------------------------------

_service: Optional[HomeService] = None


def build_service(cfg: Settings) -> HomeService:
    catalog: RecipeCatalog
    if cfg.google_spreadsheet_id:
        # Imported lazily so the app runs without Google credentials
        from dailydish.sheets import SheetsCatalog

        try:
            catalog = SheetsCatalog.connect(
                spreadsheet_id=cfg.google_spreadsheet_id,
                credentials_path=cfg.google_credentials_path,
                credentials_json=cfg.google_credentials_json,
            )
        except CatalogError as e:
            log.exception("Could not open recipe spreadsheet; catalog unavailable")
            catalog = UnavailableCatalog(str(e))
    else:
        log.warning("GOOGLE_SPREADSHEET_ID not set; serving an empty catalog")
        catalog = InMemoryCatalog()

    store = JsonFilePreferencesStore(cfg.preferences_path)
    clock = Clock(cfg.timezone)
    engine = DailyPickEngine(store, clock, history_size=cfg.recent_history_size)
    return HomeService(catalog, store, clock=clock, engine=engine, locale=cfg.locale)


def get_service() -> HomeService:
    if _service is None:
        raise HTTPException(status_code=503, detail="Service not started")
    return _service


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

fastapi_app = FastAPI(title="Daily Dish")
app = fastapi_app  # alias expected by ASGI servers


@fastapi_app.on_event("startup")
async def startup() -> None:
    global _service
    _service = build_service(settings)
    log.info("Daily Dish started. Preferences at %s", settings.preferences_path)


@fastapi_app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


def _today_response(result: TodayResult) -> JSONResponse:
    status = 503 if result.outcome == PickOutcome.CATALOG_UNAVAILABLE else 200
    return JSONResponse(
        status_code=status, content=result.model_dump(mode="json", by_alias=True)
    )


@fastapi_app.get("/today")
async def today(service: HomeService = Depends(get_service)) -> JSONResponse:
    return _today_response(await service.load_today())


@fastapi_app.post("/today/skip")
async def skip_today(service: HomeService = Depends(get_service)) -> JSONResponse:
    return _today_response(await service.skip())


@fastapi_app.get("/today/ingredients", response_model=list[ScaledIngredient])
async def today_ingredients(
    servings: Optional[int] = Query(None, ge=MIN_SERVINGS, le=MAX_SERVINGS),
    lang: Optional[str] = None,
    service: HomeService = Depends(get_service),
) -> list[ScaledIngredient]:
    if service.is_stale:
        result = await service.load_today()
        if result.outcome != PickOutcome.PICKED:
            raise HTTPException(status_code=404, detail=result.message)
    return service.shopping_list(servings, lang)


# ---------------------------------------------------------------------------
# Profile and settings
# ---------------------------------------------------------------------------


@fastapi_app.get("/profile", response_model=DietaryProfile)
async def get_profile(service: HomeService = Depends(get_service)) -> DietaryProfile:
    return service.store.load_profile()


@fastapi_app.put("/profile", response_model=DietaryProfile)
async def put_profile(
    profile: DietaryProfile, service: HomeService = Depends(get_service)
) -> DietaryProfile:
    await service.save_profile(profile)
    return profile


@fastapi_app.post("/profile/reset", response_model=DietaryProfile)
async def reset_profile(service: HomeService = Depends(get_service)) -> DietaryProfile:
    service.reset_onboarding()
    return service.store.load_profile()


class MeasurementSettings(BaseModel):
    preference: MeasurementPreference = MeasurementPreference.SYSTEM
    default_servings: int = Field(0, ge=0, le=MAX_SERVINGS)  # 0 = recipe's own


@fastapi_app.get("/measurement", response_model=MeasurementSettings)
async def get_measurement(service: HomeService = Depends(get_service)) -> MeasurementSettings:
    return MeasurementSettings(
        preference=service.store.measurement_preference,
        default_servings=service.store.default_servings,
    )


@fastapi_app.put("/measurement", response_model=MeasurementSettings)
async def put_measurement(
    body: MeasurementSettings, service: HomeService = Depends(get_service)
) -> MeasurementSettings:
    service.store.measurement_preference = body.preference
    service.store.default_servings = body.default_servings
    return body


# ---------------------------------------------------------------------------
# Favourites
# ---------------------------------------------------------------------------


@fastapi_app.get("/favourites", response_model=list[Recipe])
async def favourites(service: HomeService = Depends(get_service)) -> list[Recipe]:
    return service.store.favourite_recipes


@fastapi_app.post("/favourites/{recipe_id}")
async def toggle_favourite(
    recipe_id: str, service: HomeService = Depends(get_service)
) -> dict:
    recipe = next((r for r in service.candidates if r.id == recipe_id), None)
    if recipe is None:
        try:
            recipe = await service.catalog.fetch_recipe(recipe_id)
        except CatalogError:
            log.exception("Could not look up recipe %s", recipe_id)
            raise HTTPException(status_code=503, detail="Could not retrieve catalog")
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Recipe {recipe_id} not found")
    return {"id": recipe_id, "favourite": service.store.toggle_favourite(recipe)}
