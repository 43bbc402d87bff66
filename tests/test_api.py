"""
Tests for the HTTP layer, with the home service swapped for an in-memory one.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from dailydish.catalog import CatalogError, InMemoryCatalog, RecipeCatalog
from dailydish.config import Settings
from dailydish.home import HomeService
from dailydish.main import app, build_service, get_service
from dailydish.models import DayOverride, DietaryProfile, Ingredient, MaxDuration

from conftest import make_recipe


class BrokenCatalog(RecipeCatalog):
    async def fetch_recipes(self):
        raise CatalogError("offline")


@pytest.fixture
def service(catalog, store, clock):
    return HomeService(catalog, store, clock=clock, locale="en_GB")


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestToday:
    def test_today_is_stable(self, client):
        first = client.get("/today").json()
        second = client.get("/today").json()
        assert first["outcome"] == "picked"
        assert first["recipe"]["id"] == second["recipe"]["id"]

    def test_skip(self, client):
        first = client.get("/today").json()
        skipped = client.post("/today/skip").json()
        assert skipped["recipe"]["id"] != first["recipe"]["id"]

    def test_recipe_uses_catalog_field_names(self, client):
        recipe = client.get("/today").json()["recipe"]
        assert "allergenFree" in recipe
        assert "prepTime" in recipe

    def test_no_eligible(self, client):
        client.put("/profile", json={"selected_diets": ["kosher"]})
        body = client.get("/today").json()
        assert body["outcome"] == "no_eligible_recipes"
        assert body["recipe"] is None

    def test_catalog_unavailable(self, store, clock):
        broken = HomeService(BrokenCatalog(), store, clock=clock)
        app.dependency_overrides[get_service] = lambda: broken
        try:
            response = TestClient(app).get("/today")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 503
        assert response.json()["outcome"] == "catalog_unavailable"

    def test_unreachable_spreadsheet_at_startup(self, tmp_path, monkeypatch):
        from dailydish.sheets import SheetsCatalog

        def refuse(cls, **kwargs):
            raise CatalogError("Could not open spreadsheet sheet-1")

        monkeypatch.setattr(SheetsCatalog, "connect", classmethod(refuse))
        cfg = Settings(
            GOOGLE_SPREADSHEET_ID="sheet-1", PREFERENCES_PATH=str(tmp_path / "p.json")
        )
        service = build_service(cfg)

        app.dependency_overrides[get_service] = lambda: service
        try:
            response = TestClient(app).get("/today")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 503
        assert response.json()["outcome"] == "catalog_unavailable"

    def test_ingredients_follow_day_change(self, store, clock):
        quick = make_recipe("quick")
        slow = make_recipe("slow", cook_time=60)
        store.save_profile(
            DietaryProfile(per_day_overrides={3: DayOverride(max_duration=MaxDuration.THIRTY)})
        )
        service = HomeService(InMemoryCatalog([slow, quick]), store, clock=clock)
        app.dependency_overrides[get_service] = lambda: service
        try:
            client = TestClient(app)
            client.get("/today")
            clock.set(datetime(2026, 10, 20, 8, 0))
            assert client.get("/today/ingredients").status_code == 200
            assert service.today_recipe.id == "quick"
        finally:
            app.dependency_overrides.clear()

    def test_ingredients(self, store, clock):
        recipe = make_recipe(
            "r1", servings=2, ingredients=[Ingredient(name="oats", amount="100", unit="g")]
        )
        service = HomeService(InMemoryCatalog([recipe]), store, clock=clock, locale="en_US")
        app.dependency_overrides[get_service] = lambda: service
        try:
            client = TestClient(app)
            client.put("/measurement", json={"preference": "metric"})
            rows = client.get("/today/ingredients", params={"servings": 4}).json()
            assert rows == [{"name": "oats", "amount": "200", "unit": "g"}]

            client.put("/measurement", json={"preference": "imperial"})
            rows = client.get("/today/ingredients", params={"servings": 4}).json()
            assert rows == [{"name": "oats", "amount": "7.1", "unit": "oz"}]

            assert client.get("/today/ingredients", params={"servings": 50}).status_code == 422
        finally:
            app.dependency_overrides.clear()


class TestProfile:
    def test_round_trip(self, client):
        body = {
            "selected_allergies": ["nuts"],
            "selected_diets": ["vegan"],
            "preferred_difficulties": ["easy"],
            "max_duration": "thirty",
            "per_day_overrides": {"7": {"difficulties": ["hard"], "max_duration": "ninety"}},
        }
        assert client.put("/profile", json=body).status_code == 200
        stored = client.get("/profile").json()
        assert stored["selected_allergies"] == ["nuts"]
        assert stored["per_day_overrides"]["7"]["max_duration"] == "ninety"

    def test_invalid_profile_rejected(self, client):
        assert client.put("/profile", json={"selected_allergies": ["peanuts"]}).status_code == 422
        assert client.put("/profile", json={"per_day_overrides": {"0": {}}}).status_code == 422

    def test_reset(self, client):
        client.put("/profile", json={"selected_allergies": ["soy"]})
        assert client.post("/profile/reset").json()["selected_allergies"] == []


class TestFavourites:
    def test_toggle(self, client):
        assert client.post("/favourites/r2").json() == {"id": "r2", "favourite": True}
        assert [r["id"] for r in client.get("/favourites").json()] == ["r2"]
        assert client.post("/favourites/r2").json()["favourite"] is False

    def test_unknown_recipe(self, client):
        assert client.post("/favourites/missing").status_code == 404
