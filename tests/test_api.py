"""HTTP surface over a temporary wardrobe."""

from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from models.wardrobe_item import WardrobeItem
from server.api import create_app
from stylist_app.app import StylistApp
from stylist_app.config import StylistConfig
from tools.outfit_store import OutfitStore


class FailingOutfitStore(OutfitStore):
    def save_outfit(self, user_id, record):
        raise RuntimeError("bucket unavailable")


def _stylist(tmp_path, outfit_store: OutfitStore | None = None) -> StylistApp:
    config = StylistConfig(
        wardrobe_db_path=str(tmp_path / "wardrobe.db"),
        outfit_db_path=str(tmp_path / "outfits.db"),
        environment="test",
    )
    stylist = StylistApp(config=config, outfit_store=outfit_store, rng=random.Random(3))
    for item_id, category, subcategory in (
        ("trainers", "Shoes", "Trainers"),
        ("tee", "Tops", "Tee"),
        ("jeans", "Bottoms", "Jeans"),
    ):
        stylist.wardrobe_store.create_item(
            WardrobeItem(item_id=item_id, user_id="u1", category=category, subcategory=subcategory, colours=["black"])
        )
    return stylist


@pytest.fixture()
def client(tmp_path) -> TestClient:
    return TestClient(create_app(_stylist(tmp_path)))


def test_healthcheck(client: TestClient) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "wardrobe-stylist", "environment": "test"}


def test_prompt_suggestions_and_save(client: TestClient) -> None:
    response = client.post("/suggestions/prompt", json={"user_id": "u1", "prompt": "all black casual", "count": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    card = body["cards"][0]
    assert [entry["item_id"] for entry in card["items"]] == ["tee", "jeans", "trainers"]

    saved = client.post(
        f"/decks/{body['deck_id']}/save",
        json={"candidate_id": card["candidate_id"], "name": "Errands"},
    )
    assert saved.status_code == 200
    assert saved.json()["item_ids"] == ["tee", "jeans", "trainers"]


def test_empty_prompt_is_a_bad_request(client: TestClient) -> None:
    response = client.post("/suggestions/prompt", json={"user_id": "u1", "prompt": "  "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter a short prompt."


def test_unknown_owner_has_no_match(client: TestClient) -> None:
    response = client.post("/suggestions/prompt", json={"user_id": "stranger", "prompt": "anything"})
    assert response.status_code == 400


def test_request_validation_rejects_bad_bodies(client: TestClient) -> None:
    assert client.post("/suggestions/prompt", json={"prompt": "hi"}).status_code == 422
    assert client.post("/suggestions/dress-code", json={"user_id": "u1", "dress_code": "black tie"}).status_code == 422


def test_unknown_deck_is_not_found(client: TestClient) -> None:
    response = client.post("/decks/missing/skip", json={"candidate_id": "abc"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown deck"


def test_skip_returns_replacement(client: TestClient) -> None:
    body = client.post("/suggestions/prompt", json={"user_id": "u1", "prompt": "black jeans", "count": 1}).json()

    response = client.post(f"/decks/{body['deck_id']}/skip", json={"candidate_id": body["cards"][0]["candidate_id"]})

    assert response.status_code == 200
    assert response.json()["replacement"] is not None
    assert client.post(f"/decks/{body['deck_id']}/skip", json={"candidate_id": "gone"}).status_code == 404


def test_weather_and_dress_code_routes(client: TestClient) -> None:
    weather = client.post("/suggestions/weather", json={"user_id": "u1", "raining": True, "temperature_label": "9°C"})
    assert weather.status_code == 200
    assert weather.json()["debug_summary"]["weather"]["temperature_c"] == 9.0

    # Seeded items carry no dress code, so nothing survives the filter.
    assert client.post("/suggestions/dress-code", json={"user_id": "u1", "dress_code": "smart"}).status_code == 400


def test_store_failure_maps_to_bad_gateway(tmp_path) -> None:
    client = TestClient(create_app(_stylist(tmp_path, outfit_store=FailingOutfitStore())))
    body = client.post("/suggestions/prompt", json={"user_id": "u1", "prompt": "black tee"}).json()

    response = client.post(
        f"/decks/{body['deck_id']}/save",
        json={"candidate_id": body["cards"][0]["candidate_id"], "name": "Nope"},
    )

    assert response.status_code == 502
    assert response.json()["detail"].startswith("Could not save outfit")
