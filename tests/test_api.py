"""Tests for the HTTP API."""

import json

import pytest
from fastapi.testclient import TestClient

from food_log.api.app import create_app
from food_log.containers import AppContainer
from food_log.domain.events import EventKind
from tests.conftest import SEED_CATEGORIES, SEED_GROUPS


def _client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def _post_entry(
    client: TestClient, tag: str = "fruit", cal: str = "100", with_image: bool = True
):
    files = {"image": ("apple.jpg", b"jpeg-bytes", "image/jpeg")} if with_image else None
    return client.post(
        "/api/addFoodData",
        data={"name": "Apple", "cal": cal, "loc": "Kitchen", "tag": tag},
        files=files,
    )


def _password_check(client: TestClient, name: str, password: str) -> str:
    payload = json.dumps({"name": name, "password": password})
    response = client.get("/api/userPassword", params={"userPassword": payload})
    assert response.status_code == 200
    return response.json()["pass"]


def test_health(container: AppContainer) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_food_types_hide_internal_total(container: AppContainer) -> None:
    response = _client(container).get("/api/foodType", params={"search": "VEG"})

    assert response.status_code == 200
    assert response.json() == [SEED_CATEGORIES[1]]


def test_groups(container: AppContainer) -> None:
    response = _client(container).get("/api/groups")

    assert response.json() == SEED_GROUPS


def test_add_food_data_stores_entry_and_image(container: AppContainer) -> None:
    client = _client(container)

    response = _post_entry(client)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Food data added successfully!"
    entry = body["data"]
    assert entry["cal"] == 100
    assert entry["tag"] == "fruit"
    assert client.get(entry["imagePath"]).content == b"jpeg-bytes"
    assert client.get("/api/foodData", params={"search": "Fruit"}).json() == [entry]
    fruit = client.get("/api/foodType", params={"search": "fruit"}).json()[0]
    assert fruit == {"name": "fruit", "num": 1, "avgCal": 100, "imagePath": entry["imagePath"]}


def test_add_food_data_updates_running_average(container: AppContainer) -> None:
    client = _client(container)

    _post_entry(client, cal="100")
    _post_entry(client, cal="50")

    fruit = client.get("/api/foodType", params={"search": "fruit"}).json()[0]
    assert fruit["num"] == 2
    assert fruit["avgCal"] == 75


def test_add_food_data_without_image_is_rejected(container: AppContainer) -> None:
    response = _post_entry(_client(container), with_image=False)

    assert response.status_code == 400
    assert response.json() == {"error": "Name, calorie data, and image are required."}


@pytest.mark.parametrize("cal", ["abc", "-10"])
def test_add_food_data_with_bad_calories_is_rejected(
    container: AppContainer, cal: str
) -> None:
    response = _post_entry(_client(container), cal=cal)

    assert response.status_code == 400
    assert "error" in response.json()


def test_add_food_data_unknown_category_writes_nothing(container: AppContainer) -> None:
    settings = container.settings
    client = _client(container)

    response = _post_entry(client, tag="candy")

    assert response.status_code == 400
    assert response.json() == {"error": "Unknown food category: 'candy'"}
    assert not settings.collection_path(settings.food_data_file).exists()
    assert list(settings.uploads_dir.iterdir()) == []
    assert client.get("/api/foodData").json() == []


def test_storage_fault_rolls_back_submission(
    container: AppContainer, monkeypatch: pytest.MonkeyPatch
) -> None:
    settings = container.settings
    client = _client(container)

    def broken_write(records: list[dict[str, object]]) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(container.food_entry_service.entries.collection, "_write", broken_write)

    response = _post_entry(client)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save food data."}
    food_types = settings.collection_path(settings.food_types_file)
    assert json.loads(food_types.read_text(encoding="utf-8")) == SEED_CATEGORIES
    assert list(settings.uploads_dir.iterdir()) == []
    assert client.get("/api/foodData").json() == []


def test_add_food_data_notifies_subscribers(container: AppContainer) -> None:
    subscriber = container.registry.register()
    subscriber.drain()

    _post_entry(_client(container))

    assert [event.kind for event in subscriber.drain()] == [EventKind.DATA_CHANGED]


def test_selected_items(container: AppContainer) -> None:
    client = _client(container)
    entry = _post_entry(client).json()["data"]

    response = client.post(
        "/api/selectedItems",
        json={"selectedDataSet": [entry["imagePath"]], "selectedTypeSet": ["Vegetable"]},
    )

    assert response.status_code == 200
    assert response.json() == {"set1Matches": [entry], "set2Matches": [SEED_CATEGORIES[1]]}


def test_user_password_registers_then_checks(container: AppContainer) -> None:
    client = _client(container)

    assert _password_check(client, "ana", "secret") == "new"
    assert _password_check(client, "ana", "secret") == "yes"
    assert _password_check(client, "ana", "wrong") == "no"
    assert _password_check(client, "", "secret") == "no"


def test_user_password_rejects_invalid_json(container: AppContainer) -> None:
    response = _client(container).get(
        "/api/userPassword", params={"userPassword": "{not json"}
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_user_count_reports_open_channels(container: AppContainer) -> None:
    client = _client(container)
    container.registry.register()
    container.registry.register()

    assert client.get("/api/userCount").json() == {"count": 2}


def test_shutdown_closes_open_channels(container: AppContainer) -> None:
    subscriber = container.registry.register()

    with _client(container):
        pass

    assert subscriber.closed
    assert container.registry.count() == 0
