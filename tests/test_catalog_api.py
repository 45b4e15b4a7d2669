import pytest
from fastapi.testclient import TestClient

from app.api import dependencies
from app.main import app
from tests.fakes import FakeCatalogStore, auth_headers


@pytest.fixture(name="menu")
def menu_fixture():
    return FakeCatalogStore(
        [
            {"id": "m-1", "category": "minuman", "price": 8000,
             "translations": {"id": {"name": "Es Teh", "description": "Dingin"}}},
            {"id": "m-2", "category": "makanan", "price": 25000,
             "translations": {"id": {"name": "Nasi Goreng", "description": "Pedas"}}},
        ]
    )


@pytest.fixture(name="promotions")
def promotions_fixture():
    return FakeCatalogStore(
        [
            {"id": "p-1", "order": 2, "active": True, "translations": {"id": {"title": "Promo Kopi"}}},
            {"id": "p-2", "order": 1, "active": False, "translations": {"en": {"title": "Lunch Deal"}}},
        ]
    )


@pytest.fixture(name="api_client")
def client_fixture(menu: FakeCatalogStore, promotions: FakeCatalogStore):
    async def override_menu():
        return menu

    async def override_promotions():
        return promotions

    app.dependency_overrides[dependencies.get_menu_store] = override_menu
    app.dependency_overrides[dependencies.get_promotion_store] = override_promotions

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def test_catalog_routes_require_session(api_client: TestClient) -> None:
    assert api_client.get("/api/menu/categories").status_code == 401
    assert api_client.get("/api/menu/categories", headers=auth_headers()).json() == [
        "All", "Minuman", "Makanan", "Cemilan", "Dessert",
    ]


def test_list_menu_with_filters(api_client: TestClient) -> None:
    headers = auth_headers()

    listed = api_client.get("/api/menu", headers=headers).json()
    assert [item["id"] for item in listed] == ["m-2", "m-1"]

    filtered = api_client.get("/api/menu", params={"search": "pedas", "category": "Makanan"}, headers=headers)
    assert [item["id"] for item in filtered.json()] == ["m-2"]


def test_menu_item_lifecycle(api_client: TestClient, menu: FakeCatalogStore) -> None:
    headers = auth_headers()
    form = {"id_name": "Es Jeruk", "category": "Minuman", "price": 9000, "image": "https://cdn.example/jeruk.jpg"}

    created = api_client.post("/api/menu", json=form, headers=headers)
    assert created.status_code == 201
    item_id = created.json()["id"]
    assert created.json()["translations"]["en"]["name"] == "Es Jeruk"
    assert menu.documents[-1]["category"] == "minuman"

    fetched = api_client.get(f"/api/menu/{item_id}", headers=headers)
    assert fetched.json()["image"] == "https://cdn.example/jeruk.jpg"

    updated = api_client.put(f"/api/menu/{item_id}", json={**form, "price": 9500}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["price"] == 9500

    assert api_client.delete(f"/api/menu/{item_id}", headers=headers).status_code == 204
    assert api_client.get(f"/api/menu/{item_id}", headers=headers).status_code == 404
    assert api_client.delete(f"/api/menu/{item_id}", headers=headers).status_code == 404


def test_menu_form_validation(api_client: TestClient) -> None:
    headers = auth_headers()

    assert api_client.post("/api/menu", json={"category": "minuman", "price": 1}, headers=headers).status_code == 422
    bad_price = {"id_name": "X", "category": "minuman", "price": -5}
    assert api_client.post("/api/menu", json=bad_price, headers=headers).status_code == 422
    bad_image = {"id_name": "X", "category": "minuman", "price": 5, "image": "ftp.example/x.txt"}
    assert api_client.post("/api/menu", json=bad_image, headers=headers).status_code == 422
    missing = {"id_name": "X", "category": "minuman", "price": 5}
    assert api_client.put("/api/menu/missing", json=missing, headers=headers).status_code == 404


def test_promotions_list_and_toggle(api_client: TestClient, promotions: FakeCatalogStore) -> None:
    headers = auth_headers()

    listed = api_client.get("/api/promotions", headers=headers).json()
    assert [(p["id"], p["title"]) for p in listed] == [("p-2", "Lunch Deal"), ("p-1", "Promo Kopi")]
    assert [p["id"] for p in api_client.get("/api/promotions", params={"search": "kopi"}, headers=headers).json()] == [
        "p-1"
    ]

    toggled = api_client.patch("/api/promotions/p-2/active", headers=headers)
    assert toggled.json() == {"id": "p-2", "active": True}
    assert promotions.documents[1]["active"] is True
    assert api_client.patch("/api/promotions/none/active", headers=headers).status_code == 404


def test_promotion_lifecycle(api_client: TestClient, promotions: FakeCatalogStore) -> None:
    headers = auth_headers()

    created = api_client.post(
        "/api/promotions",
        json={"id_title": "Promo Baru", "order": 3, "menu_item_ids": ["m-1"]},
        headers=headers,
    )
    assert created.status_code == 201
    promotion_id = created.json()["id"]
    assert promotions.documents[-1]["menuItemIds"] == ["m-1"]

    updated = api_client.put(
        f"/api/promotions/{promotion_id}",
        json={"id_title": "Promo Lama", "active": False},
        headers=headers,
    )
    assert updated.json()["title"] == "Promo Lama"
    assert updated.json()["active"] is False

    assert api_client.delete(f"/api/promotions/{promotion_id}", headers=headers).status_code == 204
    assert api_client.put("/api/promotions/gone", json={"id_title": "X"}, headers=headers).status_code == 404
    assert api_client.post("/api/promotions", json={"id_title": ""}, headers=headers).status_code == 422


def test_promotion_menu_options(api_client: TestClient) -> None:
    options = api_client.get("/api/promotions/menu-options", headers=auth_headers()).json()

    assert [(option["id"], option["name"]) for option in options] == [("m-2", "Nasi Goreng"), ("m-1", "Es Teh")]
