import pytest
from fastapi.testclient import TestClient

from services.catalog_service.main import create_app

PRODUCT = {
    "title": "iPhone 15",
    "price": 1200,
    "quantity": 10,
    "category": "Electronics",
    "attributes": {"color": "black"},
}


@pytest.fixture
def client(product_service):
    app = create_app(use_lifespan=False)
    app.state.product_service = product_service
    return TestClient(app)


def create(client, **overrides):
    response = client.post("/api/v1/products", json={**PRODUCT, **overrides})
    assert response.status_code == 201
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "catalog-service", "version": "1.0.0"}


def test_create_returns_camel_case_product(client):
    body = create(client)

    assert body["id"]
    assert body["title"] == "iPhone 15"
    assert body["price"] == "1200"
    assert body["version"] == 0
    assert body["attributes"] == {"color": "black"}
    assert "createdAt" in body and "updatedAt" in body


def test_get_by_id_and_not_found(client):
    created = create(client)

    assert client.get(f"/api/v1/products/{created['id']}").json()["id"] == created["id"]

    missing = client.get("/api/v1/products/nope")
    assert missing.status_code == 404
    assert missing.headers["content-type"].startswith("application/problem+json")
    assert missing.json()["title"] == "Product Not Found"


def test_update_with_stale_version_is_conflict(client):
    created = create(client)
    url = f"/api/v1/products/{created['id']}"

    first = client.put(url, json={**PRODUCT, "title": "iPhone 15 Pro", "version": 0})
    stale = client.put(url, json={**PRODUCT, "title": "stale", "version": 0})

    assert first.status_code == 200
    assert first.json()["version"] == 1
    assert stale.status_code == 409
    assert stale.json()["type"] == "/errors/conflict"
    assert client.get(url).json()["title"] == "iPhone 15 Pro"


def test_update_unknown_is_not_found(client):
    assert client.put("/api/v1/products/nope", json=PRODUCT).status_code == 404


def test_delete(client):
    created = create(client)
    url = f"/api/v1/products/{created['id']}"

    assert client.delete(url).status_code == 204
    assert client.get(url).status_code == 404
    assert client.delete(url).status_code == 404


def test_list_pages(client):
    for i in range(3):
        create(client, title=f"P{i}")

    body = client.get("/api/v1/products", params={"page": 0, "size": 2}).json()

    assert [p["title"] for p in body["content"]] == ["P0", "P1"]
    assert body["totalElements"] == 3
    assert body["totalPages"] == 2


def test_page_size_out_of_range_is_validation_error(client):
    response = client.get("/api/v1/products", params={"size": 0})

    assert response.status_code == 400
    assert "size" in response.json()["errors"]


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"price": 0}, "price"),
        ({"title": "   "}, "title"),
        ({"quantity": -1}, "quantity"),
        ({"category": ""}, "category"),
    ],
)
def test_invalid_product_is_validation_error(client, overrides, field):
    response = client.post("/api/v1/products", json={**PRODUCT, **overrides})

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == 400
    assert field in body["errors"]


def test_price_keeps_every_digit_through_store_and_cache(client):
    created = create(client, price="1234567890123456.78")
    url = f"/api/v1/products/{created['id']}"

    assert created["price"] == "1234567890123456.78"
    assert client.get(url).json()["price"] == "1234567890123456.78"  # loaded from the store
    assert client.get(url).json()["price"] == "1234567890123456.78"  # served from the cache
