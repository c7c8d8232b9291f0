"""Catalog create -> product.created -> inventory stock row, over in-process doubles."""

from fastapi.testclient import TestClient

from services.catalog_service.main import create_app as create_catalog_app
from services.inventory_service.listener import ProductCreatedListener
from services.inventory_service.main import create_app as create_inventory_app


def test_created_product_gets_an_empty_stock_row(
    product_service, inventory_service, fake_producer, make_consumer
):
    catalog_app = create_catalog_app(use_lifespan=False)
    catalog_app.state.product_service = product_service
    inventory_app = create_inventory_app(use_lifespan=False)
    inventory_app.state.inventory_service = inventory_service
    catalog = TestClient(catalog_app)
    inventory = TestClient(inventory_app)

    created = catalog.post(
        "/api/v1/products",
        json={"title": "Lamp", "price": 35.5, "quantity": 0, "category": "Home"},
    ).json()

    # Deliver what the catalog published, twice, as a redelivery would
    consumer, fake = make_consumer(fake_producer.messages * 2)
    consumer.consume(ProductCreatedListener(inventory_service), timeout=0)

    assert len(fake.committed) == 2
    assert inventory.get(f"/api/v1/inventory/{created['id']}").json() == {
        "sku": created["id"],
        "inStock": False,
        "quantity": 0,
        "version": 0,
    }
    assert inventory.get(f"/api/v1/inventory/details/{created['id']}").status_code == 200


def test_lost_event_is_recovered_by_manual_init(product_service, inventory_service, fake_producer):
    fake_producer.fail_with = RuntimeError("broker down")
    catalog_app = create_catalog_app(use_lifespan=False)
    catalog_app.state.product_service = product_service
    inventory_app = create_inventory_app(use_lifespan=False)
    inventory_app.state.inventory_service = inventory_service

    created = TestClient(catalog_app).post(
        "/api/v1/products",
        json={"title": "Lamp", "price": 35.5, "quantity": 0, "category": "Home"},
    )
    inventory = TestClient(inventory_app)
    sku = created.json()["id"]

    assert created.status_code == 201
    assert inventory.get(f"/api/v1/inventory/details/{sku}").status_code == 404
    assert inventory.post(f"/api/v1/inventory/init/{sku}").status_code == 201
    assert inventory.get(f"/api/v1/inventory/details/{sku}").json()["quantity"] == 0
