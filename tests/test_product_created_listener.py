import json
import logging

from common.events import ProductCreatedEvent
from services.inventory_service.listener import ProductCreatedListener
from services.inventory_service.main import start_consumer
from services.inventory_service.schemas import StockView


class ExplodingInventory:
    def init_stock(self, sku):
        raise RuntimeError("database unavailable")


def product_created(make_message, sku, title="Widget"):
    return make_message(
        "product.created",
        json.dumps({"sku": sku, "title": title}).encode("utf-8"),
        key=sku.encode("utf-8"),
        headers=[("event_type", b"product.created"), ("correlation_id", b"corr-1")],
    )


def test_event_initializes_stock(inventory_service):
    ProductCreatedListener(inventory_service)(ProductCreatedEvent(sku="S", title="T"))

    assert inventory_service.get_stock_status("S") == StockView(sku="S", in_stock=False, quantity=0, version=0)


def test_replayed_event_is_harmless(inventory_service):
    listener = ProductCreatedListener(inventory_service)
    event = ProductCreatedEvent(sku="S", title="T")

    listener(event)
    inventory_service.adjust_stock("S", 4)
    listener(event)

    assert inventory_service.get_details("S").quantity == 4


def test_handler_failure_is_logged_and_swallowed(caplog):
    listener = ProductCreatedListener(ExplodingInventory())

    with caplog.at_level(logging.ERROR):
        listener(ProductCreatedEvent(sku="S", title="T"))

    assert "Error processing ProductCreatedEvent for SKU: S" in caplog.text


def test_failed_handling_is_still_committed(make_consumer, make_message):
    message = product_created(make_message, "S")
    consumer, fake = make_consumer([message])

    consumer.consume(ProductCreatedListener(ExplodingInventory()), timeout=0)

    assert fake.committed == [message]


def test_consumer_loop_initializes_each_sku(inventory_service, make_consumer, make_message):
    messages = [product_created(make_message, sku) for sku in ("A", "B", "A")]
    consumer, fake = make_consumer(messages)

    consumer.consume(ProductCreatedListener(inventory_service), timeout=0)

    assert fake.committed == messages
    assert sorted(v.sku for v in inventory_service.get_stock_statuses(["A", "B"])) == ["A", "B"]


def test_consumer_thread_drains_then_closes_consumer(inventory_service, make_consumer, make_message):
    consumer, fake = make_consumer([product_created(make_message, "T-1")])

    thread = start_consumer(consumer, inventory_service)
    thread.join(timeout=10)

    assert not thread.is_alive()
    assert fake.closed
    assert len(fake.committed) == 1
    assert inventory_service.get_details("T-1").quantity == 0
