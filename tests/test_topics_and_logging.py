import json
import logging

import pytest

from common.logging_config import JsonFormatter, ServiceFilter, setup_logging
from common.topic_initializer import create_topics


class FakeFuture:
    def __init__(self, error=None):
        self.error = error

    def result(self, timeout=None):
        if self.error is not None:
            raise self.error


class FakeAdminClient:
    """Fails the first `failures` calls as if the broker were still starting."""

    def __init__(self, failures=0, topic_error=None):
        self.failures = failures
        self.topic_error = topic_error
        self.calls = []

    def create_topics(self, new_topics, validate_only=False):
        self.calls.append([t.topic for t in new_topics])
        if len(self.calls) <= self.failures:
            raise ConnectionError("broker not ready")
        return {t.topic: FakeFuture(self.topic_error) for t in new_topics}


class TestCreateTopics:
    def test_creates_product_created_topic(self):
        admin = FakeAdminClient()

        create_topics("localhost:9092", admin_client=admin)

        assert admin.calls == [["product.created"]]

    def test_existing_topic_is_fine(self):
        admin = FakeAdminClient(topic_error=Exception("TOPIC_ALREADY_EXISTS"))

        create_topics("localhost:9092", admin_client=admin)

        assert len(admin.calls) == 1

    def test_retries_until_broker_is_ready(self):
        admin = FakeAdminClient(failures=2)

        create_topics("localhost:9092", admin_client=admin, retry_delay=0)

        assert len(admin.calls) == 3

    def test_gives_up_after_max_retries(self):
        admin = FakeAdminClient(failures=5)

        with pytest.raises(ConnectionError):
            create_topics("localhost:9092", admin_client=admin, max_retries=2, retry_delay=0)

        assert len(admin.calls) == 2


def make_record(**extra):
    record = logging.LogRecord("services.test", logging.INFO, __file__, 1, "Stock for %s", ("A",), None)
    for name, value in extra.items():
        setattr(record, name, value)
    return record


class TestJsonLogging:
    def test_record_renders_as_json_with_context(self):
        record = make_record(sku="A", correlation_id="c-1")
        ServiceFilter("inventory-service").filter(record)

        line = json.loads(JsonFormatter().format(record))

        assert line["message"] == "Stock for A"
        assert line["level"] == "INFO"
        assert line["service_name"] == "inventory-service"
        assert line["sku"] == "A"
        assert line["correlation_id"] == "c-1"
        assert "topic" not in line
        assert line["timestamp"].endswith("+00:00")

    def test_setup_logging_replaces_its_own_handler(self):
        root = logging.getLogger()
        before = list(root.handlers)
        level = root.level
        try:
            setup_logging("catalog-service")
            setup_logging("catalog-service", level="DEBUG")

            added = [h for h in root.handlers if getattr(h, "_json_service_handler", False)]
            assert len(added) == 1
            assert root.level == logging.DEBUG
        finally:
            for handler in list(root.handlers):
                if handler not in before:
                    root.removeHandler(handler)
            root.setLevel(level)
