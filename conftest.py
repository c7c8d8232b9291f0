# Shared pytest fixtures. Living at the repository root also puts the root on
# sys.path, so `common` and `services` import without installing the package.
from collections import deque

import fakeredis
import mongomock
import pytest
from sqlalchemy import event

from common.database import build_engine, build_session_factory
from common.kafka_client import BaseKafkaConsumer, BaseKafkaProducer
from services.catalog_service.cache import CacheFacade
from services.catalog_service.publisher import ProductEventPublisher
from services.catalog_service.repository import COLLECTION_NAME, ProductRepository
from services.catalog_service.schemas import ProductResponse
from services.catalog_service.service import ProductService
from services.inventory_service.models import Base
from services.inventory_service.service import InventoryService


# --- Kafka test doubles (confluent-kafka surface only) ---


class FakeMessage:
    def __init__(self, topic, value, key=None, headers=None, error=None):
        self._topic = topic
        self._value = value
        self._key = key
        self._headers = headers
        self._error = error

    def topic(self):
        return self._topic

    def value(self):
        return self._value

    def key(self):
        return self._key

    def headers(self):
        return self._headers

    def error(self):
        return self._error

    def partition(self):
        return 0

    def offset(self):
        return 0


class FakeProducer:
    """Records produced messages; optionally fails every produce call."""

    def __init__(self, fail_with=None):
        self.messages = []
        self.fail_with = fail_with

    def produce(self, topic, key=None, value=None, headers=None, callback=None):
        if self.fail_with is not None:
            raise self.fail_with
        message = FakeMessage(topic, value, key, headers)
        self.messages.append(message)
        if callback is not None:
            callback(None, message)

    def flush(self, timeout=None):
        return 0


class FakeConsumer:
    """Serves queued messages, then asks its owner to stop once drained."""

    def __init__(self, messages=()):
        self.queue = deque(messages)
        self.committed = []
        self.subscriptions = []
        self.owner = None
        self.closed = False

    def subscribe(self, topics):
        self.subscriptions.extend(topics)

    def poll(self, timeout=None):
        if self.queue:
            return self.queue.popleft()
        if self.owner is not None:
            self.owner.stop()
        return None

    def commit(self, message=None, asynchronous=True):
        self.committed.append(message)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_producer():
    return FakeProducer()


@pytest.fixture
def kafka_producer(fake_producer):
    return BaseKafkaProducer("localhost:9092", client_id="test-producer", producer=fake_producer)


@pytest.fixture
def make_consumer():
    """Build a BaseKafkaConsumer over a FakeConsumer preloaded with messages."""

    def _make(messages=(), topics=("product.created",)):
        fake = FakeConsumer(messages)
        consumer = BaseKafkaConsumer("localhost:9092", "product.created.queue", list(topics), consumer=fake)
        fake.owner = consumer
        return consumer, fake

    return _make


@pytest.fixture
def make_message():
    return FakeMessage


# --- Inventory store ---


@pytest.fixture
def engine(tmp_path):
    """
    File-backed SQLite shared by worker threads.

    BEGIN IMMEDIATE takes the write lock at transaction start, so concurrent
    transactions queue on it the way PostgreSQL row locks queue writers.
    """
    engine = build_engine(
        f"sqlite:///{tmp_path / 'inventory.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def inventory_service(session_factory):
    return InventoryService(session_factory)


# --- Catalog store, cache and publisher ---


@pytest.fixture
def catalog_collection():
    return mongomock.MongoClient()["catalog"][COLLECTION_NAME]


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def product_cache(redis_client):
    return CacheFacade(redis_client, "products", ProductResponse, ttl_seconds=600)


@pytest.fixture
def product_repository(catalog_collection):
    repository = ProductRepository(catalog_collection)
    repository.ensure_indexes()
    return repository


@pytest.fixture
def product_service(product_repository, product_cache, kafka_producer):
    return ProductService(product_repository, product_cache, ProductEventPublisher(kafka_producer))
