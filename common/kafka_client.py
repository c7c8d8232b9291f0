"""
kafka_client.py - Kafka Producer and Consumer Client Wrappers

PURPOSE:
    Provides reusable Kafka producer and consumer classes with built-in
    error handling, serialization, and delivery guarantees.

CLASSES:
    1. BaseKafkaProducer: Publishes events to Kafka topics
       - JSON serialization of the event body
       - Message key (SKU) for per-SKU partition ordering
       - Envelope headers (event_type, correlation_id)
       - Delivery acknowledgments (acks=all) and retries

    2. BaseKafkaConsumer: Consumes events from Kafka topics
       - Topic -> event class deserialization
       - Consumer group management
       - At-least-once delivery: offsets committed only after the handler returns
       - Graceful shutdown via stop()

USAGE:
    Producer:
        producer = BaseKafkaProducer("localhost:9092", "catalog-producer")
        producer.publish("product.created", event, key=event.sku)
        producer.close()

    Consumer:
        consumer = BaseKafkaConsumer(
            "localhost:9092",
            "product.created.queue",
            ["product.created"],
        )
        consumer.consume(handler_fn)   # blocks until stop()
        consumer.close()

ERROR HANDLING:
    - Producer: publish errors are logged and re-raised; callers decide whether
      a failed publish is fatal.
    - Consumer: the handler owns its error policy. An exception escaping the
      handler is logged and that offset is not committed. Kafka commits are
      positional, so the message is redelivered after a restart only if no
      later message on the same partition commits first; handlers that need
      redelivery must not let exceptions escape. Undecodable messages are
      logged and committed so one poison message cannot block the partition.
    - No application-level retries and no dead letter topic.
"""

import logging  # For error and info logging
from typing import Callable, Dict, List, Optional  # Type hints
from uuid import uuid4  # Default correlation ids

from confluent_kafka import Consumer, KafkaError, Producer  # Kafka client library
from pydantic import ValidationError  # Raised on malformed payloads

from common.events import EVENT_TYPE_NAMES, TOPIC_EVENT_MAP, BaseEvent

logger = logging.getLogger(__name__)


def decode_headers(raw_headers) -> Dict[str, str]:
    """Convert confluent-kafka header tuples into a str -> str dict."""
    headers: Dict[str, str] = {}
    for name, value in raw_headers or []:
        if value is None:
            continue
        headers[name] = value.decode("utf-8") if isinstance(value, bytes) else str(value)
    return headers


class BaseKafkaProducer:
    """
    Base Kafka producer with JSON serialization and delivery callbacks.

    Features:
        - Automatic JSON serialization of events
        - Delivery acknowledgment from all replicas (acks=all)
        - 3 retry attempts on failure
        - Synchronous send (flush) so publish() reports broker failures
    """

    def __init__(
        self,
        bootstrap_servers: str,
        client_id: str = "producer",
        producer: Optional[Producer] = None,
    ):
        """
        Initialize Kafka producer.

        Args:
            bootstrap_servers: Comma-separated Kafka broker addresses
            client_id: Unique identifier for this producer instance
            producer: Pre-built confluent producer (mainly for tests)
        """
        self.config = {
            "bootstrap.servers": bootstrap_servers,  # Kafka broker addresses
            "client.id": client_id,  # Producer identifier
            "acks": "all",  # Wait for all replicas to acknowledge
            "retries": 3,  # Retry failed sends 3 times
            "enable.idempotence": True,  # No duplicates from producer retries
        }
        self.producer = producer if producer is not None else Producer(self.config)
        self.flush_timeout = 10.0

    def _delivery_report(self, err: Optional[KafkaError], msg) -> None:
        """Delivery report handler called by producer on message delivery."""
        if err is not None:
            logger.error(f"Message delivery failed: {err}")
        else:
            logger.info(
                f"Message delivered to topic={msg.topic()}, "
                f"partition={msg.partition()}, offset={msg.offset()}"
            )

    def publish(
        self,
        topic: str,
        event: BaseEvent,
        key: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Publish event to Kafka topic and wait for the broker to accept it."""
        event_type = EVENT_TYPE_NAMES.get(type(event), topic)
        correlation_id = correlation_id or str(uuid4())
        try:
            self.producer.produce(
                topic=topic,
                key=key.encode("utf-8") if key is not None else None,
                value=event.model_dump_json().encode("utf-8"),
                headers=[
                    ("event_type", event_type.encode("utf-8")),
                    ("correlation_id", correlation_id.encode("utf-8")),
                ],
                callback=self._delivery_report,
            )
            remaining = self.producer.flush(self.flush_timeout)
            if remaining:
                raise RuntimeError(f"{remaining} message(s) still queued after flush")
            logger.info(
                f"Published event to {topic}",
                extra={"event_type": event_type, "correlation_id": correlation_id},
            )
        except Exception as e:
            logger.error(f"Error publishing event to {topic}: {e}")
            raise

    def flush(self) -> None:
        """Flush any pending messages."""
        self.producer.flush(self.flush_timeout)

    def close(self) -> None:
        """Flush before shutdown; confluent producers have no explicit close."""
        self.flush()


class BaseKafkaConsumer:
    """Base Kafka consumer with manual commits (at-least-once)."""

    def __init__(
        self,
        bootstrap_servers: str,
        group_id: str,
        topics: List[str],
        consumer: Optional[Consumer] = None,
    ):
        """Initialize Kafka consumer and subscribe to topics."""
        self.config = {
            "bootstrap.servers": bootstrap_servers,
            "group.id": group_id,
            "auto.offset.reset": "earliest",
            "enable.auto.commit": False,  # Commit after handling only
            "session.timeout.ms": 30000,
        }
        self.consumer = consumer if consumer is not None else Consumer(self.config)
        self.topics = topics
        self.consumer.subscribe(topics)
        self._running = True

    def consume(self, handler_fn: Callable[[BaseEvent], None], timeout: float = 1.0) -> None:
        """Poll subscribed topics until stop() is called."""
        while self._running:
            msg = self.consumer.poll(timeout)

            if msg is None:
                continue

            if msg.error():
                if msg.error().code() != KafkaError._PARTITION_EOF:
                    logger.error(f"Consumer error: {msg.error()}")
                continue

            self.handle_message(msg, handler_fn)

    def handle_message(self, msg, handler_fn: Callable[[BaseEvent], None]) -> bool:
        """
        Decode one message, hand it to handler_fn and commit its offset.

        Returns True when the offset was committed. A later commit on the same
        partition also covers an offset skipped here.
        """
        topic = msg.topic()
        headers = decode_headers(msg.headers())
        log_extra = {
            "topic": topic,
            "event_type": headers.get("event_type", topic),
            "correlation_id": headers.get("correlation_id"),
        }

        event_class = TOPIC_EVENT_MAP.get(topic)
        if event_class is None:
            logger.error(f"No event class registered for topic {topic}, skipping", extra=log_extra)
            self._commit(msg)
            return True

        try:
            event = event_class.model_validate_json(msg.value())
        except (ValidationError, ValueError, TypeError) as e:
            logger.error(f"Failed to deserialize message from {topic}: {e}", extra=log_extra)
            self._commit(msg)
            return True

        try:
            handler_fn(event)
        except Exception:
            logger.exception(f"Handler failed for message from {topic}; offset not committed", extra=log_extra)
            return False

        self._commit(msg)
        logger.info("Event processed successfully", extra=log_extra)
        return True

    def _commit(self, msg) -> None:
        self.consumer.commit(message=msg, asynchronous=False)

    def stop(self) -> None:
        """Ask the consume loop to exit after the current poll."""
        self._running = False

    def close(self) -> None:
        """Close the consumer, leaving the group cleanly."""
        self.stop()
        self.consumer.close()
