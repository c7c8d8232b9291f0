import logging
from typing import Optional

from common.events import PRODUCT_CREATED_TOPIC, ProductCreatedEvent
from common.kafka_client import BaseKafkaProducer

logger = logging.getLogger(__name__)


class ProductEventPublisher:
    """
    Best-effort publication of product.created.

    A failed publish is logged and reported as False; it never fails the
    create. POST /api/v1/inventory/init/{sku} is the recovery path for a
    product whose event was lost.
    """

    def __init__(self, producer: BaseKafkaProducer, topic: str = PRODUCT_CREATED_TOPIC):
        self.producer = producer
        self.topic = topic

    def publish_product_created(self, sku: str, title: str, correlation_id: Optional[str] = None) -> bool:
        event = ProductCreatedEvent(sku=sku, title=title)
        try:
            self.producer.publish(self.topic, event, key=sku, correlation_id=correlation_id)
        except Exception:
            logger.exception(f"Failed to publish product.created for SKU {sku}", extra={"sku": sku})
            return False
        return True
