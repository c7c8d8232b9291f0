"""
events.py - Kafka Event Schema Definitions

PURPOSE:
    Defines the events exchanged between the catalog and inventory services.
    Uses Pydantic for data validation and serialization.

EVENTS:
    - product.created: A catalog product was created; inventory initializes
      a zero stock row for its SKU.

WIRE FORMAT:
    The message value is the bare event body as JSON, e.g.
        {"sku": "6630d1f0c2a4e91b2f3c4d5e", "title": "iPhone 15"}
    Envelope data travels in Kafka headers instead of the payload:
        - event_type: topic-independent event name ("product.created")
        - correlation_id: links the HTTP request to downstream handling
    The message key is the SKU so events for one SKU stay on one partition.

USAGE:
    Serializing:
        payload = ProductCreatedEvent(sku="abc", title="iPhone 15").model_dump_json()

    Deserializing (raw bytes from Kafka):
        event_class = TOPIC_EVENT_MAP[topic]
        event = event_class.model_validate_json(raw)
"""

from typing import Dict, List, Type  # Type hints

from pydantic import BaseModel, ConfigDict, Field  # Data validation and serialization

PRODUCT_CREATED_TOPIC = "product.created"


class BaseEvent(BaseModel):
    """Base model for bus payloads. Unknown fields from newer producers are ignored."""

    model_config = ConfigDict(extra="ignore")


class ProductCreatedEvent(BaseEvent):
    """
    Event published when a product is created in the catalog.
    Triggers: Catalog Service after the product document is written
    Consumers: Inventory Service (initialize stock row, quantity 0)
    Note: carries no quantity; stock always starts at zero
    """

    sku: str = Field(min_length=1)  # Catalog id of the product, used as SKU
    title: str


# Topic -> event class, used by BaseKafkaConsumer for deserialization
TOPIC_EVENT_MAP: Dict[str, Type[BaseEvent]] = {
    PRODUCT_CREATED_TOPIC: ProductCreatedEvent,
}

# Event name carried in the "event_type" header
EVENT_TYPE_NAMES: Dict[Type[BaseEvent], str] = {
    ProductCreatedEvent: "product.created",
}

ALL_TOPICS: List[str] = [
    PRODUCT_CREATED_TOPIC,
]
