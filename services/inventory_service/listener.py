import logging

from common.events import ProductCreatedEvent
from services.inventory_service.service import InventoryService

logger = logging.getLogger(__name__)


class ProductCreatedListener:
    """
    Initializes stock for every product.created event.

    Failures are logged and swallowed so the offset is committed: init_stock
    is idempotent, so redelivery is harmless, and one bad SKU must not stall
    the partition.
    """

    def __init__(self, inventory_service: InventoryService):
        self.inventory_service = inventory_service

    def __call__(self, event: ProductCreatedEvent) -> None:
        self.handle_product_created(event)

    def handle_product_created(self, event: ProductCreatedEvent) -> None:
        extra = {"sku": event.sku, "event_type": "product.created"}
        logger.info(f"Received ProductCreatedEvent for SKU: {event.sku}", extra=extra)
        try:
            self.inventory_service.init_stock(event.sku)
            logger.info(f"Successfully initialized stock for SKU: {event.sku}", extra=extra)
        except Exception:
            logger.exception(f"Error processing ProductCreatedEvent for SKU: {event.sku}", extra=extra)
