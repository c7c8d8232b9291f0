"""
inventory-service/main.py - Inventory Microservice

PURPOSE:
    Owns stock levels per SKU. Initializes a zero stock row whenever the
    catalog publishes product.created, and exposes the stock mutation API used
    by the storefront, the order flow and admins.

INVENTORY WORKFLOW:
    1. Listen for product.created events from the Catalog Service
    2. Insert (sku, quantity=0, version=0); a duplicate insert is success
    3. Admins receive or write off stock via /adjust (signed delta)
    4. Order flow checks (/check, advisory) then reserves (/reserve, atomic batch)
    5. Admins overwrite a balance via /set-balance with the last seen version

KEY FEATURES:
    - Conditional UPDATE for deltas: no negative balances, no lost updates
    - Optimistic version check for authoritative overwrites (409 on conflict)
    - Idempotent init backed by the unique index on sku_code
    - All mutual exclusion delegated to PostgreSQL; no in-process locks

API ENDPOINTS:
    GET    /api/v1/inventory/{sku}            - Stock status (synthetic if unknown)
    GET    /api/v1/inventory?skuCodes=a,b     - Bulk stock status
    POST   /api/v1/inventory/check            - Availability check (no reservation)
    POST   /api/v1/inventory/reserve          - Reserve (decrement) a batch atomically
    GET    /api/v1/inventory/details/{sku}    - Stock details (404 if unknown)
    POST   /api/v1/inventory/adjust           - Apply signed delta
    PUT    /api/v1/inventory/set-balance      - Overwrite quantity (version CAS)
    DELETE /api/v1/inventory/{sku}            - Delete stock row
    POST   /api/v1/inventory/init/{sku}       - Initialize stock row (idempotent)
    GET    /health                            - Health check

KAFKA EVENTS:
    CONSUMED:
        - product.created (group product.created.queue): initialize stock row

DATABASE:
    - PostgreSQL table: t_inventory
      Columns: id, sku_code (unique), quantity (>= 0), version

USAGE:
    Runs on port 8004
    uvicorn services.inventory_service.main:app --port 8004
"""

import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI  # Web framework
from pydantic_settings import BaseSettings, SettingsConfigDict  # Configuration management

from common.database import build_engine, build_session_factory, postgres_url
from common.events import PRODUCT_CREATED_TOPIC
from common.kafka_client import BaseKafkaConsumer  # Kafka clients
from common.logging_config import setup_logging  # Centralized logging
from common.problem import register_exception_handlers
from common.topic_initializer import create_topics  # Kafka topic creation
from services.inventory_service.listener import ProductCreatedListener
from services.inventory_service.models import Base
from services.inventory_service.routes import router
from services.inventory_service.schemas import HealthResponse
from services.inventory_service.service import InventoryService

SERVICE_NAME = "inventory-service"
SERVICE_VERSION = "1.0.0"
CONSUMER_SHUTDOWN_TIMEOUT = 10.0  # seconds; one poll plus the message in flight

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings, read from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    kafka_bootstrap_servers: str = "localhost:9092"
    inventory_consumer_group: str = "product.created.queue"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"
    postgres_db: str = "inventory"
    inventory_service_port: int = 8004
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        return postgres_url(
            self.postgres_user, self.postgres_password, self.postgres_host, self.postgres_port, self.postgres_db
        )


def start_consumer(consumer: BaseKafkaConsumer, inventory_service: InventoryService) -> threading.Thread:
    """Run the product.created consumer on a daemon thread; the thread closes it on exit."""
    listener = ProductCreatedListener(inventory_service)

    def run() -> None:
        try:
            consumer.consume(listener)
        except Exception:
            logger.exception("Error in inventory consumer")
        finally:
            consumer.close()

    thread = threading.Thread(target=run, name="product-created-consumer", daemon=True)
    thread.start()
    logger.info("Inventory consumer thread started")
    return thread


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle: database, Kafka topics, consumer thread."""
    settings = Settings()
    setup_logging(SERVICE_NAME, settings.log_level)
    logger.info("Starting Inventory Service...")

    engine = build_engine(settings.database_url)
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    inventory_service = InventoryService(build_session_factory(engine))
    app.state.inventory_service = inventory_service

    try:
        create_topics(settings.kafka_bootstrap_servers)
        logger.info("Kafka topics initialized")
    except Exception as e:
        logger.error(f"Failed to initialize Kafka topics: {e}")
        raise

    consumer = BaseKafkaConsumer(
        bootstrap_servers=settings.kafka_bootstrap_servers,
        group_id=settings.inventory_consumer_group,
        topics=[PRODUCT_CREATED_TOPIC],
    )
    consumer_thread = start_consumer(consumer, inventory_service)

    yield

    logger.info("Shutting down Inventory Service...")
    consumer.stop()  # the consumer thread closes it after its last poll
    consumer_thread.join(timeout=CONSUMER_SHUTDOWN_TIMEOUT)
    if consumer_thread.is_alive():
        logger.warning(f"Consumer thread still running after {CONSUMER_SHUTDOWN_TIMEOUT}s")
    engine.dispose()


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the app. Tests pass use_lifespan=False and set app.state themselves."""
    app = FastAPI(title="Inventory Service", version=SERVICE_VERSION, lifespan=lifespan if use_lifespan else None)
    register_exception_handlers(app)
    app.include_router(router)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Settings().inventory_service_port)
