"""
catalog-service/main.py - Product Catalog Microservice

PURPOSE:
    Owns the product catalog. Stores product documents in MongoDB, serves
    reads through a Redis cache and announces new products on Kafka so the
    Inventory Service can open a stock row for them.

CATALOG WORKFLOW:
    1. POST /api/v1/products writes the document (version 0)
    2. product.created {sku, title} is published, keyed by SKU (= product id)
    3. A publish failure is logged only; the product still exists and
       inventory can be initialized by hand (POST /api/v1/inventory/init/{sku})

CACHE (Redis, key "products::{id}"):
    - GET by id:  read-through
    - PUT:        write-through (entry replaced with the updated product)
    - DELETE:     evict
    - list:       bypass

API ENDPOINTS:
    GET    /api/v1/products?page=0&size=20   - Paged product list
    GET    /api/v1/products/{id}             - Product details (404)
    POST   /api/v1/products                  - Create product (400 on validation)
    PUT    /api/v1/products/{id}             - Update product (404, 409 on version conflict)
    DELETE /api/v1/products/{id}             - Delete product (404)
    GET    /health                           - Health check

KAFKA EVENTS:
    PUBLISHED:
        - product.created: new product, consumed by Inventory Service

USAGE:
    Runs on port 8005
    uvicorn services.catalog_service.main:app --port 8005
"""

import logging
from contextlib import asynccontextmanager

import redis  # Read-through cache
from fastapi import FastAPI  # Web framework
from pydantic_settings import BaseSettings, SettingsConfigDict  # Configuration management
from pymongo import MongoClient  # Document store

from common.kafka_client import BaseKafkaProducer  # Kafka message publisher
from common.logging_config import setup_logging  # Centralized logging
from common.problem import register_exception_handlers
from common.topic_initializer import create_topics  # Kafka topic creation
from services.catalog_service.cache import CacheFacade
from services.catalog_service.publisher import ProductEventPublisher
from services.catalog_service.repository import COLLECTION_NAME, ProductRepository
from services.catalog_service.routes import router
from services.catalog_service.schemas import HealthResponse, ProductResponse
from services.catalog_service.service import ProductService

SERVICE_NAME = "catalog-service"
SERVICE_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings, read from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    kafka_bootstrap_servers: str = "localhost:9092"
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db: str = "catalog"
    redis_host: str = "localhost"
    redis_port: int = 6379
    product_cache_ttl_seconds: int = 600
    catalog_service_port: int = 8005
    log_level: str = "INFO"


def build_product_service(
    mongo_client: MongoClient,
    redis_client: redis.Redis,
    producer: BaseKafkaProducer,
    settings: Settings,
) -> ProductService:
    repository = ProductRepository(mongo_client[settings.mongo_db][COLLECTION_NAME])
    repository.ensure_indexes()
    cache = CacheFacade(redis_client, "products", ProductResponse, settings.product_cache_ttl_seconds)
    return ProductService(repository, cache, ProductEventPublisher(producer))


# Creates a context manager with two phases:
# 1. Initialization (before yield): Kafka topics, MongoDB, Redis, Kafka producer
# 2. Cleanup (after yield): close connections
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle."""
    settings = Settings()
    setup_logging(SERVICE_NAME, settings.log_level)
    logger.info("Starting Catalog Service...")

    try:
        create_topics(settings.kafka_bootstrap_servers)
        logger.info("Kafka topics initialized")
    except Exception as e:
        logger.error(f"Failed to initialize Kafka topics: {e}")
        raise

    mongo_client = MongoClient(settings.mongo_url, tz_aware=True)

    try:
        redis_client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=True)
        redis_client.ping()
        logger.info("Redis connected")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise

    producer = BaseKafkaProducer(settings.kafka_bootstrap_servers, client_id="catalog-producer")
    logger.info("Kafka producer initialized")

    app.state.product_service = build_product_service(mongo_client, redis_client, producer, settings)

    yield  # Application is now ready to handle requests

    logger.info("Shutting down Catalog Service...")
    producer.close()
    redis_client.close()
    mongo_client.close()


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the app. Tests pass use_lifespan=False and set app.state themselves."""
    app = FastAPI(title="Catalog Service", version=SERVICE_VERSION, lifespan=lifespan if use_lifespan else None)
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

    uvicorn.run(app, host="0.0.0.0", port=Settings().catalog_service_port)
