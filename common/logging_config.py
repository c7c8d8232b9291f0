"""
logging_config.py - Centralized JSON Logging Configuration

PURPOSE:
    Structured JSON logging for both services with UTC timestamps,
    correlation tracking and service-specific context injection.

JSON LOG FIELDS:
    - timestamp: ISO 8601, UTC (e.g. "2026-10-19T17:48:51.001014+00:00")
    - level: Log level (INFO, WARNING, ERROR, ...)
    - logger: Module where the log originated (e.g. "services.inventory_service.service")
    - message: The rendered log message
    - service_name: Name of the microservice (injected by ServiceFilter)
    - sku / topic / correlation_id / event_type: copied when passed via `extra`
    - exception: Full stack trace when exc_info is set

USAGE:
    setup_logging("inventory-service", level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Stock initialized", extra={"sku": "ABC-1"})

EXAMPLE JSON OUTPUT:
    {
        "timestamp": "2026-10-19T17:48:51.001014+00:00",
        "level": "INFO",
        "logger": "services.inventory_service.service",
        "message": "Initialized stock for SKU ABC-1",
        "service_name": "inventory-service",
        "sku": "ABC-1"
    }
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes copied from LogRecord `extra` into the JSON document
CONTEXT_FIELDS = ("service_name", "sku", "topic", "correlation_id", "event_type")


class JsonFormatter(logging.Formatter):
    """Formatter that renders each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ServiceFilter(logging.Filter):
    """Stamps every record with the owning service's name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


def setup_logging(service_name: str, level: str = "INFO") -> None:
    """Setup JSON logging on the root logger. Safe to call more than once."""
    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, "_json_service_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    # Filters on the handler also see records propagated from child loggers
    handler.addFilter(ServiceFilter(service_name))
    handler._json_service_handler = True
    root.addHandler(handler)
