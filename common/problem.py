"""
Problem-style JSON error responses for FastAPI apps.

Body shape: {status, title, detail, type, timestamp, errors?}
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.exceptions import InvalidRequestError, ServiceError

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"
ERROR_TYPE_PREFIX = "/errors/"


def problem_response(
    status_code: int,
    title: str,
    detail: str,
    type_slug: Optional[str] = None,
    errors: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body = {
        "status": status_code,
        "title": title,
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if type_slug:
        body["type"] = ERROR_TYPE_PREFIX + type_slug
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body, media_type=PROBLEM_MEDIA_TYPE)


def _field_name(loc) -> str:
    parts = list(loc)
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(str(p) for p in parts) or "request"


async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    logger.warning(f"{exc.title}: {exc.detail}")
    errors = exc.errors if isinstance(exc, InvalidRequestError) else None
    return problem_response(exc.status_code, exc.title, exc.detail, exc.type_slug, errors)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        # First message per field wins
        errors.setdefault(_field_name(error.get("loc", ())), error.get("msg", "Invalid value"))
    logger.info(f"Validation failed: {errors}")
    return problem_response(
        status.HTTP_400_BAD_REQUEST, "Validation Error", "Validation failed", "validation", errors
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=exc)
    return problem_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "An unexpected error occurred"
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
