"""Error taxonomy shared by the catalog and inventory services."""

from typing import Dict, Optional


class ServiceError(Exception):
    """Base for failures that map onto an HTTP problem response."""

    status_code = 500
    title = "Internal Server Error"
    type_slug = "internal"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ServiceError):
    status_code = 404
    title = "Not Found"
    type_slug = "not-found"


class ProductNotFoundError(NotFoundError):
    title = "Product Not Found"

    def __init__(self, product_id: str):
        super().__init__(f"Product not found with id: {product_id}")
        self.product_id = product_id


class InventoryNotFoundError(NotFoundError):
    title = "Inventory Not Found"

    def __init__(self, sku: str):
        super().__init__(f"Inventory not found for SKU: {sku}")
        self.sku = sku


class InsufficientStockError(ServiceError):
    status_code = 409
    title = "Not enough in stock"
    type_slug = "insufficient-stock"

    def __init__(self, sku: str, requested: Optional[int] = None, available: Optional[int] = None):
        if requested is not None and available is not None:
            detail = f"Not enough stock for SKU {sku}: requested {requested}, available {available}"
        else:
            detail = f"Not enough stock for SKU {sku}"
        super().__init__(detail)
        self.sku = sku


class ConflictError(ServiceError):
    """Optimistic version mismatch; the client should refresh and retry."""

    status_code = 409
    title = "Resource Conflict"
    type_slug = "conflict"

    def __init__(self, detail: str = "The resource has been updated by another user. Please refresh and try again."):
        super().__init__(detail)


class InvalidRequestError(ServiceError):
    status_code = 400
    title = "Validation Error"
    type_slug = "validation"

    def __init__(self, detail: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(detail)
        self.errors = errors or {}


class DuplicateKeyError(Exception):
    """Raised by the stock store when a SKU row already exists. Never reaches HTTP."""

    def __init__(self, sku: str):
        super().__init__(f"Stock row already exists for SKU: {sku}")
        self.sku = sku
