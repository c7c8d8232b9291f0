import logging
import math
from decimal import Decimal
from typing import Any, Dict

from common.exceptions import ConflictError, ProductNotFoundError
from services.catalog_service.cache import CacheFacade
from services.catalog_service.publisher import ProductEventPublisher
from services.catalog_service.repository import ProductRepository
from services.catalog_service.schemas import ProductPage, ProductRequest, ProductResponse

logger = logging.getLogger(__name__)


def to_response(document: Dict[str, Any]) -> ProductResponse:
    return ProductResponse(
        id=document["_id"],
        title=document["title"],
        price=Decimal(document["price"]),
        category=document["category"],
        attributes=document.get("attributes") or {},
        version=document["version"],
        created_at=document.get("createdAt"),
        updated_at=document.get("updatedAt"),
    )


class ProductService:
    """
    Product CRUD. Cache effects per operation:
        get_product_by_id  read-through
        create_product     none
        update_product     write-through
        delete_product     evict
        get_all_products   bypass
    """

    def __init__(self, repository: ProductRepository, cache: CacheFacade, publisher: ProductEventPublisher):
        self.repository = repository
        self.cache = cache
        self.publisher = publisher

    def get_all_products(self, page: int, size: int) -> ProductPage:
        logger.info(f"Fetching all products with pagination: page={page}, size={size}")
        documents, total = self.repository.find_page(page, size)
        return ProductPage(
            content=[to_response(d) for d in documents],
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size) if size else 0,
        )

    def get_product_by_id(self, product_id: str) -> ProductResponse:
        def load() -> ProductResponse:
            document = self.repository.find_by_id(product_id)
            if document is None:
                raise ProductNotFoundError(product_id)
            return to_response(document)

        return self.cache.get_or_load(product_id, load)

    def create_product(self, request: ProductRequest) -> ProductResponse:
        """Insert the document, then announce it; the announcement is best-effort."""
        logger.info(f"Creating new product with title: {request.title}")
        document = self.repository.insert(request.title, request.price, request.category, request.attributes or {})
        product = to_response(document)
        logger.info(f"Product created successfully with ID: {product.id}")

        # The product id is the SKU inventory keys its stock row on
        self.publisher.publish_product_created(sku=product.id, title=product.title)
        return product

    def update_product(self, product_id: str, request: ProductRequest) -> ProductResponse:
        logger.info(f"Updating product with ID: {product_id}")
        current = self.repository.find_by_id(product_id)
        if current is None:
            raise ProductNotFoundError(product_id)

        expected_version = request.version if request.version is not None else current["version"]
        document = self.repository.update(
            product_id, expected_version, request.title, request.price, request.category, request.attributes or {}
        )
        if document is None:
            if not self.repository.exists_by_id(product_id):
                raise ProductNotFoundError(product_id)
            logger.warning(f"Optimistic lock failure on product {product_id} (expected version {expected_version})")
            raise ConflictError()

        product = to_response(document)
        self.cache.put(product_id, product)
        logger.info(f"Product updated successfully: {product_id}")
        return product

    def delete_product(self, product_id: str) -> None:
        logger.info(f"Deleting product with ID: {product_id}")
        if not self.repository.delete_by_id(product_id):
            logger.warning(f"Attempt to delete non-existent product with ID: {product_id}")
            raise ProductNotFoundError(product_id)
        self.cache.evict(product_id)
        logger.info(f"Product deleted successfully: {product_id}")
