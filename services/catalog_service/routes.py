import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status

from services.catalog_service.schemas import ProductPage, ProductRequest, ProductResponse
from services.catalog_service.service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/products", tags=["products"])


def get_product_service(request: Request) -> ProductService:
    """Injected from app.state by the lifespan (or by tests)."""
    return request.app.state.product_service


@router.get("", response_model=ProductPage)
def get_all_products(
    page: int = Query(default=0, ge=0),
    size: int = Query(default=20, ge=1, le=100),
    service: ProductService = Depends(get_product_service),
) -> ProductPage:
    logger.info("REST request to get all products")
    return service.get_all_products(page, size)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product_by_id(product_id: str, service: ProductService = Depends(get_product_service)) -> ProductResponse:
    logger.info(f"REST request to get product by ID: {product_id}")
    return service.get_product_by_id(product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(request: ProductRequest, service: ProductService = Depends(get_product_service)) -> ProductResponse:
    logger.info(f"REST request to create product: {request.title}")
    return service.create_product(request)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str, request: ProductRequest, service: ProductService = Depends(get_product_service)
) -> ProductResponse:
    logger.info(f"REST request to update product ID: {product_id}")
    return service.update_product(product_id, request)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: str, service: ProductService = Depends(get_product_service)) -> Response:
    logger.info(f"REST request to delete product ID: {product_id}")
    service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
