from typing import List

from fastapi import APIRouter, Depends, Query, Request, Response, status

from services.inventory_service.schemas import StockAdjustRequest, StockRequestItem, StockView
from services.inventory_service.service import InventoryService

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


def get_inventory_service(request: Request) -> InventoryService:
    """Injected from app.state by the lifespan (or by tests)."""
    return request.app.state.inventory_service


# --- Storefront API ---


@router.get("/{sku}", response_model=StockView)
def get_stock_status(sku: str, service: InventoryService = Depends(get_inventory_service)) -> StockView:
    """Stock status of one SKU; synthetic out-of-stock view when unknown."""
    return service.get_stock_status(sku)


@router.get("", response_model=List[StockView])
def get_stock_statuses(
    sku_codes: List[str] = Query(default=[], alias="skuCodes"),
    service: InventoryService = Depends(get_inventory_service),
) -> List[StockView]:
    """Bulk status for catalog pages. Accepts repeated or comma-separated skuCodes."""
    skus = [sku.strip() for value in sku_codes for sku in value.split(",") if sku.strip()]
    return service.get_stock_statuses(skus)


# --- Order flow API ---


@router.post("/check", status_code=status.HTTP_200_OK)
def check_availability(
    items: List[StockRequestItem], service: InventoryService = Depends(get_inventory_service)
) -> Response:
    service.check_availability(items)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/reserve", status_code=status.HTTP_200_OK)
def reserve_stock(
    items: List[StockRequestItem], service: InventoryService = Depends(get_inventory_service)
) -> Response:
    service.reserve_stock(items)
    return Response(status_code=status.HTTP_200_OK)


# --- Admin API ---


@router.get("/details/{sku}", response_model=StockView)
def get_inventory_details(sku: str, service: InventoryService = Depends(get_inventory_service)) -> StockView:
    return service.get_details(sku)


@router.post("/adjust", response_model=StockView)
def adjust_stock(request: StockAdjustRequest, service: InventoryService = Depends(get_inventory_service)) -> StockView:
    """Receive (positive quantity) or write off (negative quantity)."""
    return service.adjust_stock(request.sku, request.quantity)


@router.put("/set-balance", response_model=StockView)
def set_balance(request: StockRequestItem, service: InventoryService = Depends(get_inventory_service)) -> StockView:
    return service.set_balance(request.sku, request.quantity, request.version)


@router.delete("/{sku}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory(sku: str, service: InventoryService = Depends(get_inventory_service)) -> Response:
    service.delete_inventory(sku)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/init/{sku}", status_code=status.HTTP_201_CREATED)
def init_stock(sku: str, service: InventoryService = Depends(get_inventory_service)) -> Response:
    """Manual recovery when the product.created event never arrived. Idempotent."""
    service.init_stock(sku)
    return Response(status_code=status.HTTP_201_CREATED)
