from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from services.inventory_service.models import MAX_QUANTITY

SkuCode = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StockRequestItem(CamelModel):
    """One SKU line for check / reserve / set-balance."""

    sku: SkuCode
    quantity: int = Field(ge=0, le=MAX_QUANTITY)
    version: Optional[int] = Field(default=None, ge=0)  # set-balance only


class StockAdjustRequest(CamelModel):
    """Signed delta: negative consumes, positive receives."""

    sku: SkuCode
    quantity: int = Field(ge=-MAX_QUANTITY, le=MAX_QUANTITY)


class StockView(CamelModel):
    """Response model for a stock row."""

    sku: str
    in_stock: bool
    quantity: int
    version: int


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    service: str
    version: str
