from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductRequest(CamelModel):
    """Request model for creating or replacing a product."""

    title: NonBlank
    price: Decimal = Field(gt=0, description="Price must be positive")
    quantity: int = Field(ge=0)  # accepted for API compatibility, stock lives in inventory
    category: NonBlank
    attributes: Optional[Dict[str, Any]] = None
    version: Optional[int] = Field(default=None, ge=0)  # expected version on update


class ProductResponse(CamelModel):
    """Response model for a product; also the cached representation."""

    id: str
    title: str
    price: Decimal  # JSON string, keeps every digit
    quantity: Optional[int] = None
    category: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductPage(CamelModel):
    """One page of products, ordered by creation time."""

    content: List[ProductResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    service: str
    version: str
