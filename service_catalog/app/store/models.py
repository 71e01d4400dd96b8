"""
Product data models for the Catalog Service.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

Price = Union[StrictInt, StrictFloat]


@dataclass
class Product:
    """Catalog item."""
    id: int
    name: str
    price: Union[int, float]
    category: str
    description: str = ""
    stock: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProductCreateRequest(BaseModel):
    """Request model for creating a product."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., description="Product name")
    price: Price = Field(..., description="Unit price, must be positive")
    category: str = Field(..., description="Product category")
    description: Optional[str] = Field(None, description="Free-form description")
    stock: Optional[StrictInt] = Field(None, description="Units in stock")


class ProductUpdateRequest(BaseModel):
    """Request model for partially updating a product.

    Only the fields present in the request body are applied. Values are
    not type-checked here; the store validates them once the product is
    known to exist, so a missing id is reported before a bad field.
    """
    model_config = ConfigDict(extra="ignore")

    name: Any = Field(None, description="Product name")
    price: Any = Field(None, description="Unit price, must be positive")
    category: Any = Field(None, description="Product category")
    description: Any = Field(None, description="Free-form description")
    stock: Any = Field(None, description="Units in stock")


class ProductResponse(BaseModel):
    """Product as returned to clients."""
    id: int
    name: str
    description: str
    price: float
    category: str
    stock: int


class CachedProductResponse(ProductResponse):
    cached: bool


class ProductListResponse(BaseModel):
    """Response model for product list."""
    data: List[ProductResponse]
    cached: bool
    count: int
