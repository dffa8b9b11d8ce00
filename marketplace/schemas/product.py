from pydantic import Field, ConfigDict
from datetime import datetime
from typing import Optional

from marketplace.models.product import Category, Condition, ProductStatus
from marketplace.schemas.common import CamelModel


class ProductBase(CamelModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=100, description="Product name")
    description: str = Field(..., min_length=1, max_length=1000, description="Product description")
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Product price (must be non-negative)")
    category: Category = Field(..., description="Product category")
    condition: Optional[Condition] = Field(None, description="Item condition")
    stock: int = Field(..., ge=0, description="Available stock (must be non-negative)")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    model_config = ConfigDict(str_strip_whitespace=True)


class ProductUpdate(CamelModel):
    """Schema for updating an existing product. All fields are optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Product name")
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False, description="Product price")
    category: Optional[Category] = None
    condition: Optional[Condition] = None
    stock: Optional[int] = Field(None, ge=0, description="Available stock")

    model_config = ConfigDict(str_strip_whitespace=True)


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: str
    image: Optional[str] = None
    status: ProductStatus
    owner_id: str
    rejection_reason: Optional[str] = None
    moderated_by: Optional[str] = None
    moderated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class RejectRequest(CamelModel):
    """Schema for rejecting a product. The reason is checked by the moderation service."""
    reason: Optional[str] = None
